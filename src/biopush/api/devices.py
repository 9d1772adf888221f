import sqlite3

from flask import Blueprint, jsonify, request

from biopush.models import Device
from biopush.repositories import device_repo
from biopush.schemas import create_device_schema, update_device_schema, validate_data
from biopush.shared.logger import app_logger

bp = Blueprint('devices', __name__, url_prefix='/api/biometric/devices')


@bp.route('', methods=['GET'])
def list_devices():
    devices = device_repo.get_all()
    return jsonify({
        "success": True,
        "devices": [device.to_dict() for device in devices]
    })


@bp.route('', methods=['POST'])
def create_device():
    """Register a biometric device; the serial number is stored lowercase"""
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({"success": False, "error": "Request body must be JSON"}), 400

    is_valid, error = validate_data(data, create_device_schema)
    if not is_valid:
        return jsonify({"success": False, "error": error}), 400

    try:
        device = device_repo.create(Device(
            id="",
            sn=data["sn"],
            name=data["name"],
            location_name=data.get("location_name"),
            organization_id=data.get("organization_id"),
            ip_address=data.get("ip_address"),
            port=data.get("port"),
        ))
    except sqlite3.IntegrityError as e:
        app_logger.warning(f"Device create rejected for SN={data['sn']}: {e}")
        return jsonify({
            "success": False,
            "error": f"Device with serial number '{data['sn'].lower()}' already exists or references an unknown organization"
        }), 409

    app_logger.info(f"Registered biometric device {device.name} (SN={device.sn})")
    return jsonify({"success": True, "device": device.to_dict()}), 201


@bp.route('/<device_id>', methods=['PUT'])
def update_device(device_id: str):
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({"success": False, "error": "Request body must be JSON"}), 400

    is_valid, error = validate_data(data, update_device_schema)
    if not is_valid:
        return jsonify({"success": False, "error": error}), 400

    try:
        updated = device_repo.update(device_id, dict(data))
    except sqlite3.IntegrityError as e:
        return jsonify({"success": False, "error": str(e)}), 409

    if not updated:
        return jsonify({"success": False, "error": "Device not found"}), 404

    return jsonify({"success": True, "device": device_repo.get_by_id(device_id).to_dict()})


@bp.route('/<device_id>', methods=['DELETE'])
def delete_device(device_id: str):
    if not device_repo.delete(device_id):
        return jsonify({"success": False, "error": "Device not found"}), 404

    app_logger.info(f"Deleted biometric device {device_id}")
    return jsonify({"success": True, "message": "Device deleted"})
