import sqlite3

from flask import Blueprint, jsonify, request

from biopush.models import Organization
from biopush.repositories import organization_repo
from biopush.schemas import create_organization_schema, validate_data
from biopush.shared.logger import app_logger

bp = Blueprint('organizations', __name__, url_prefix='/api/biometric/organizations')


@bp.route('', methods=['GET'])
def list_organizations():
    return jsonify({
        "success": True,
        "organizations": [org.to_dict() for org in organization_repo.get_all()]
    })


@bp.route('', methods=['POST'])
def create_organization():
    """Create an organization that devices can be attached to via organization_id"""
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({"success": False, "error": "Request body must be JSON"}), 400

    is_valid, error = validate_data(data, create_organization_schema)
    if not is_valid:
        return jsonify({"success": False, "error": error}), 400

    try:
        organization = organization_repo.create(Organization(
            id=data.get("id", ""),
            full_name=data["full_name"],
            short_name=data.get("short_name"),
        ))
    except sqlite3.IntegrityError:
        return jsonify({
            "success": False,
            "error": f"Organization '{data.get('id')}' already exists"
        }), 409

    app_logger.info(f"Created organization {organization.full_name} ({organization.id})")
    return jsonify({"success": True, "organization": organization.to_dict()}), 201
