import pytest

from biopush.repositories import attendance_repo, device_repo
from biopush.services.push_protocol_service import PushPhase, PushRequest


@pytest.mark.parametrize(
    "method, params, expected",
    [
        ("OPTIONS", {}, PushPhase.PREFLIGHT),
        ("GET", {"SN": "ABC123"}, PushPhase.HANDSHAKE),
        ("GET", {"sn": "abc123"}, PushPhase.HANDSHAKE),
        ("GET", {}, PushPhase.LIVENESS),
        ("POST", {}, PushPhase.BAD_REQUEST),
        ("POST", {"table": "ATTLOG"}, PushPhase.BAD_REQUEST),
        ("POST", {"SN": "ABC123", "table": "ATTLOG"}, PushPhase.DATA_PUSH),
        ("PUT", {"SN": "ABC123"}, PushPhase.NOT_FOUND),
        ("delete", {}, PushPhase.NOT_FOUND),
    ],
)
def test_phase_depends_only_on_method_and_serial(method, params, expected):
    assert PushRequest.from_query(method, params).phase == expected


def test_serial_number_is_case_folded():
    request = PushRequest.from_query("POST", {"sn": "AbC123", "table": "USERPIC", "PIN": "7"})

    assert request.serial_number == "abc123"
    assert request.table == "USERPIC"
    assert request.pin == "7"


def test_options_returns_preflight_without_side_effects(client, device):
    response = client.open("/?SN=ABC123", method="OPTIONS")

    assert response.status_code == 204
    assert response.data == b""
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert "POST" in response.headers["Access-Control-Allow-Methods"]
    assert device_repo.get_by_id(device.id).last_seen is None


def test_handshake_replies_plain_ok_and_marks_device_online(client, device):
    response = client.get("/iclock/cdata?SN=abc123")

    assert response.status_code == 200
    assert response.data == b"OK"
    assert response.mimetype == "text/plain"

    refreshed = device_repo.get_by_id(device.id)
    assert refreshed.status == "online"
    assert refreshed.last_seen is not None


def test_handshake_from_unregistered_device_is_still_ok(client):
    response = client.get("/?SN=ABC123")

    assert response.status_code == 200
    assert response.data == b"OK"
    assert response.mimetype == "text/plain"


def test_getrequest_path_is_a_handshake(client, device):
    response = client.get("/iclock/getrequest?SN=ABC123")

    assert response.data == b"OK"
    assert device_repo.get_by_id(device.id).status == "online"


def test_get_without_serial_is_a_liveness_check(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.data == b"BIOMETRIC_PUSH_SERVICE_ALIVE"


def test_post_without_serial_is_rejected(client):
    response = client.post("/iclock/cdata?table=ATTLOG", data="123\t2024-01-10 09:00:00\t1")

    assert response.status_code == 400
    assert response.data == b"BadRequest: No SN"


def test_post_from_unknown_device_is_acknowledged(client, employee):
    response = client.post(
        "/iclock/cdata?SN=UNKNOWN&table=ATTLOG", data="123\t2024-01-10 09:00:00\t1"
    )

    assert response.status_code == 200
    assert response.data == b"OK"
    assert attendance_repo.get_total_count() == 0


def test_unrecognized_table_is_acknowledged_without_processing(client, device, employee):
    response = client.post(
        "/iclock/cdata?SN=ABC123&table=OPERLOG", data="123\t2024-01-10 09:00:00\t1"
    )

    assert response.status_code == 200
    assert response.data == b"OK"
    assert attendance_repo.get_total_count() == 0


def test_other_methods_are_not_found(client):
    response = client.put("/iclock/cdata?SN=ABC123")

    assert response.status_code == 404
    assert response.data == b"NotFound"


def test_unknown_path_is_not_found(client):
    response = client.get("/iclock/unknown?SN=ABC123")

    assert response.status_code == 404
    assert response.data == b"NotFound"
