import sqlite3
from unittest import mock

import pytest

from biopush.models import Device, EventType, User
from biopush.repositories import attendance_repo, device_repo, notification_repo, user_repo
from biopush.services.attendance_ingest_service import (
    attendance_ingest_service,
    event_type_for_status,
    parse_attendance_payload,
)
from biopush.services.notification_service import notification_dispatcher


def push_attlog(client, payload, sn="ABC123"):
    return client.post(f"/iclock/cdata?SN={sn}&table=ATTLOG", data=payload)


@pytest.mark.parametrize(
    "status, expected",
    [
        ("1", EventType.PUNCH_IN),
        ("0", EventType.PUNCH_OUT),
        ("4", EventType.PUNCH_OUT),
        ("", EventType.PUNCH_OUT),
        (None, EventType.PUNCH_OUT),
    ],
)
def test_status_mapping(status, expected):
    assert event_type_for_status(status) == expected


def test_parse_skips_blank_and_single_field_lines():
    payload = "123\t2024-01-10 09:00:00\t1\t1\n\n   \njunk\n124\t2024-01-10 09:05:00\n"

    lines = parse_attendance_payload(payload)

    assert [line.biometric_id for line in lines] == ["123", "124"]
    assert lines[0].status == "1"
    assert lines[1].status is None


def test_mixed_batch_saves_only_known_users(client, device, employee):
    payload = "123\t2024-01-10 09:00:00\t1\n124\t2024-01-10 09:05:00\t0"

    response = push_attlog(client, payload)

    assert response.status_code == 200
    assert response.data == b"OK: 1"

    events = attendance_repo.get_for_user(employee.id)
    assert len(events) == 1
    assert events[0].type == EventType.PUNCH_IN
    assert events[0].timestamp == "2024-01-10 09:00:00"
    assert events[0].device_id == device.id
    assert events[0].is_manual is False
    assert events[0].reason is None
    assert attendance_repo.get_total_count() == 1


def test_unknown_biometric_id_never_creates_events(client, device):
    payload = "\n".join(f"999\t2024-01-10 09:0{i}:00\t1" for i in range(5))

    response = push_attlog(client, payload)

    assert response.data == b"OK: 0"
    assert attendance_repo.get_total_count() == 0


def test_missing_status_is_punch_out(client, device, employee):
    response = push_attlog(client, "123\t2024-01-10 18:00:00")

    assert response.data == b"OK: 1"
    assert attendance_repo.get_latest_for_user(employee.id).type == EventType.PUNCH_OUT


def test_malformed_lines_do_not_affect_the_rest(client, device, employee):
    payload = "garbage-line\n123\t2024-01-10 09:00:00\t1\n\n123\t2024-01-10 18:00:00\t0\n"

    response = push_attlog(client, payload)

    assert response.data == b"OK: 2"


def test_latest_event_follows_payload_order(client, device, employee):
    payload = "123\t2024-01-10 09:00:00\t1\n123\t2024-01-10 18:00:00\t0"

    push_attlog(client, payload)

    events = attendance_repo.get_for_user(employee.id)
    assert [event.type for event in events] == [EventType.PUNCH_IN, EventType.PUNCH_OUT]
    assert attendance_repo.get_latest_for_user(employee.id).type == EventType.PUNCH_OUT


def test_location_label_falls_back_to_organization_name(client, device, employee):
    push_attlog(client, "123\t2024-01-10 09:00:00\t1")

    event = attendance_repo.get_latest_for_user(employee.id)
    assert event.location_name == "Paradigm Facility Services"


def test_location_label_prefers_device_location(client, device, employee):
    device_repo.update(device.id, {"location_name": "Tower B Lobby"})

    push_attlog(client, "123\t2024-01-10 09:00:00\t1")

    assert attendance_repo.get_latest_for_user(employee.id).location_name == "Tower B Lobby"


def test_location_label_default_without_organization(client, employee):
    device_repo.create(Device(id="dev-2", sn="NOORG1", name="Loose Device"))

    push_attlog(client, "123\t2024-01-10 09:00:00\t1", sn="noorg1")

    assert attendance_repo.get_latest_for_user(employee.id).location_name == "Biometric Device"


def test_upper_case_serial_resolves_lowercase_registration(client, device, employee):
    response = push_attlog(client, "123\t2024-01-10 09:00:00\t1", sn="ABC123")

    assert response.data == b"OK: 1"
    assert attendance_repo.get_by_device(device.id)[0].user_id == employee.id


@pytest.mark.parametrize("line_count", [1, 200])
def test_liveness_is_refreshed_once_per_request(client, device, employee, line_count):
    payload = "\n".join(
        f"123\t2024-01-10 {9 + i % 10:02d}:{i % 60:02d}:00\t{i % 2}" for i in range(line_count)
    )

    with mock.patch.object(device_repo, "touch", wraps=device_repo.touch) as touch:
        response = push_attlog(client, payload)

    assert response.data == f"OK: {line_count}".encode()
    touch.assert_called_once_with(device.id)

    refreshed = device_repo.get_by_id(device.id)
    assert refreshed.status == "online"
    assert refreshed.last_seen is not None


def test_liveness_failure_does_not_change_reply(client, device, employee):
    with mock.patch.object(device_repo, "touch", side_effect=sqlite3.OperationalError("locked")):
        response = push_attlog(client, "123\t2024-01-10 09:00:00\t1")

    assert response.data == b"OK: 1"


def test_failed_insert_is_not_counted(client, device, employee):
    real_create = attendance_repo.create
    calls = []

    def flaky_create(event):
        calls.append(event)
        if len(calls) == 1:
            raise sqlite3.OperationalError("database is locked")
        return real_create(event)

    with mock.patch.object(attendance_repo, "create", side_effect=flaky_create):
        response = push_attlog(
            client, "123\t2024-01-10 09:00:00\t1\n123\t2024-01-10 18:00:00\t0"
        )

    assert response.data == b"OK: 1"
    events = attendance_repo.get_for_user(employee.id)
    assert [event.type for event in events] == [EventType.PUNCH_OUT]


def test_failed_insert_sends_no_notification(client, device, employee):
    with mock.patch.object(
        attendance_repo, "create", side_effect=sqlite3.OperationalError("database is locked")
    ):
        with mock.patch.object(
            attendance_ingest_service.notifier, "notify_attendance_async"
        ) as notify:
            response = push_attlog(client, "123\t2024-01-10 09:00:00\t1")

    assert response.data == b"OK: 0"
    notify.assert_not_called()


def test_successful_punch_notifies_user_and_manager(client, device, employee, manager):
    push_attlog(client, "123\t2024-01-10 09:00:00\t1")
    notification_dispatcher.wait_until_idle()

    own = notification_repo.get_for_user(employee.id)
    assert len(own) == 1
    assert "Ravi" in own[0].message
    assert "punched in via biometric" in own[0].message
    assert own[0].type == "greeting"

    for_manager = notification_repo.get_for_user(manager.id)
    assert len(for_manager) == 1
    assert for_manager[0].message == "Ravi punched in via biometric device."
    assert for_manager[0].type == "info"


def test_notification_failure_does_not_affect_reply(client, device, employee):
    with mock.patch.object(notification_repo, "create", side_effect=RuntimeError("boom")):
        response = push_attlog(client, "123\t2024-01-10 09:00:00\t1")
        notification_dispatcher.wait_until_idle()

    assert response.data == b"OK: 1"
    assert attendance_repo.get_total_count() == 1


def test_user_without_manager_gets_only_own_notification(client, device):
    user_repo.create(User(id="emp-55", name="Asha", biometric_id="55"))

    push_attlog(client, "55\t2024-01-10 18:30:00\t0")
    notification_dispatcher.wait_until_idle()

    notifications = notification_repo.get_for_user("emp-55")
    assert len(notifications) == 1
    assert "punched out" in notifications[0].message
