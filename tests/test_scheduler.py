from datetime import datetime, timedelta, timezone

from biopush.models import Device
from biopush.repositories import device_repo
from biopush.services.scheduler_service import SchedulerService, mark_stale_devices_offline

NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


def seen(minutes_ago):
    return (NOW - timedelta(minutes=minutes_ago)).isoformat(timespec="seconds")


def test_sweep_marks_only_silent_online_devices_offline():
    device_repo.create(Device(id="fresh", sn="fresh", name="Fresh", status="online", last_seen=seen(2)))
    device_repo.create(Device(id="stale", sn="stale", name="Stale", status="online", last_seen=seen(30)))
    device_repo.create(Device(id="never", sn="never", name="Never", status="online"))
    device_repo.create(Device(id="idle", sn="idle", name="Idle", status="offline", last_seen=seen(60)))

    count = mark_stale_devices_offline(600, now=NOW)

    assert count == 2
    assert device_repo.get_by_id("fresh").status == "online"
    assert device_repo.get_by_id("stale").status == "offline"
    assert device_repo.get_by_id("never").status == "offline"
    assert device_repo.get_by_id("stale").last_seen == seen(30)


def test_handshake_keeps_device_online_through_sweep(client, device):
    client.get("/iclock/cdata?SN=ABC123")

    assert mark_stale_devices_offline(600) == 0
    assert device_repo.get_by_id(device.id).status == "online"


def test_scheduler_registers_liveness_job():
    scheduler = SchedulerService()
    scheduler.start(offline_after_seconds=300, interval_seconds=30)
    try:
        job = scheduler.scheduler.get_job("device_liveness_sweep")
        assert job is not None
        assert job.args == (300,)
        assert scheduler.is_running is True
    finally:
        scheduler.stop()

    assert scheduler.is_running is False
