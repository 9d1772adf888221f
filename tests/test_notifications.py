import threading
from datetime import datetime
from unittest import mock

import pytest

from biopush.models import EventType, User
from biopush.repositories import notification_repo
from biopush.services.notification_service import (
    NotificationDispatcher,
    notify_attendance,
    time_of_day_greeting,
)


@pytest.mark.parametrize(
    "hour, greeting",
    [
        (0, "Good Morning"),
        (11, "Good Morning"),
        (12, "Good Afternoon"),
        (16, "Good Afternoon"),
        (17, "Good Evening"),
        (23, "Good Evening"),
    ],
)
def test_greeting_depends_on_hour(hour, greeting):
    assert time_of_day_greeting(datetime(2024, 1, 10, hour, 30)) == greeting


def test_punch_in_messages():
    user = User(id="emp-1", name="Ravi", reporting_manager_id="mgr-1")

    notify_attendance(user, EventType.PUNCH_IN, now=datetime(2024, 1, 10, 9, 0))

    own = notification_repo.get_for_user("emp-1")
    assert [n.message for n in own] == [
        "Good Morning, Ravi! Successfully recorded punched in via biometric."
    ]
    manager = notification_repo.get_for_user("mgr-1")
    assert [n.message for n in manager] == ["Ravi punched in via biometric device."]
    assert manager[0].is_read is False


def test_punch_out_message_for_unnamed_user():
    user = User(id="emp-2", name="", reporting_manager_id="mgr-1")

    notify_attendance(user, EventType.PUNCH_OUT, now=datetime(2024, 1, 10, 19, 0))

    assert notification_repo.get_for_user("emp-2")[0].message == (
        "Good Evening, there! Successfully recorded punched out via biometric."
    )
    assert notification_repo.get_for_user("mgr-1")[0].message == (
        "An employee punched out via biometric device."
    )


def test_notification_errors_are_swallowed():
    user = User(id="emp-3", name="Asha")

    with mock.patch.object(notification_repo, "create", side_effect=RuntimeError("down")):
        notify_attendance(user, EventType.PUNCH_IN)


def test_dispatcher_keeps_running_after_a_failed_job():
    dispatcher = NotificationDispatcher()
    done = threading.Event()

    def failing():
        raise RuntimeError("boom")

    dispatcher.submit(failing)
    dispatcher.submit(done.set)
    dispatcher.wait_until_idle()

    assert done.is_set()
    dispatcher.stop()


def test_dispatcher_drops_jobs_when_full():
    dispatcher = NotificationDispatcher(max_queue_size=1)
    release = threading.Event()
    started = threading.Event()

    def blocking():
        started.set()
        release.wait(timeout=5)

    assert dispatcher.submit(blocking) is True
    assert started.wait(timeout=5)
    assert dispatcher.submit(lambda: None) is True
    assert dispatcher.submit(lambda: None) is False

    release.set()
    dispatcher.wait_until_idle()
    dispatcher.stop()
