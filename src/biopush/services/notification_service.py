"""
Best-effort attendance notifications.

Notifications are handed to a single background worker so that a slow or failing
notification insert can never block or fail event ingestion.
"""

import queue
import threading
from datetime import datetime
from typing import Callable, Optional

from biopush.models import EventType, Notification, NotificationType, User
from biopush.repositories import notification_repo
from biopush.shared.logger import app_logger

_STOP = object()


class NotificationDispatcher:
    """Fire-and-forget job queue drained by one daemon thread"""

    def __init__(self, max_queue_size: int = 1000):
        self._queue: queue.Queue = queue.Queue(maxsize=max_queue_size)
        self._worker: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(
                    target=self._run, name="notification-dispatcher", daemon=True
                )
                self._worker.start()

    def _run(self) -> None:
        while True:
            job = self._queue.get()
            try:
                if job is _STOP:
                    break
                func, args, kwargs = job
                func(*args, **kwargs)
            except Exception as e:
                app_logger.error(f"[NOTIFY] Notification job failed: {e}", exc_info=True)
            finally:
                self._queue.task_done()

    def submit(self, func: Callable, *args, **kwargs) -> bool:
        """Queue a job without blocking; drops it when the queue is full"""
        self._ensure_worker()
        try:
            self._queue.put_nowait((func, args, kwargs))
            return True
        except queue.Full:
            app_logger.warning("[NOTIFY] Notification queue full, dropping job")
            return False

    def wait_until_idle(self) -> None:
        """Block until every queued job has run"""
        self._queue.join()

    def stop(self) -> None:
        """Drain pending jobs and stop the worker"""
        with self._lock:
            worker = self._worker
        if worker is None or not worker.is_alive():
            return
        self._queue.put(_STOP)
        worker.join(timeout=10)
        with self._lock:
            self._worker = None


def time_of_day_greeting(now: Optional[datetime] = None) -> str:
    hour = (now or datetime.now()).hour
    if hour < 12:
        return "Good Morning"
    if hour < 17:
        return "Good Afternoon"
    return "Good Evening"


def notify_attendance(user: User, event_type: str, now: Optional[datetime] = None) -> None:
    """Notify the user and their reporting manager about a recorded punch"""
    try:
        greeting = time_of_day_greeting(now)
        action_text = "punched in" if event_type == EventType.PUNCH_IN else "punched out"

        notification_repo.create(Notification(
            user_id=user.id,
            message=(
                f"{greeting}, {user.name or 'there'}! "
                f"Successfully recorded {action_text} via biometric."
            ),
            type=NotificationType.GREETING,
        ))

        if user.reporting_manager_id:
            notification_repo.create(Notification(
                user_id=user.reporting_manager_id,
                message=f"{user.name or 'An employee'} {action_text} via biometric device.",
                type=NotificationType.INFO,
            ))
    except Exception as e:
        app_logger.error(f"[NOTIFY] Attendance notification failed for user {user.id}: {e}")


class NotificationService:
    """Queues attendance notifications on the background dispatcher"""

    def __init__(self, dispatcher: NotificationDispatcher):
        self.dispatcher = dispatcher

    def notify_attendance_async(self, user: User, event_type: str) -> None:
        try:
            self.dispatcher.submit(notify_attendance, user, event_type)
        except Exception as e:
            app_logger.error(f"[NOTIFY] Could not queue notification for user {user.id}: {e}")


notification_dispatcher = NotificationDispatcher()
notification_service = NotificationService(notification_dispatcher)
