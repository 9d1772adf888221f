from datetime import datetime, timedelta, timezone
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR

from biopush.config import settings
from biopush.repositories import device_repo
from biopush.shared.logger import app_logger


def mark_stale_devices_offline(offline_after_seconds: int, now: datetime = None) -> int:
    """Flip devices silent for longer than offline_after_seconds to offline"""
    now = now or datetime.now(timezone.utc)
    cutoff = (now - timedelta(seconds=offline_after_seconds)).isoformat(timespec="seconds")

    count = device_repo.mark_stale_offline(cutoff)
    if count:
        app_logger.info(f"[CRON] Marked {count} device(s) offline (not seen since {cutoff})")
    return count


class SchedulerService:
    """Service for managing scheduled tasks"""

    def __init__(self):
        self.scheduler = None
        self.logger = app_logger
        self.is_running = False

    def start(
        self,
        offline_after_seconds: int = None,
        interval_seconds: int = None,
    ):
        """Start the scheduler"""
        if self.scheduler and self.is_running:
            self.logger.warning("Scheduler is already running")
            return

        try:
            self.scheduler = BackgroundScheduler()

            self.scheduler.add_listener(self._job_executed_listener, EVENT_JOB_EXECUTED)
            self.scheduler.add_listener(self._job_error_listener, EVENT_JOB_ERROR)

            self._add_device_liveness_job(
                offline_after_seconds or settings.DEVICE_OFFLINE_AFTER_SECONDS,
                interval_seconds or settings.DEVICE_SWEEP_INTERVAL_SECONDS,
            )

            self.scheduler.start()
            self.is_running = True

            self.logger.info("Scheduler service started successfully")

        except Exception as e:
            self.logger.error(f"Failed to start scheduler: {e}")
            raise

    def stop(self):
        """Stop the scheduler"""
        if self.scheduler and self.is_running:
            try:
                self.scheduler.shutdown(wait=False)
                self.is_running = False
                self.logger.info("Scheduler service stopped")
            except Exception as e:
                self.logger.error(f"Error stopping scheduler: {e}")

    def _add_device_liveness_job(self, offline_after_seconds: int, interval_seconds: int):
        """Add periodic sweep that marks silent devices offline"""
        self.scheduler.add_job(
            func=mark_stale_devices_offline,
            args=[offline_after_seconds],
            trigger=IntervalTrigger(seconds=interval_seconds),
            id="device_liveness_sweep",
            name="Device Liveness Sweep",
            replace_existing=True,
            max_instances=1,  # Prevent overlapping executions
            coalesce=True,
        )

        self.logger.info(
            f"Device liveness sweep scheduled every {interval_seconds}s "
            f"(offline after {offline_after_seconds}s)"
        )

    def _job_executed_listener(self, event):
        self.logger.debug(f"[CRON] Job {event.job_id} executed")

    def _job_error_listener(self, event):
        self.logger.error(f"[CRON] Job {event.job_id} failed: {event.exception}")


scheduler_service = SchedulerService()
