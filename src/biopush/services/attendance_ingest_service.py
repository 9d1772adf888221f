"""
ATTLOG ingestion.

Payload format (tab separated, one punch per line):
    biometric_id \t timestamp \t status [\t verify_type \t ...]
    123\t2024-01-10 09:00:00\t1\t1

Status "1" is a punch-in, any other value (or a missing field) is a punch-out.
NOTE: another vendor integration documents the opposite convention (0=in, 1=out);
this mapping matches how the deployed devices are configured and is kept as is.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from biopush.models import AttendanceEvent, EventType
from biopush.repositories import attendance_repo, user_repo
from biopush.services.device_resolver import ResolvedDevice
from biopush.services.notification_service import NotificationService, notification_service
from biopush.shared.logger import app_logger

PUNCH_IN_STATUS = "1"


@dataclass
class AttendanceLine:
    biometric_id: str
    timestamp: str
    status: Optional[str]
    raw: str


@dataclass
class IngestResult:
    """Outcome of one ATTLOG push"""

    total_lines: int = 0
    success_count: int = 0
    errors: List[Tuple[str, str]] = field(default_factory=list)  # (line, reason)


def event_type_for_status(status: Optional[str]) -> str:
    return EventType.PUNCH_IN if status == PUNCH_IN_STATUS else EventType.PUNCH_OUT


def parse_attendance_payload(payload: str) -> List[AttendanceLine]:
    """Split an ATTLOG body into lines, skipping blanks and lines with fewer than two fields"""
    lines = []

    for raw_line in payload.split("\n"):
        if not raw_line.strip():
            continue

        parts = raw_line.split("\t")
        if len(parts) < 2:
            app_logger.warning(f"[PUSH] Skipping malformed ATTLOG line: {raw_line!r}")
            continue

        lines.append(AttendanceLine(
            biometric_id=parts[0].strip(),
            timestamp=parts[1].strip(),
            status=parts[2].strip() if len(parts) > 2 else None,
            raw=raw_line,
        ))

    return lines


class AttendanceIngestService:
    """Persists ATTLOG lines as attendance events, one line at a time in payload order"""

    def __init__(self, notifier: NotificationService):
        self.notifier = notifier

    def ingest(self, payload: str, device: ResolvedDevice) -> IngestResult:
        lines = parse_attendance_payload(payload)
        result = IngestResult(total_lines=len(lines))

        for line in lines:
            try:
                user = user_repo.get_by_biometric_id(line.biometric_id)
            except Exception as e:
                app_logger.error(f"[PUSH] User lookup failed for biometric ID {line.biometric_id}: {e}")
                result.errors.append((line.raw, str(e)))
                continue

            if not user:
                app_logger.warning(f"[PUSH] User with biometric ID {line.biometric_id} not found")
                result.errors.append((line.raw, "User not found"))
                continue

            event_type = event_type_for_status(line.status)

            try:
                attendance_repo.create(AttendanceEvent(
                    user_id=user.id,
                    type=event_type,
                    timestamp=line.timestamp,
                    device_id=device.id,
                    location_name=device.location_label,
                ))
            except Exception as e:
                app_logger.error(f"[PUSH] Attendance insert failed for line {line.raw!r}: {e}")
                result.errors.append((line.raw, str(e)))
                continue

            result.success_count += 1
            self.notifier.notify_attendance_async(user, event_type)

        app_logger.info(
            f"[PUSH] ATTLOG from SN={device.serial_number}: {len(lines)} lines, "
            f"{result.success_count} saved, {len(result.errors)} errors"
        )
        return result


attendance_ingest_service = AttendanceIngestService(notification_service)
