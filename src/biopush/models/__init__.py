from biopush.models.device import Device, DeviceStatus
from biopush.models.organization import Organization
from biopush.models.user import User
from biopush.models.identity import Identity
from biopush.models.attendance import AttendanceEvent, EventType
from biopush.models.notification import Notification, NotificationType

__all__ = [
    "Device",
    "DeviceStatus",
    "Organization",
    "User",
    "Identity",
    "AttendanceEvent",
    "EventType",
    "Notification",
    "NotificationType",
]
