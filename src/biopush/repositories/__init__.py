from biopush.repositories.device_repository import DeviceRepository
from biopush.repositories.organization_repository import OrganizationRepository
from biopush.repositories.user_repository import UserRepository
from biopush.repositories.identity_repository import IdentityRepository
from biopush.repositories.attendance_repository import AttendanceRepository
from biopush.repositories.notification_repository import NotificationRepository

# Repository instances
device_repo = DeviceRepository()
organization_repo = OrganizationRepository()
user_repo = UserRepository()
identity_repo = IdentityRepository()
attendance_repo = AttendanceRepository()
notification_repo = NotificationRepository()


__all__ = [
    "DeviceRepository",
    "OrganizationRepository",
    "UserRepository",
    "IdentityRepository",
    "AttendanceRepository",
    "NotificationRepository",
    "device_repo",
    "organization_repo",
    "user_repo",
    "identity_repo",
    "attendance_repo",
    "notification_repo",
]
