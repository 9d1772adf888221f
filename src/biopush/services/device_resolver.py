from dataclasses import dataclass
from typing import Optional

from biopush.repositories import device_repo
from biopush.shared.logger import app_logger

DEFAULT_LOCATION_LABEL = "Biometric Device"
DEFAULT_SITE_LABEL = "site"


@dataclass
class ResolvedDevice:
    """Attribution data for every event a device reports"""

    id: str
    serial_number: str
    organization_id: Optional[str]
    location_label: str  # Stamped on attendance events
    site_label: str  # Used for auto-enrollment logins and organization_name


class DeviceIdentityResolver:
    """Maps serial numbers to registered devices and tracks their liveness"""

    def resolve(self, serial_number: str) -> Optional[ResolvedDevice]:
        """
        Look up a device by serial number (case-insensitive).

        Lookup errors are logged and treated as an unknown device.
        """
        try:
            device = device_repo.get_by_serial_number(serial_number)
        except Exception as e:
            app_logger.error(f"[PUSH] Device lookup failed for SN={serial_number}: {e}")
            return None

        if not device:
            return None

        return ResolvedDevice(
            id=device.id,
            serial_number=device.sn,
            organization_id=device.organization_id,
            location_label=(
                device.location_name
                or device.organization_full_name
                or DEFAULT_LOCATION_LABEL
            ),
            site_label=(
                device.location_name
                or device.organization_short_name
                or DEFAULT_SITE_LABEL
            ),
        )

    def record_heartbeat(self, serial_number: str) -> bool:
        """Handshake liveness update; unknown devices are a logged no-op"""
        try:
            updated = device_repo.touch_by_serial_number(serial_number)
        except Exception as e:
            app_logger.error(f"[PUSH] Handshake status update failed for SN={serial_number}: {e}")
            return False

        if not updated:
            app_logger.warning(f"[PUSH] Handshake from unregistered device SN={serial_number}")
            return False
        return True

    def refresh_liveness(self, device: ResolvedDevice) -> None:
        try:
            device_repo.touch(device.id)
        except Exception as e:
            app_logger.error(f"[PUSH] Failed to refresh last_seen for device {device.id}: {e}")


device_resolver = DeviceIdentityResolver()
