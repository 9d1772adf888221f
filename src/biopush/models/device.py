from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional
from datetime import datetime


class DeviceStatus:
    """Liveness status constants for biometric devices"""
    ONLINE = 'online'
    OFFLINE = 'offline'


@dataclass
class Device:
    """Biometric device registered by an administrator"""

    id: str
    sn: str  # Serial number, stored lowercase
    name: str
    location_name: Optional[str] = None  # Manual label, wins over organization name
    organization_id: Optional[str] = None
    status: str = DeviceStatus.OFFLINE
    last_seen: Optional[str] = None  # UTC ISO-8601
    ip_address: Optional[str] = None
    port: Optional[int] = None
    organization_full_name: Optional[str] = None  # Joined from organizations
    organization_short_name: Optional[str] = None  # Joined from organizations
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses"""
        return asdict(self)
