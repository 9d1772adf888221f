from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional
from datetime import datetime


class EventType:
    """Attendance event type constants"""
    PUNCH_IN = 'punch-in'
    PUNCH_OUT = 'punch-out'


@dataclass
class AttendanceEvent:
    """Immutable punch record attributed to a user and device"""
    user_id: str
    type: str
    timestamp: str  # Device-local time as sent by the device, e.g. '2024-01-10 09:00:00'
    device_id: Optional[str] = None
    location_name: Optional[str] = None
    is_manual: bool = False
    reason: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses"""
        return asdict(self)
