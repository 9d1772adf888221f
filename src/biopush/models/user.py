from dataclasses import dataclass, asdict
from typing import Optional
from datetime import datetime


@dataclass
class User:
    """Internal user; biometric_id joins device-reported events to this record"""

    id: str
    name: str
    email: Optional[str] = None
    role_id: Optional[str] = None
    biometric_id: Optional[str] = None
    organization_id: Optional[str] = None
    organization_name: Optional[str] = None
    reporting_manager_id: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return asdict(self)
