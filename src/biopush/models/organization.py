from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional


@dataclass
class Organization:
    """Organization (site / entity) that devices and users belong to"""

    id: str
    full_name: Optional[str] = None
    short_name: Optional[str] = None  # Used in auto-enrollment logins when a device has no location

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
