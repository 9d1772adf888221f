from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from datetime import datetime


@dataclass
class Identity:
    """Backing login identity for a user"""

    id: str
    email: str
    password_hash: str
    email_confirmed: bool = False
    user_metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
