from dataclasses import dataclass
from typing import Optional
from datetime import datetime


class NotificationType:
    GREETING = 'greeting'
    INFO = 'info'


@dataclass
class Notification:
    """Message addressed to a user"""
    user_id: str
    message: str
    type: str = NotificationType.INFO
    link: Optional[str] = None
    is_read: bool = False
    id: Optional[int] = None
    created_at: Optional[datetime] = None
