from typing import List
from biopush.models.notification import Notification
from biopush.database.connection import db_manager


class NotificationRepository:
    """Notification database operations"""

    def create(self, notification: Notification) -> int:
        """Insert notification and return its ID"""
        cursor = db_manager.execute_query(
            "INSERT INTO notifications (user_id, message, type, link) VALUES (?, ?, ?, ?)",
            (notification.user_id, notification.message, notification.type, notification.link)
        )
        return cursor.lastrowid

    def get_for_user(self, user_id: str) -> List[Notification]:
        rows = db_manager.fetch_all(
            "SELECT * FROM notifications WHERE user_id = ? ORDER BY id", (user_id,)
        )
        return [
            Notification(
                id=row['id'],
                user_id=row['user_id'],
                message=row['message'],
                type=row['type'],
                link=row['link'],
                is_read=bool(row['is_read']),
                created_at=row['created_at'],
            )
            for row in rows
        ]
