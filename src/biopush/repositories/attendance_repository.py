from typing import List, Optional
from biopush.models.attendance import AttendanceEvent
from biopush.database.connection import db_manager


class AttendanceRepository:
    """Attendance event database operations (insert-only)"""

    def create(self, event: AttendanceEvent) -> AttendanceEvent:
        """Insert attendance event; commits immediately"""
        query = """
            INSERT INTO attendance_events (
                user_id, type, timestamp, device_id, location_name, is_manual, reason
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
        """

        cursor = db_manager.execute_query(
            query,
            (
                event.user_id,
                event.type,
                event.timestamp,
                event.device_id,
                event.location_name,
                event.is_manual,
                event.reason,
            ),
        )

        return self.get_by_id(cursor.lastrowid)

    def get_by_id(self, event_id: int) -> Optional[AttendanceEvent]:
        """Get attendance event by ID"""
        row = db_manager.fetch_one(
            "SELECT * FROM attendance_events WHERE id = ?", (event_id,)
        )
        return self._row_to_event(row) if row else None

    def get_for_user(self, user_id: str, limit: int = 100) -> List[AttendanceEvent]:
        """Get events for a user, oldest first"""
        rows = db_manager.fetch_all(
            "SELECT * FROM attendance_events WHERE user_id = ? ORDER BY timestamp, id LIMIT ?",
            (user_id, limit),
        )
        return [self._row_to_event(row) for row in rows]

    def get_latest_for_user(self, user_id: str) -> Optional[AttendanceEvent]:
        """Get the most recent event for a user"""
        row = db_manager.fetch_one(
            """
            SELECT * FROM attendance_events
            WHERE user_id = ?
            ORDER BY timestamp DESC, id DESC
            LIMIT 1
            """,
            (user_id,),
        )
        return self._row_to_event(row) if row else None

    def get_by_device(self, device_id: str, limit: int = 1000) -> List[AttendanceEvent]:
        """Get events reported by a device, oldest first"""
        rows = db_manager.fetch_all(
            "SELECT * FROM attendance_events WHERE device_id = ? ORDER BY id LIMIT ?",
            (device_id, limit),
        )
        return [self._row_to_event(row) for row in rows]

    def get_total_count(self) -> int:
        result = db_manager.fetch_one("SELECT COUNT(*) as count FROM attendance_events")
        return result["count"] if result else 0

    def _row_to_event(self, row) -> AttendanceEvent:
        """Convert database row to AttendanceEvent object"""
        return AttendanceEvent(
            id=row["id"],
            user_id=row["user_id"],
            type=row["type"],
            timestamp=row["timestamp"],
            device_id=row["device_id"],
            location_name=row["location_name"],
            is_manual=bool(row["is_manual"]),
            reason=row["reason"],
            created_at=row["created_at"],
        )
