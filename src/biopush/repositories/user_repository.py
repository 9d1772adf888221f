from typing import Dict, Any, List, Optional
from datetime import datetime
from biopush.models.user import User
from biopush.database.connection import db_manager

class UserRepository:
    """User directory database operations"""

    def create(self, user: User) -> User:
        """Create new user; raises sqlite3.IntegrityError on duplicate id or biometric_id"""
        query = '''
            INSERT INTO users (
                id, name, email, role_id, biometric_id, organization_id,
                organization_name, reporting_manager_id, photo_url
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        '''

        db_manager.execute_query(query, (
            user.id, user.name, user.email, user.role_id, user.biometric_id,
            user.organization_id, user.organization_name, user.reporting_manager_id,
            user.photo_url
        ))

        return self.get_by_id(user.id)

    def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by internal ID"""
        row = db_manager.fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))
        return self._row_to_user(row) if row else None

    def get_by_biometric_id(self, biometric_id: str) -> Optional[User]:
        """Get user by device PIN (exact match)"""
        row = db_manager.fetch_one("SELECT * FROM users WHERE biometric_id = ?", (biometric_id,))
        return self._row_to_user(row) if row else None

    def get_all(self, organization_id: str = None) -> List[User]:
        """Get all users, optionally filtered by organization"""
        if organization_id:
            rows = db_manager.fetch_all(
                "SELECT * FROM users WHERE organization_id = ? ORDER BY created_at DESC",
                (organization_id,)
            )
        else:
            rows = db_manager.fetch_all("SELECT * FROM users ORDER BY created_at DESC")
        return [self._row_to_user(row) for row in rows]

    def update(self, user_id: str, updates: Dict[str, Any]) -> bool:
        """Update user"""
        updates['updated_at'] = datetime.now()

        set_clause = ', '.join([f"{key} = ?" for key in updates.keys()])
        query = f"UPDATE users SET {set_clause} WHERE id = ?"

        cursor = db_manager.execute_query(query, (*updates.values(), user_id))
        return cursor.rowcount > 0

    def _row_to_user(self, row) -> User:
        """Convert database row to User object"""
        return User(
            id=row['id'],
            name=row['name'],
            email=row['email'],
            role_id=row['role_id'],
            biometric_id=row['biometric_id'],
            organization_id=row['organization_id'],
            organization_name=row['organization_name'],
            reporting_manager_id=row['reporting_manager_id'],
            photo_url=row['photo_url'],
            created_at=row['created_at'],
            updated_at=row['updated_at']
        )
