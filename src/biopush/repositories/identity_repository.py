import json
from typing import Optional
from biopush.models.identity import Identity
from biopush.database.connection import db_manager


class IdentityRepository:
    """Login identity database operations"""

    def create(self, identity: Identity) -> Identity:
        query = '''
            INSERT INTO auth_identities (id, email, password_hash, email_confirmed, user_metadata)
            VALUES (?, ?, ?, ?, ?)
        '''
        metadata_json = json.dumps(identity.user_metadata) if identity.user_metadata else None

        db_manager.execute_query(query, (
            identity.id, identity.email, identity.password_hash,
            identity.email_confirmed, metadata_json
        ))
        return self.get_by_id(identity.id)

    def get_by_id(self, identity_id: str) -> Optional[Identity]:
        row = db_manager.fetch_one("SELECT * FROM auth_identities WHERE id = ?", (identity_id,))
        return self._row_to_identity(row) if row else None

    def get_by_email(self, email: str) -> Optional[Identity]:
        row = db_manager.fetch_one(
            "SELECT * FROM auth_identities WHERE email = ?", (email.lower(),)
        )
        return self._row_to_identity(row) if row else None

    def _row_to_identity(self, row) -> Identity:
        return Identity(
            id=row['id'],
            email=row['email'],
            password_hash=row['password_hash'],
            email_confirmed=bool(row['email_confirmed']),
            user_metadata=json.loads(row['user_metadata']) if row['user_metadata'] else {},
            created_at=row['created_at']
        )
