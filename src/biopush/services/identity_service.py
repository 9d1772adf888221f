"""Provisioning of backing login identities for auto-enrolled users."""

import secrets
import sqlite3
import string
import uuid
from typing import Dict, Any, Optional, Tuple

from werkzeug.security import generate_password_hash

from biopush.models import Identity
from biopush.repositories import identity_repo
from biopush.shared.logger import app_logger

PASSWORD_ALPHABET = string.ascii_lowercase + string.digits


def generate_password(length: int = 12) -> str:
    """Random credential for identities nobody logs into until a reset"""
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


class IdentityService:
    """Creates login identities; passwords are only ever stored hashed"""

    def create_identity(
        self,
        email: str,
        password: str,
        user_metadata: Optional[Dict[str, Any]] = None,
        email_confirm: bool = True,
    ) -> Identity:
        """
        Create a new identity.

        Raises:
            sqlite3.IntegrityError: If the email is already registered
        """
        identity = Identity(
            id=str(uuid.uuid4()),
            email=email.lower(),
            password_hash=generate_password_hash(password),
            email_confirmed=email_confirm,
            user_metadata=user_metadata or {},
        )
        created = identity_repo.create(identity)
        app_logger.info(f"[IDENTITY] Created identity {created.id} for {created.email}")
        return created

    def ensure_identity(
        self, email: str, user_metadata: Optional[Dict[str, Any]] = None
    ) -> Tuple[Identity, bool]:
        """
        Return the identity for email, creating it with a random password if missing.

        Returns:
            Tuple of (identity, created)
        """
        existing = identity_repo.get_by_email(email)
        if existing:
            return existing, False

        try:
            return self.create_identity(email, generate_password(), user_metadata), True
        except sqlite3.IntegrityError:
            # Lost a race with a concurrent sync of the same roster
            existing = identity_repo.get_by_email(email)
            if existing:
                return existing, False
            raise


identity_service = IdentityService()
