"""
Roster auto-enrollment (table=USER) and enrollment photos (table=USERPIC).
"""

import re
import sqlite3
from dataclasses import dataclass
from typing import List, Optional, Tuple

from biopush.config import settings
from biopush.models import User
from biopush.repositories import user_repo
from biopush.services.device_resolver import ResolvedDevice
from biopush.services.identity_service import IdentityService, identity_service
from biopush.shared.logger import app_logger
from biopush.storage import AVATAR_BUCKET, BlobStore, blob_store


class EnrollmentConflictError(Exception):
    """The login for a biometric ID already belongs to a user with another biometric ID"""


@dataclass
class RosterEntry:
    biometric_id: str
    name: str


def parse_roster_payload(payload: str) -> List[RosterEntry]:
    """Parse 'biometric_id \\t name' lines; a missing name becomes 'User <id>'"""
    entries = []

    for raw_line in payload.split("\n"):
        if not raw_line.strip():
            continue

        parts = raw_line.split("\t")
        biometric_id = parts[0].strip()
        if not biometric_id:
            app_logger.warning(f"[PUSH] Skipping USER line without biometric ID: {raw_line!r}")
            continue

        name = parts[1].strip() if len(parts) > 1 else ""
        entries.append(RosterEntry(biometric_id=biometric_id, name=name or f"User {biometric_id}"))

    return entries


def sanitize_site_label(label: str) -> str:
    return re.sub(r"[^a-z0-9]", "", label.lower())


def build_enrollment_email(site_label: str, biometric_id: str, domain: str) -> str:
    return f"{sanitize_site_label(site_label)}_{biometric_id}@{domain}".lower()


def photo_key_for(user: User) -> str:
    return f"{user.id}_face.jpg"


class EnrollmentService:
    """Adds device users that the directory does not know yet; never updates existing ones"""

    def __init__(
        self,
        identities: IdentityService,
        storage: BlobStore,
        email_domain: Optional[str] = None,
        default_role: Optional[str] = None,
    ):
        self.identities = identities
        self.storage = storage
        self.email_domain = email_domain or settings.ENROLLMENT_EMAIL_DOMAIN
        self.default_role = default_role or settings.DEFAULT_ENROLLMENT_ROLE

    def ensure_user_for_biometric_id(
        self, biometric_id: str, name: str, device: ResolvedDevice
    ) -> Tuple[User, bool]:
        """
        Return the user for biometric_id, creating identity and profile when missing.

        Safe to repeat: an identity left behind by an earlier failed attempt is reused,
        and a concurrent insert of the same biometric ID is treated as existing.

        Raises:
            EnrollmentConflictError: If the derived login already belongs to another user

        Returns:
            Tuple of (user, created)
        """
        existing = user_repo.get_by_biometric_id(biometric_id)
        if existing:
            return existing, False

        email = build_enrollment_email(device.site_label, biometric_id, self.email_domain)
        identity, _ = self.identities.ensure_identity(email, {"name": name})

        linked = user_repo.get_by_id(identity.id)
        if linked and linked.biometric_id == biometric_id:
            return linked, False
        if linked:
            raise EnrollmentConflictError(
                f"Login {email} is already linked to user {linked.id} "
                f"with biometric ID {linked.biometric_id!r}"
            )

        try:
            user = user_repo.create(User(
                id=identity.id,
                name=name,
                email=email,
                role_id=self.default_role,
                biometric_id=biometric_id,
                organization_id=device.organization_id,
                organization_name=device.site_label,
            ))
        except sqlite3.IntegrityError:
            existing = user_repo.get_by_biometric_id(biometric_id)
            if existing:
                return existing, False
            raise

        app_logger.info(f"[PUSH] Auto-enrolled device user {name} (biometric ID {biometric_id})")
        return user, True

    def sync_roster(self, payload: str, device: ResolvedDevice) -> int:
        """Process a USER push; returns the number of users created"""
        created_count = 0

        for entry in parse_roster_payload(payload):
            try:
                _, created = self.ensure_user_for_biometric_id(
                    entry.biometric_id, entry.name, device
                )
            except EnrollmentConflictError as e:
                app_logger.warning(
                    f"[PUSH] Skipping biometric ID {entry.biometric_id}, needs manual review: {e}"
                )
                continue
            except Exception as e:
                app_logger.error(
                    f"[PUSH] Auto-enrollment failed for biometric ID {entry.biometric_id}: {e}"
                )
                continue

            if created:
                created_count += 1

        app_logger.info(f"[PUSH] USER sync from SN={device.serial_number}: {created_count} created")
        return created_count

    def store_user_photo(self, pin: Optional[str], image: bytes) -> Optional[str]:
        """Store an enrollment photo for the user with this PIN; returns the public URL"""
        if not pin:
            app_logger.warning("[PUSH] USERPIC push without PIN ignored")
            return None

        try:
            user = user_repo.get_by_biometric_id(pin)
            if not user:
                app_logger.warning(f"[PUSH] USERPIC for unknown biometric ID {pin} ignored")
                return None

            key = photo_key_for(user)
            self.storage.upload(AVATAR_BUCKET, key, image, content_type="image/jpeg", upsert=True)
            public_url = self.storage.get_public_url(AVATAR_BUCKET, key)
            user_repo.update(user.id, {"photo_url": public_url})
        except Exception as e:
            app_logger.error(f"[PUSH] Failed to store USERPIC for biometric ID {pin}: {e}")
            return None

        app_logger.info(f"[PUSH] Stored enrollment photo for user {user.id} ({len(image)} bytes)")
        return public_url


enrollment_service = EnrollmentService(identity_service, blob_store)
