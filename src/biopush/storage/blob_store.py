"""
Local blob storage for device uploads (enrollment photos).

Files live under ``<BLOB_DIR>/<bucket>/<key>`` and are served publicly at
``<PUBLIC_BASE_URL>/storage/<bucket>/<key>``.
"""

import os
import re
from typing import Optional

from biopush.config import settings
from biopush.shared.logger import app_logger

# Letters, digits, dot, dash, underscore; names made only of dots are refused
_SAFE_NAME = re.compile(r"^(?!\.+$)[A-Za-z0-9._-]+$")

AVATAR_BUCKET = "avatars"

# Buckets readable through the /storage route
PUBLIC_BUCKETS = frozenset({AVATAR_BUCKET})


class BlobStore:
    """Key-value file store with public URL issuance"""

    def __init__(
        self,
        root_dir: Optional[str] = None,
        public_base_url: Optional[str] = None,
        public_buckets=PUBLIC_BUCKETS,
    ):
        self.root_dir = settings.resolve_data_path(root_dir or settings.BLOB_DIR)
        self.public_buckets = frozenset(public_buckets)
        self.public_base_url = (public_base_url or settings.PUBLIC_BASE_URL).rstrip("/")

    def _path_for(self, bucket: str, key: str) -> str:
        """
        Filesystem path for bucket/key.

        Raises:
            ValueError: If either part is not a plain file name
        """
        if not _SAFE_NAME.match(bucket) or not _SAFE_NAME.match(key):
            raise ValueError(f"Invalid blob location: {bucket}/{key}")
        return os.path.join(self.root_dir, bucket, key)

    def upload(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        upsert: bool = False,
    ) -> str:
        """
        Store bytes under bucket/key.

        Raises:
            FileExistsError: If the key exists and upsert is False
            ValueError: If bucket or key is not a plain file name
        """
        filepath = self._path_for(bucket, key)

        if os.path.exists(filepath) and not upsert:
            raise FileExistsError(f"Blob already exists: {bucket}/{key}")

        os.makedirs(os.path.dirname(filepath), exist_ok=True)

        # Write to a temp file first so readers never see a partial image
        tmp_path = f"{filepath}.part"
        with open(tmp_path, "wb") as f:
            f.write(data)
        os.replace(tmp_path, filepath)

        app_logger.debug(
            f"[STORAGE] Stored {bucket}/{key} ({len(data)} bytes, {content_type})"
        )
        return filepath

    def download(self, bucket: str, key: str) -> Optional[bytes]:
        """Read bytes for bucket/key, None if missing"""
        filepath = self._path_for(bucket, key)
        if not os.path.exists(filepath):
            return None
        with open(filepath, "rb") as f:
            return f.read()

    def get_public_url(self, bucket: str, key: str) -> str:
        self._path_for(bucket, key)
        return f"{self.public_base_url}/storage/{bucket}/{key}"

    def public_path_for(self, bucket: str, key: str) -> Optional[str]:
        """Path of an existing blob in a public bucket, None for anything else"""
        if bucket not in self.public_buckets:
            return None
        try:
            filepath = self._path_for(bucket, key)
        except ValueError:
            return None
        return filepath if os.path.isfile(filepath) else None


blob_store = BlobStore()
