from biopush.storage.blob_store import AVATAR_BUCKET, PUBLIC_BUCKETS, BlobStore, blob_store

__all__ = ["AVATAR_BUCKET", "PUBLIC_BUCKETS", "BlobStore", "blob_store"]
