"""
Supabase Storage service for form attachments.

Every uploaded file gets a collision-free key:
    {prefix}/{uuid4}-{sanitized_filename}
and is served through the bucket's public URL so LINE can fetch it.
Files are never deleted by the relay.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

logger = logging.getLogger(__name__)

_DEFAULT_CONTENT_TYPE = "application/octet-stream"


class StorageUploadError(Exception):
    """Raised when a file cannot be written to storage or made public."""


@dataclass
class UploadedAsset:
    path: str
    url: str
    content_type: str


def build_storage_path(prefix: str, filename: str) -> str:
    """
    Build a unique storage key for ``filename``.

    Spaces and special characters are replaced with underscores; Supabase
    rejects many non-ASCII characters in object keys.
    """
    sanitized = re.sub(r"[^\w\-.]", "_", filename or "", flags=re.ASCII) or "upload"
    key = f"{uuid4()}-{sanitized}"
    return f"{prefix}/{key}" if prefix else key


class StorageService:
    """
    Wraps a Supabase client bound to one bucket.

    ``client`` may be None when storage credentials are not configured; every
    operation then raises StorageUploadError.
    """

    def __init__(self, client, bucket: str, prefix: str = ""):
        self._client = client
        self.bucket = bucket
        self.prefix = prefix

    def _bucket(self):
        if self._client is None:
            raise StorageUploadError(
                "SUPABASE_URL and SUPABASE_SERVICE_KEY are required for storage operations"
            )
        return self._client.storage.from_(self.bucket)

    def save(self, path: str, data: bytes, content_type: Optional[str] = None) -> None:
        try:
            self._bucket().upload(
                path,
                data,
                {"content-type": content_type or _DEFAULT_CONTENT_TYPE},
            )
        except StorageUploadError:
            raise
        except Exception as e:
            raise StorageUploadError(f"Failed to upload {path} to storage: {str(e)}") from e

    def make_public(self) -> None:
        """
        Make uploaded objects publicly readable.

        Supabase controls public access per bucket rather than per object,
        so this flags the whole bucket as public. The call is idempotent.
        """
        if self._client is None:
            raise StorageUploadError(
                "SUPABASE_URL and SUPABASE_SERVICE_KEY are required for storage operations"
            )
        try:
            self._client.storage.update_bucket(self.bucket, {"public": True})
        except Exception as e:
            raise StorageUploadError(f"Failed to make bucket {self.bucket} public: {str(e)}") from e

    def public_url(self, path: str) -> str:
        try:
            url = self._bucket().get_public_url(path)
        except StorageUploadError:
            raise
        except Exception as e:
            raise StorageUploadError(f"Failed to build public URL for {path}: {str(e)}") from e
        # storage3 appends a bare "?" to public URLs
        return url.rstrip("?")

    def upload_public(
        self,
        data: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> UploadedAsset:
        """Save ``data`` under a fresh key, make it public and return its URL."""
        path = build_storage_path(self.prefix, filename)
        self.save(path, data, content_type)
        self.make_public()
        url = self.public_url(path)
        logger.info(f"Uploaded {filename!r} to {path}")
        return UploadedAsset(
            path=path,
            url=url,
            content_type=content_type or _DEFAULT_CONTENT_TYPE,
        )
