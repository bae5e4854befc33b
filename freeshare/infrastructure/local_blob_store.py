"""
Local Blob Store Implementation

Concrete implementation of IBlobStore on the local filesystem. Each blob is
written to base_path/<key>, with a sidecar '<key>~meta.json' holding its
content type and metadata. Read access is granted through HMAC-signed URLs
served by the /api/v1/blobs endpoint.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from freeshare.domain.errors import StorageError, ValidationError
from freeshare.domain.sharing.blob_store import IBlobStore
from freeshare.domain.sharing.signed_url_service import SignedUrlService

logger = logging.getLogger(__name__)

# BlobKey.sanitize drops "~", so no derived key ends with this suffix
META_SUFFIX = "~meta.json"


class LocalBlobStore(IBlobStore):
    """
    Local filesystem implementation of IBlobStore.

    Thread Safety:
        Writes go to a temporary file that is renamed into place, so readers
        never observe a partially written blob.

    Attributes:
        base_path: Base directory path for blob storage
        signed_url_service: Signs and verifies blob URLs
    """

    def __init__(self, base_path: str, signed_url_service: SignedUrlService):
        self.base_path = Path(base_path).resolve()
        self.signed_url_service = signed_url_service
        self._ensure_base_directory()

    def _ensure_base_directory(self) -> None:
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                f"Failed to create storage directory: {self.base_path}", e
            ) from e

    def _resolve(self, key: str) -> Path:
        """
        Map a blob key onto a path under base_path.

        Raises:
            ValidationError: Empty key or a key escaping base_path
        """
        if not key or not key.strip():
            raise ValidationError("Blob key cannot be empty")

        full_path = (self.base_path / key).resolve()
        if full_path != self.base_path and self.base_path not in full_path.parents:
            raise ValidationError(f"Blob key escapes storage root: {key!r}")
        if full_path.name.endswith(META_SUFFIX):
            raise ValidationError(f"Blob key uses a reserved suffix: {key!r}")
        return full_path

    @staticmethod
    def _meta_path(full_path: Path) -> Path:
        return full_path.with_name(full_path.name + META_SUFFIX)

    # IBlobStore interface methods

    def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        full_path = self._resolve(key)
        sidecar = {"content_type": content_type, "metadata": dict(metadata or {})}

        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            self._write_atomic(full_path, data)
        except OSError as e:
            raise StorageError(f"Failed to store blob {key}: {e}", e) from e

        try:
            self._write_atomic(
                self._meta_path(full_path), json.dumps(sidecar).encode("utf-8")
            )
        except OSError as e:
            # No orphaned blob without its sidecar
            full_path.unlink(missing_ok=True)
            self._prune_empty_parents(full_path.parent)
            raise StorageError(f"Failed to store metadata for blob {key}: {e}", e) from e

        logger.debug(f"Stored blob {key} ({len(data)} bytes, {content_type})")

    def get(self, key: str) -> Optional[bytes]:
        full_path = self._resolve(key)
        if not full_path.is_file():
            return None

        try:
            return full_path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read blob {key}: {e}", e) from e

    def get_content_type(self, key: str) -> Optional[str]:
        sidecar = self._read_sidecar(key)
        if sidecar is None:
            return None
        return sidecar.get("content_type")

    def get_metadata(self, key: str) -> Optional[Dict[str, str]]:
        """Metadata passed to put(), or None if the blob is missing."""
        sidecar = self._read_sidecar(key)
        if sidecar is None:
            return None
        return sidecar.get("metadata", {})

    def delete(self, key: str) -> bool:
        full_path = self._resolve(key)
        try:
            removed = full_path.is_file()
            full_path.unlink(missing_ok=True)
            self._meta_path(full_path).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete blob {key}: {e}", e) from e

        self._prune_empty_parents(full_path.parent)
        return removed

    def exists(self, key: str) -> bool:
        try:
            return self._resolve(key).is_file()
        except (ValidationError, OSError):
            return False

    def signed_get(self, key: str, ttl_seconds: int) -> str:
        if not self.exists(key):
            raise StorageError(f"Cannot sign missing blob {key}")
        return self.signed_url_service.generate_signed_url(key, ttl_seconds).url

    def read_signed_url(self, url: str, expected_key: Optional[str] = None) -> bytes:
        key = self.signed_url_service.verify_url(url)
        if expected_key is not None and key != expected_key:
            raise ValidationError("Signed URL was issued for a different blob")
        data = self.get(key)
        if data is None:
            raise StorageError(f"Blob {key} no longer exists")
        return data

    # Helpers

    def _read_sidecar(self, key: str) -> Optional[Dict[str, Any]]:
        meta_path = self._meta_path(self._resolve(key))
        try:
            return json.loads(meta_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read metadata for blob {key}: {e}", e) from e

    @staticmethod
    def _write_atomic(path: Path, data: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _prune_empty_parents(self, directory: Path) -> None:
        # files/{code}/ directories are left behind once their last blob goes
        while directory != self.base_path and self.base_path in directory.parents:
            try:
                directory.rmdir()
            except OSError:
                return
            directory = directory.parent
