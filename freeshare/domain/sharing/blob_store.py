"""
Blob Store Interface

Abstract interface for opaque payload storage addressed by key.
Keeps the share workflow independent of any concrete storage backend.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional


class IBlobStore(ABC):
    """
    Contract for the blob store backing shared files.

    Contract Guarantees:
    - put() overwrites an existing blob under the same key
    - get() returns None for missing blobs (no exceptions)
    - delete() is idempotent: deleting a missing blob is not an error
    - signed_get() URLs are independent; issuing one never revokes another
    - Backend failures surface as StorageError, timeouts as TransientError
    """

    @abstractmethod
    def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        """
        Store a payload.

        Args:
            key: Blob key (e.g. 'files/54321/1700000000000_report.pdf')
            data: Payload bytes
            content_type: Content type to serve the blob with
            metadata: Extra string metadata stored with the blob

        Raises:
            StorageError: If the write fails
        """
        pass  # pragma: no cover

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """
        Read a payload.

        Returns:
            Payload bytes, or None if the blob does not exist
        """
        pass  # pragma: no cover

    @abstractmethod
    def get_content_type(self, key: str) -> Optional[str]:
        """Content type recorded at put() time, or None if the blob is missing."""
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete a payload.

        Returns:
            True if a blob was removed, False if there was nothing to remove

        Raises:
            StorageError: If the backend refuses the delete
        """
        pass  # pragma: no cover

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Never raises; errors read as False."""
        pass  # pragma: no cover

    @abstractmethod
    def signed_get(self, key: str, ttl_seconds: int) -> str:
        """
        Issue a time-limited URL granting read access to a blob.

        Args:
            key: Blob key
            ttl_seconds: Validity of the URL

        Returns:
            Signed URL string

        Raises:
            StorageError: If the blob does not exist
        """
        pass  # pragma: no cover

    @abstractmethod
    def read_signed_url(self, url: str, expected_key: Optional[str] = None) -> bytes:
        """
        Fetch the bytes a signed URL points at.

        Args:
            url: Signed URL from signed_get()
            expected_key: When given, the URL must have been signed for this key

        Raises:
            ValidationError: If the URL or its signature is invalid, or it
                points at a key other than expected_key
            ExpiredError: If the URL has expired
            StorageError: If the blob is gone
        """
        pass  # pragma: no cover
