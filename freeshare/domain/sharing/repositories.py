"""
Sharing Repositories

Repository interface for share metadata persistence.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from .entities import ShareRecord


class ShareRepository(ABC):
    """Abstract repository interface for share record persistence."""

    @abstractmethod
    def insert(self, record: ShareRecord) -> None:
        """
        Insert a new share record.

        Args:
            record: ShareRecord to persist

        Raises:
            ShareCodeConflictError: If a record already uses the share code
            StorageError: If the backend write fails
            TransientError: If the backend times out
        """
        pass

    @abstractmethod
    def find_by_code(self, share_code: str) -> Optional[ShareRecord]:
        """
        Retrieve a record by share code.

        Expired records are still returned; expiry is the caller's decision.

        Returns:
            ShareRecord if found, None otherwise
        """
        pass

    @abstractmethod
    def update(self, share_code: str, fields: Dict[str, Any]) -> bool:
        """
        Overwrite selected fields of a stored record.

        Args:
            share_code: Share code of the record
            fields: Field name -> new value

        Returns:
            True if the record existed and was updated, False otherwise
        """
        pass

    @abstractmethod
    def delete(self, share_code: str) -> bool:
        """
        Delete a record. Idempotent.

        Returns:
            True if a record was removed, False if none existed
        """
        pass

    @abstractmethod
    def find_expired_before(self, timestamp: datetime) -> List[ShareRecord]:
        """
        Get records whose expires_at is strictly before timestamp.

        Returns:
            List of expired ShareRecord instances
        """
        pass

    @abstractmethod
    def list_all(self) -> List[ShareRecord]:
        """Get every stored record, live or expired."""
        pass
