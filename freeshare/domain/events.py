"""
Domain Events

Immutable records of significant state changes in the share lifecycle.
Events decouple side effects (logging, progress reporting) from core business logic.
"""

from abc import ABC
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Base class for all domain events.

    Attributes:
        aggregate_id: Share code of the record that generated the event
        occurred_at: Timestamp when the event occurred
    """
    aggregate_id: str
    occurred_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert event to dictionary for serialization.

        Returns:
            Dictionary representation of the event
        """
        return {
            "event_type": self.__class__.__name__,
            "aggregate_id": self.aggregate_id,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class ShareUploadProgressEvent(DomainEvent):
    """
    Emitted as an upload moves through its phases.

    Attributes:
        phase: One of validating, encrypting, storing, committing, completed
        percentage: Coarse progress, 0-100
    """
    phase: str
    percentage: int

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "phase": self.phase,
            "percentage": self.percentage,
        })
        return base_dict


@dataclass(frozen=True)
class ShareCreatedEvent(DomainEvent):
    """Emitted once a share record has been committed."""
    file_name: str
    file_size: int
    is_password_protected: bool
    expires_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "file_name": self.file_name,
            "file_size": self.file_size,
            "is_password_protected": self.is_password_protected,
            "expires_at": self.expires_at.isoformat(),
        })
        return base_dict


@dataclass(frozen=True)
class ShareFetchedEvent(DomainEvent):
    """Emitted when a share code is resolved and a fresh link is issued."""
    link_expires_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict["link_expires_at"] = self.link_expires_at.isoformat()
        return base_dict


@dataclass(frozen=True)
class ShareDownloadedEvent(DomainEvent):
    """Emitted after bytes were materialized for a downloader."""
    downloads_count: int
    byte_count: int

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "downloads_count": self.downloads_count,
            "byte_count": self.byte_count,
        })
        return base_dict


@dataclass(frozen=True)
class ShareExpiredEvent(DomainEvent):
    """
    Emitted when an expired record is purged.

    Attributes:
        trigger: 'access' for lazy purges on fetch, 'reclaim' when an upload
            takes over the code, 'sweep' for the sweeper
        purged: False when the purge itself failed
    """
    trigger: str
    purged: bool

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "trigger": self.trigger,
            "purged": self.purged,
        })
        return base_dict


@dataclass(frozen=True)
class ShareSweepCompletedEvent(DomainEvent):
    """Emitted after a retention sweep. aggregate_id is 'sweep'."""
    purged_count: int
    error_count: int

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "purged_count": self.purged_count,
            "error_count": self.error_count,
        })
        return base_dict
