"""
Sharing Entities

Domain entity for a shared file and its expiry.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from ..errors import ValidationError

DEFAULT_RETENTION = timedelta(days=7)


def utcnow() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class ShareRecord:
    """
    Entity representing one uploaded file reachable through a share code.

    file_name, file_size and mime_type always describe the original file,
    even when the stored payload is encrypted. password_hash and
    encryption_key are set together, exactly when is_password_protected.
    """
    share_code: str
    blob_key: str
    file_name: str
    file_size: int
    mime_type: str
    created_at: datetime
    expires_at: datetime
    is_password_protected: bool = False
    password_hash: Optional[str] = field(default=None, repr=False)
    encryption_key: Optional[str] = field(default=None, repr=False)
    downloads_count: int = 0

    def __post_init__(self):
        self.created_at = _as_utc(self.created_at)
        self.expires_at = _as_utc(self.expires_at)

        has_hash = self.password_hash is not None
        has_key = self.encryption_key is not None
        if has_hash != has_key:
            raise ValidationError(
                "password_hash and encryption_key must be set together"
            )
        if has_hash != bool(self.is_password_protected):
            raise ValidationError(
                "is_password_protected does not match the stored secrets"
            )

    @classmethod
    def create(
        cls,
        share_code: str,
        blob_key: str,
        file_name: str,
        file_size: int,
        mime_type: str,
        password_hash: Optional[str] = None,
        encryption_key: Optional[str] = None,
        retention: timedelta = DEFAULT_RETENTION,
        now: Optional[datetime] = None,
    ) -> "ShareRecord":
        """
        Factory method to create a new share record.

        Args:
            share_code: 5-digit share code
            blob_key: Storage key of the payload
            file_name: Original file name
            file_size: Original size in bytes
            mime_type: Original content type
            password_hash: Hash of the share password, if protected
            encryption_key: Payload key, if protected
            retention: How long the share stays retrievable
            now: Creation time (defaults to current UTC time)

        Returns:
            New ShareRecord instance
        """
        created_at = now or utcnow()
        return cls(
            share_code=share_code,
            blob_key=blob_key,
            file_name=file_name,
            file_size=file_size,
            mime_type=mime_type,
            created_at=created_at,
            expires_at=created_at + retention,
            is_password_protected=password_hash is not None,
            password_hash=password_hash,
            encryption_key=encryption_key,
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """
        Check if the share has expired.

        A record is live only while now < expires_at.
        """
        return _as_utc(now or utcnow()) >= self.expires_at

    @property
    def extension(self) -> str:
        """Lower-cased file extension, or '' when the name has none."""
        if "." not in self.file_name:
            return ""
        return self.file_name.rsplit(".", 1)[-1].lower()

    def to_dict(self) -> dict:
        """Convert to dictionary for persistence (includes secrets)."""
        return {
            "share_code": self.share_code,
            "blob_key": self.blob_key,
            "file_name": self.file_name,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "is_password_protected": self.is_password_protected,
            "password_hash": self.password_hash,
            "encryption_key": self.encryption_key,
            "downloads_count": self.downloads_count,
        }

    def to_public_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses. Never includes secrets."""
        return {
            "share_code": self.share_code,
            "file_name": self.file_name,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "is_password_protected": self.is_password_protected,
            "downloads_count": self.downloads_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ShareRecord":
        """Create ShareRecord from its persisted dictionary."""
        return cls(
            share_code=data["share_code"],
            blob_key=data["blob_key"],
            file_name=data["file_name"],
            file_size=int(data["file_size"]),
            mime_type=data["mime_type"],
            created_at=datetime.fromisoformat(data["created_at"]),
            expires_at=datetime.fromisoformat(data["expires_at"]),
            is_password_protected=bool(data.get("is_password_protected", False)),
            password_hash=data.get("password_hash"),
            encryption_key=data.get("encryption_key"),
            downloads_count=int(data.get("downloads_count") or 0),
        )

    @staticmethod
    def serialize_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
        """Serialize a partial update the same way to_dict serializes a record."""
        return {
            name: value.isoformat() if isinstance(value, datetime) else value
            for name, value in fields.items()
        }
