"""
Share Request and Result Objects

One options object per operation, with every optional input spelled out,
and the value objects the share workflow returns.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from freeshare.domain.events import ShareUploadProgressEvent
from freeshare.domain.sharing.entities import ShareRecord

ProgressListener = Callable[[ShareUploadProgressEvent], None]


@dataclass
class UploadRequest:
    """
    Input for ShareService.upload().

    Attributes:
        file_bytes: Whole file content
        file_name: Original file name
        mime_type: Original content type
        password: Protects and encrypts the share when set
        share_code: Requested code; a free one is generated when None
        progress_listener: Per-call observer for upload progress events
    """
    file_bytes: bytes
    file_name: str
    mime_type: str = "application/octet-stream"
    password: Optional[str] = field(default=None, repr=False)
    share_code: Optional[str] = None
    progress_listener: Optional[ProgressListener] = field(default=None, repr=False)


@dataclass
class DownloadRequest:
    """
    Input for ShareService.fetch() and materialize().

    Attributes:
        share_code: Code presented by the downloader
        password: Share password, required for protected shares
    """
    share_code: str
    password: Optional[str] = field(default=None, repr=False)


@dataclass
class UploadResult:
    """Outcome of a committed upload."""

    share_code: str
    record: ShareRecord
    download_url: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "share_code": self.share_code,
            "record": self.record.to_public_dict(),
            "download_url": self.download_url,
        }


@dataclass
class FetchResult:
    """A live record plus a freshly issued signed URL."""

    record: ShareRecord
    download_url: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record": self.record.to_public_dict(),
            "download_url": self.download_url,
        }


@dataclass
class SweepReport:
    """
    Outcome of one retention sweep.

    Attributes:
        purged: Records whose blob and metadata were both removed
        errors: One message per record that could not be purged
    """
    purged: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"purged": self.purged, "errors": list(self.errors)}
