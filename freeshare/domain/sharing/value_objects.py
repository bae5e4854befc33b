"""
Sharing Value Objects

Immutable value objects for type safety and validation.
"""

import re
import threading
import time
from dataclasses import dataclass
from typing import Optional

from ..errors import InvalidShareCodeError

_SHARE_CODE_PATTERN = re.compile(r"^[1-9][0-9]{4}$")

# "{13-digit ms}_" plus the name must fit in a 255-byte NAME_MAX
MAX_NAME_BYTES = 200
MAX_EXTENSION_BYTES = 32

_clock_lock = threading.Lock()
_last_timestamp_ms = 0


def unique_timestamp_ms() -> int:
    """
    Return a process-wide strictly increasing millisecond timestamp.

    Two uploads in the same millisecond still get distinct blob keys.
    """
    global _last_timestamp_ms

    with _clock_lock:
        now_ms = int(time.time() * 1000)
        if now_ms <= _last_timestamp_ms:
            now_ms = _last_timestamp_ms + 1
        _last_timestamp_ms = now_ms
        return now_ms


@dataclass(frozen=True)
class ShareCode:
    """
    Value object representing a validated share code.

    Share codes are 5-digit numeric strings in the range [10000, 99999].
    """
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not _SHARE_CODE_PATTERN.match(self.value):
            raise InvalidShareCodeError(
                f"Invalid share code: expected 5 digits in 10000-99999, got {self.value!r}"
            )

    @classmethod
    def parse(cls, raw: Optional[str]) -> "ShareCode":
        """Build a ShareCode from user input, tolerating surrounding whitespace."""
        if raw is None:
            raise InvalidShareCodeError("Share code is required")
        return cls(str(raw).strip())

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class BlobKey:
    """
    Storage key for a shared payload.

    Layout: files/{share_code}/{timestamp_ms}_{safe_file_name}
    """
    value: str

    @classmethod
    def derive(
        cls, share_code: str, file_name: str, timestamp_ms: Optional[int] = None
    ) -> "BlobKey":
        """
        Derive a blob key from the share code, a unique timestamp and the file name.

        Args:
            share_code: Share code the blob belongs to
            file_name: Original file name (sanitized for the key)
            timestamp_ms: Override for the timestamp component

        Returns:
            New BlobKey
        """
        if timestamp_ms is None:
            timestamp_ms = unique_timestamp_ms()
        return cls(f"files/{share_code}/{timestamp_ms}_{cls.sanitize(file_name)}")

    @staticmethod
    def sanitize(file_name: str) -> str:
        """
        Keep alphanumerics and ' .-_()', falling back to 'file'.

        The result is capped at MAX_NAME_BYTES of UTF-8 so the final path
        component stays under the filesystem's name limit. A short extension
        survives truncation.
        """
        safe = "".join(c for c in file_name if c.isalnum() or c in " .-_()").strip()
        safe = safe.lstrip(".")
        if not safe:
            return "file"
        if len(safe.encode("utf-8")) <= MAX_NAME_BYTES:
            return safe

        stem, dot, extension = safe.rpartition(".")
        suffix = f".{extension}" if dot and stem else ""
        if len(suffix.encode("utf-8")) > MAX_EXTENSION_BYTES:
            stem, suffix = safe, ""
        elif not suffix:
            stem = safe

        budget = MAX_NAME_BYTES - len(suffix.encode("utf-8"))
        # Cut on a character boundary
        stem = stem.encode("utf-8")[:budget].decode("utf-8", "ignore").rstrip()
        return f"{stem}{suffix}"

    def __str__(self) -> str:
        return self.value
