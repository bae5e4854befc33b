"""
Signed URL Service

Service for generating and verifying time-limited signed URLs for blob access.
A signed URL carries the blob key, its expiry as a unix timestamp and an
HMAC-SHA256 signature over both, so it grants access without further lookups.
"""

import hashlib
import hmac
import os
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from urllib.parse import parse_qs, quote, unquote, urlsplit

from ..errors import ErrorCategory, ExpiredError, ValidationError


@dataclass
class SignedUrl:
    """
    A signed blob URL together with the parts it encodes.
    """

    url: str
    blob_key: str
    expires_at: datetime
    signature: str


class SignedUrlService:
    """
    Service for generating and validating signed blob URLs.
    """

    DEFAULT_PATH = "/api/v1/blobs"

    def __init__(
        self, secret_key: Optional[str] = None, base_url: Optional[str] = None
    ):
        """
        Initialize SignedUrlService.

        Args:
            secret_key: Secret key for HMAC signing (falls back to SECRET_KEY,
                then to a random per-process key)
            base_url: Base URL for blob links. Defaults to DOWNLOAD_BASE_URL
                joined with /api/v1/blobs, or the relative path alone.
        """
        self.secret_key = (
            secret_key or os.getenv("SECRET_KEY") or self._generate_secret_key()
        )
        if base_url:
            self.base_url = base_url.rstrip("/")
        else:
            download_base = os.getenv("DOWNLOAD_BASE_URL")
            if download_base:
                self.base_url = download_base.rstrip("/") + self.DEFAULT_PATH
            else:
                self.base_url = self.DEFAULT_PATH

    @staticmethod
    def _generate_secret_key(length: int = 32) -> str:
        """Generate a cryptographically secure secret key."""
        return secrets.token_hex(length)

    def generate_signed_url(
        self,
        blob_key: str,
        ttl_seconds: int = 3600,
        now: Optional[datetime] = None,
    ) -> SignedUrl:
        """
        Generate a signed URL for blob access.

        Args:
            blob_key: Key of the blob in the blob store
            ttl_seconds: Time to live in seconds
            now: Issue time (defaults to current UTC time)

        Returns:
            SignedUrl object with URL and expiration information
        """
        issued_at = now or datetime.now(timezone.utc)
        expires_ts = int((issued_at + timedelta(seconds=ttl_seconds)).timestamp())
        signature = self._generate_signature(blob_key, expires_ts)

        url = (
            f"{self.base_url}/{quote(blob_key, safe='/')}"
            f"?expires={expires_ts}&signature={signature}"
        )
        return SignedUrl(
            url=url,
            blob_key=blob_key,
            expires_at=datetime.fromtimestamp(expires_ts, tz=timezone.utc),
            signature=signature,
        )

    def _generate_signature(self, blob_key: str, expires_ts: int) -> str:
        """
        Generate HMAC signature for a blob key and expiry.

        Returns:
            HMAC signature as hex string
        """
        message = f"{blob_key}:{expires_ts}"
        return hmac.new(
            self.secret_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
        ).hexdigest()

    def validate_signature(self, blob_key: str, signature: str, expires_ts: int) -> bool:
        """
        Validate an HMAC signature in constant time.

        Returns:
            True if signature is valid, False otherwise
        """
        expected_signature = self._generate_signature(blob_key, expires_ts)
        return hmac.compare_digest(signature or "", expected_signature)

    def verify(
        self,
        blob_key: str,
        expires: Any,
        signature: Optional[str],
        now: Optional[datetime] = None,
    ) -> str:
        """
        Verify the components of a signed URL.

        Args:
            blob_key: Key taken from the URL path
            expires: Expiry unix timestamp taken from the query string
            signature: Signature taken from the query string
            now: Check time (defaults to current UTC time)

        Returns:
            The verified blob key

        Raises:
            ValidationError: Missing parts or bad signature
            ExpiredError: The link is past its expiry
        """
        try:
            expires_ts = int(expires)
        except (TypeError, ValueError) as e:
            raise ValidationError(
                "Signed URL is missing a valid expiry", e,
                category=ErrorCategory.INVALID_SIGNATURE,
            ) from e

        if not signature or not self.validate_signature(blob_key, signature, expires_ts):
            raise ValidationError(
                "Signed URL signature is invalid",
                category=ErrorCategory.INVALID_SIGNATURE,
            )

        check_time = now or datetime.now(timezone.utc)
        if check_time.timestamp() >= expires_ts:
            raise ExpiredError(
                "Signed URL has expired", category=ErrorCategory.LINK_EXPIRED
            )

        return blob_key

    def verify_url(self, url: str, now: Optional[datetime] = None) -> str:
        """
        Parse and verify a full signed URL produced by generate_signed_url().

        Returns:
            The verified blob key
        """
        parts = urlsplit(url)
        base_path = urlsplit(self.base_url).path.rstrip("/") + "/"
        if not parts.path.startswith(base_path):
            raise ValidationError(
                "URL was not issued by this blob store",
                category=ErrorCategory.INVALID_SIGNATURE,
            )

        blob_key = unquote(parts.path[len(base_path):])
        query = parse_qs(parts.query)
        return self.verify(
            blob_key,
            query.get("expires", [None])[0],
            query.get("signature", [None])[0],
            now=now,
        )
