"""
Share Service

Application service that orchestrates the share workflow: upload, code
lookup, byte retrieval and expiry. Coordinates the share repository, the
blob store and the crypto helper, and publishes domain events at each
state transition.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Callable, Iterator, Optional, Tuple

from freeshare.config.share_config import ShareConfig
from freeshare.domain.errors import (
    ErrorCategory,
    ExpiredError,
    InvalidPasswordError,
    NotFoundError,
    PasswordRequiredError,
    ShareError,
    StorageError,
    ValidationError,
)
from freeshare.domain.events import (
    ShareCreatedEvent,
    ShareDownloadedEvent,
    ShareFetchedEvent,
    ShareUploadProgressEvent,
)
from freeshare.domain.sharing.blob_store import IBlobStore
from freeshare.domain.sharing.code_generator import CodeGenerator
from freeshare.domain.sharing.crypto import CryptoHelper
from freeshare.domain.sharing.entities import ShareRecord, utcnow
from freeshare.domain.sharing.repositories import ShareRepository
from freeshare.domain.sharing.value_objects import BlobKey, ShareCode

from .event_publisher import EventPublisher
from .retention_sweeper import RetentionSweeper
from .share_requests import (
    DownloadRequest,
    FetchResult,
    ProgressListener,
    UploadRequest,
    UploadResult,
)

logger = logging.getLogger(__name__)


@contextmanager
def _storage_call(action: str) -> Iterator[None]:
    """Re-raise backend failures that are not already ShareErrors as StorageError."""
    try:
        yield
    except ShareError:
        raise
    except Exception as e:
        raise StorageError(f"Failed to {action}: {e}", e) from e


class ShareService:
    """
    Application service for the anonymous file sharing workflow.

    Workflow:
    1. upload: validate, reserve a code, optionally encrypt, store the blob,
       then commit the metadata record (rolling the blob back on failure)
    2. fetch: resolve a code to a live record and issue a fresh signed URL
    3. materialize: read the bytes behind a signed URL, decrypt them and
       count the download
    4. sweep_expired: purge expired shares through the RetentionSweeper

    The service holds no per-request state; every call is independent and
    all shared state lives in the injected stores.
    """

    def __init__(
        self,
        share_repository: ShareRepository,
        blob_store: IBlobStore,
        crypto: Optional[CryptoHelper] = None,
        code_generator: Optional[CodeGenerator] = None,
        event_publisher: Optional[EventPublisher] = None,
        config: Optional[ShareConfig] = None,
        clock: Callable[[], datetime] = utcnow,
        retention_sweeper: Optional[RetentionSweeper] = None,
    ):
        """
        Initialize Share Service with dependencies.

        Args:
            share_repository: Metadata store for share records
            blob_store: Store for (possibly encrypted) payloads
            crypto: Payload encryption and password hashing
            code_generator: Random share code source
            event_publisher: Receives progress and lifecycle events
            config: Share policy (size limit, retention, URL TTL, retries)
            clock: Returns the current UTC time
            retention_sweeper: Purges expired records; built from the stores
                when omitted
        """
        self.share_repository = share_repository
        self.blob_store = blob_store
        self.crypto = crypto or CryptoHelper()
        self.code_generator = code_generator or CodeGenerator()
        self.event_publisher = event_publisher or EventPublisher()
        self.config = config or ShareConfig()
        self._clock = clock
        self.retention_sweeper = retention_sweeper or RetentionSweeper(
            share_repository, blob_store, self.event_publisher, clock
        )

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def upload(self, request: UploadRequest) -> UploadResult:
        """
        Store a file and bind it to a share code.

        Args:
            request: File bytes, name, type and optional password / code

        Returns:
            UploadResult with the share code, the record and a signed URL

        Raises:
            ValidationError: Empty, oversize or unnamed file, malformed or
                unavailable share code
            StorageError: Blob or metadata store failure
            TransientError: Store timeout
        """
        listener = request.progress_listener
        self._report_progress(request.share_code or "pending", "validating", 10, listener)
        self._validate_upload(request)

        share_code = self._reserve_code(request.share_code)
        blob_key = BlobKey.derive(share_code, request.file_name).value
        mime_type = request.mime_type or "application/octet-stream"

        payload = request.file_bytes
        content_type = mime_type
        password_hash = None
        encryption_key = None
        if request.password:
            self._report_progress(share_code, "encrypting", 30, listener)
            encryption_key = self.crypto.generate_key()
            password_hash = self.crypto.hash_password(request.password)
            payload = self.crypto.encrypt(payload, encryption_key)
            content_type = CryptoHelper.ENCRYPTED_CONTENT_TYPE

        self._report_progress(share_code, "storing", 50, listener)
        with _storage_call(f"store blob {blob_key}"):
            self.blob_store.put(
                blob_key,
                payload,
                content_type,
                metadata={
                    "share-code": share_code,
                    "original-name": request.file_name,
                    "original-type": mime_type,
                },
            )

        self._report_progress(share_code, "committing", 80, listener)
        record = ShareRecord.create(
            share_code=share_code,
            blob_key=blob_key,
            file_name=request.file_name,
            file_size=len(request.file_bytes),
            mime_type=mime_type,
            password_hash=password_hash,
            encryption_key=encryption_key,
            retention=self.config.retention,
            now=self._clock(),
        )

        try:
            download_url, _ = self._issue_signed_url(blob_key)
            with _storage_call(f"insert share {share_code}"):
                self.share_repository.insert(record)
        except Exception:
            self._rollback_blob(blob_key)
            raise

        self._report_progress(share_code, "completed", 100, listener)
        self.event_publisher.publish(
            ShareCreatedEvent(
                aggregate_id=share_code,
                occurred_at=self._clock(),
                file_name=record.file_name,
                file_size=record.file_size,
                is_password_protected=record.is_password_protected,
                expires_at=record.expires_at,
            )
        )
        logger.info(
            f"Share {share_code} created: {record.file_size} bytes, "
            f"protected={record.is_password_protected}"
        )
        return UploadResult(share_code=share_code, record=record, download_url=download_url)

    def _validate_upload(self, request: UploadRequest) -> None:
        size = len(request.file_bytes or b"")
        if size == 0:
            raise ValidationError("File is empty")
        if size > self.config.max_file_size_bytes:
            raise ValidationError(
                f"File is {size} bytes, limit is {self.config.max_file_size_bytes}",
                category=ErrorCategory.FILE_TOO_LARGE,
            )
        if not request.file_name or not request.file_name.strip():
            raise ValidationError("File name is required")

    def _reserve_code(self, requested: Optional[str]) -> str:
        """
        Pick a share code that no live record holds.

        A requested code is used as-is or rejected; otherwise codes are
        generated until a free one turns up or the attempts run out.
        """
        if requested is not None:
            code = ShareCode.parse(requested).value
            if not self._code_available(code):
                raise ValidationError(
                    f"Share code {code} is already in use",
                    category=ErrorCategory.CODE_UNAVAILABLE,
                )
            return code

        attempts = self.config.code_max_attempts
        for attempt in range(1, attempts + 1):
            code = self.code_generator.generate()
            if self._code_available(code):
                return code
            logger.debug(f"Share code {code} is taken (attempt {attempt}/{attempts})")

        raise ValidationError(
            f"No free share code after {attempts} attempts",
            category=ErrorCategory.CODE_UNAVAILABLE,
        )

    def _code_available(self, code: str) -> bool:
        with _storage_call(f"look up share {code}"):
            existing = self.share_repository.find_by_code(code)
        if existing is None:
            return True
        if not existing.is_expired(self._clock()):
            return False

        # Expired holder: reclaim the code
        self.retention_sweeper.purge_record(existing, trigger="reclaim")
        return True

    def _rollback_blob(self, blob_key: str) -> None:
        try:
            self.blob_store.delete(blob_key)
            logger.info(f"Rolled back blob {blob_key} after failed commit")
        except Exception as e:
            logger.error(f"Failed to roll back blob {blob_key}: {e}")

    # ------------------------------------------------------------------
    # Fetch / materialize
    # ------------------------------------------------------------------

    def fetch(self, share_code: str, password: Optional[str] = None) -> FetchResult:
        """
        Resolve a share code to its live record and a fresh signed URL.

        Args:
            share_code: Code presented by the downloader
            password: Share password, required for protected shares

        Returns:
            FetchResult with the record and a 1-hour signed URL

        Raises:
            ValidationError: Malformed code
            NotFoundError: No record for the code
            ExpiredError: Record expired (it is purged before raising)
            PasswordRequiredError: Protected share and no password
            InvalidPasswordError: Wrong password
        """
        code = ShareCode.parse(share_code).value
        with _storage_call(f"look up share {code}"):
            record = self.share_repository.find_by_code(code)
        if record is None:
            raise NotFoundError(f"No share found for code {code}")

        self._ensure_live(record)
        self._check_password(record, password)

        download_url, link_expires_at = self._issue_signed_url(record.blob_key)
        self.event_publisher.publish(
            ShareFetchedEvent(
                aggregate_id=code,
                occurred_at=self._clock(),
                link_expires_at=link_expires_at,
            )
        )
        return FetchResult(record=record, download_url=download_url)

    def materialize(
        self, record: ShareRecord, download_url: str, password: Optional[str] = None
    ) -> bytes:
        """
        Read the original bytes of a share and count the download.

        Args:
            record: Record returned by fetch()
            download_url: Signed URL returned by fetch()
            password: Share password, re-verified for protected shares

        Returns:
            Original file bytes (decrypted when protected)

        Raises:
            ExpiredError: Record or link expired
            PasswordRequiredError / InvalidPasswordError: Password check failed
            DecryptionError: Payload could not be decrypted
            StorageError: Blob read failed
            ValidationError: download_url was not issued for record
        """
        self._ensure_live(record)
        self._check_password(record, password)

        with _storage_call(f"read blob {record.blob_key}"):
            raw = self.blob_store.read_signed_url(
                download_url, expected_key=record.blob_key
            )

        if record.is_password_protected:
            data = self.crypto.decrypt(raw, record.encryption_key, record.mime_type)
        else:
            data = raw

        self._increment_downloads(record)
        self.event_publisher.publish(
            ShareDownloadedEvent(
                aggregate_id=record.share_code,
                occurred_at=self._clock(),
                downloads_count=record.downloads_count,
                byte_count=len(data),
            )
        )
        return data

    def download(self, request: DownloadRequest) -> Tuple[ShareRecord, bytes]:
        """Fetch then materialize in one call."""
        result = self.fetch(request.share_code, request.password)
        data = self.materialize(result.record, result.download_url, request.password)
        return result.record, data

    def _ensure_live(self, record: ShareRecord) -> None:
        if not record.is_expired(self._clock()):
            return

        try:
            self.retention_sweeper.purge_record(record, trigger="access")
        except Exception as e:
            logger.warning(f"Failed to purge expired share {record.share_code}: {e}")

        raise ExpiredError(f"Share {record.share_code} expired at {record.expires_at.isoformat()}")

    def _check_password(self, record: ShareRecord, password: Optional[str]) -> None:
        if not record.is_password_protected:
            return
        if not password:
            raise PasswordRequiredError(f"Share {record.share_code} requires a password")
        if not self.crypto.verify_password(password, record.password_hash):
            raise InvalidPasswordError(f"Incorrect password for share {record.share_code}")

    def _increment_downloads(self, record: ShareRecord) -> None:
        # Relaxed read-modify-write; concurrent downloads may under-count
        with _storage_call(f"count download for share {record.share_code}"):
            current = self.share_repository.find_by_code(record.share_code)
            if current is None or current.blob_key != record.blob_key:
                logger.debug(f"Share {record.share_code} vanished before counting")
                return

            new_count = current.downloads_count + 1
            self.share_repository.update(
                record.share_code, {"downloads_count": new_count}
            )
        record.downloads_count = new_count

    # ------------------------------------------------------------------
    # Expiry
    # ------------------------------------------------------------------

    def sweep_expired(self) -> int:
        """
        Purge every expired share.

        Returns:
            Number of shares purged
        """
        return self.retention_sweeper.sweep().purged

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _issue_signed_url(self, blob_key: str) -> Tuple[str, datetime]:
        """Return a fresh signed URL and the time it stops working."""
        ttl = self.config.signed_url_ttl_seconds
        expires_at = self._clock() + timedelta(seconds=ttl)
        with _storage_call(f"sign blob {blob_key}"):
            url = self.blob_store.signed_get(blob_key, ttl)
        return url, expires_at

    def _report_progress(
        self,
        share_code: str,
        phase: str,
        percentage: int,
        listener: Optional[ProgressListener],
    ) -> None:
        event = ShareUploadProgressEvent(
            aggregate_id=share_code,
            occurred_at=self._clock(),
            phase=phase,
            percentage=percentage,
        )
        self.event_publisher.publish(event)
        if listener is None:
            return
        try:
            listener(event)
        except Exception as e:
            logger.error(f"Progress listener failed during {phase}: {e}", exc_info=True)
