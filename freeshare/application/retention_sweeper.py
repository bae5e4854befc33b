"""
Retention Sweeper

Purges expired shares: blob first, then metadata. Runs periodically from
the Celery beat schedule and is also used for single-record purges when a
downloader hits an expired code.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from freeshare.domain.errors import StorageError
from freeshare.domain.events import ShareExpiredEvent, ShareSweepCompletedEvent
from freeshare.domain.sharing.blob_store import IBlobStore
from freeshare.domain.sharing.entities import ShareRecord, utcnow
from freeshare.domain.sharing.repositories import ShareRepository

from .event_publisher import EventPublisher
from .share_requests import SweepReport

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """
    Deletes expired share records and their blobs.

    Deletes are idempotent, so a sweep racing a lazy purge of the same record
    is harmless: whichever runs second finds nothing left to remove.
    """

    def __init__(
        self,
        share_repository: ShareRepository,
        blob_store: IBlobStore,
        event_publisher: Optional[EventPublisher] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.share_repository = share_repository
        self.blob_store = blob_store
        self.event_publisher = event_publisher or EventPublisher()
        self._clock = clock

    def purge_record(self, record: ShareRecord, trigger: str = "sweep") -> None:
        """
        Delete one record's blob, then its metadata.

        Args:
            record: Record to purge
            trigger: 'access', 'reclaim' or 'sweep', reported on the emitted event

        Raises:
            ShareError: If either delete fails; the metadata row is kept when
                the blob delete fails so a later sweep can retry
        """
        try:
            self.blob_store.delete(record.blob_key)
            self.share_repository.delete(record.share_code)
        except StorageError:
            self._publish_expired(record, trigger, purged=False)
            raise
        except Exception as e:
            self._publish_expired(record, trigger, purged=False)
            raise StorageError(
                f"Failed to purge share {record.share_code}: {e}", e
            ) from e

        self._publish_expired(record, trigger, purged=True)

    def sweep(self) -> SweepReport:
        """
        Purge every record whose expiry lies before now.

        Per-record failures are logged and collected; they never abort the
        sweep or propagate to the caller.

        Returns:
            SweepReport with the purged count and per-record errors
        """
        now = self._clock()
        report = SweepReport()

        try:
            expired = self.share_repository.find_expired_before(now)
        except Exception as e:
            message = f"Failed to list expired shares: {e}"
            logger.error(message, exc_info=True)
            report.errors.append(message)
            self._publish_completed(report, now)
            return report

        if expired:
            logger.info(f"Found {len(expired)} expired shares to purge")

        for record in expired:
            try:
                self.purge_record(record, trigger="sweep")
                report.purged += 1
            except Exception as e:
                message = f"Failed to purge share {record.share_code}: {e}"
                logger.warning(message)
                report.errors.append(message)

        logger.info(
            f"Retention sweep completed - Purged: {report.purged}, "
            f"Errors: {len(report.errors)}"
        )
        self._publish_completed(report, now)
        return report

    def _publish_expired(self, record: ShareRecord, trigger: str, purged: bool) -> None:
        self.event_publisher.publish(
            ShareExpiredEvent(
                aggregate_id=record.share_code,
                occurred_at=self._clock(),
                trigger=trigger,
                purged=purged,
            )
        )

    def _publish_completed(self, report: SweepReport, now: datetime) -> None:
        self.event_publisher.publish(
            ShareSweepCompletedEvent(
                aggregate_id="sweep",
                occurred_at=now,
                purged_count=report.purged,
                error_count=len(report.errors),
            )
        )
