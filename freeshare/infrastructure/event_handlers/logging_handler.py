"""
Logging Event Handler

Infrastructure event handler for logging domain events.
Subscribes to domain events and logs them appropriately.
Domain layer remains unaware of logging infrastructure.
"""

import logging

from freeshare.domain.events import (
    DomainEvent,
    ShareCreatedEvent,
    ShareDownloadedEvent,
    ShareExpiredEvent,
    ShareFetchedEvent,
    ShareSweepCompletedEvent,
    ShareUploadProgressEvent,
)


class LoggingEventHandler:
    """
    Logs share lifecycle events.

    Events never carry passwords, hashes or keys, so nothing secret can
    reach the log through this handler.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event by logging it.

        Args:
            event: Domain event to log
        """
        try:
            if isinstance(event, ShareUploadProgressEvent):
                self._handle_upload_progress(event)
            elif isinstance(event, ShareCreatedEvent):
                self._handle_created(event)
            elif isinstance(event, ShareFetchedEvent):
                self._handle_fetched(event)
            elif isinstance(event, ShareDownloadedEvent):
                self._handle_downloaded(event)
            elif isinstance(event, ShareExpiredEvent):
                self._handle_expired(event)
            elif isinstance(event, ShareSweepCompletedEvent):
                self._handle_sweep_completed(event)
            else:
                self.logger.debug(
                    f"Unhandled event: {event.__class__.__name__} "
                    f"(aggregate_id={event.aggregate_id})"
                )
        except Exception as e:
            self.logger.error(
                f"Error in logging event handler for {event.__class__.__name__}: {e}",
                exc_info=True,
            )

    def _handle_upload_progress(self, event: ShareUploadProgressEvent) -> None:
        self.logger.debug(
            f"Upload progress: share_code={event.aggregate_id}, "
            f"phase={event.phase}, {event.percentage}%"
        )

    def _handle_created(self, event: ShareCreatedEvent) -> None:
        self.logger.info(
            f"Share created: share_code={event.aggregate_id}, "
            f"file_name={event.file_name}, file_size={event.file_size} bytes, "
            f"protected={event.is_password_protected}, "
            f"expires_at={event.expires_at.isoformat()}"
        )

    def _handle_fetched(self, event: ShareFetchedEvent) -> None:
        self.logger.info(
            f"Share fetched: share_code={event.aggregate_id}, "
            f"link_expires_at={event.link_expires_at.isoformat()}"
        )

    def _handle_downloaded(self, event: ShareDownloadedEvent) -> None:
        self.logger.info(
            f"Share downloaded: share_code={event.aggregate_id}, "
            f"bytes={event.byte_count}, downloads={event.downloads_count}"
        )

    def _handle_expired(self, event: ShareExpiredEvent) -> None:
        if event.purged:
            self.logger.info(
                f"Expired share purged: share_code={event.aggregate_id}, "
                f"trigger={event.trigger}"
            )
        else:
            self.logger.warning(
                f"Expired share could not be purged: share_code={event.aggregate_id}, "
                f"trigger={event.trigger}"
            )

    def _handle_sweep_completed(self, event: ShareSweepCompletedEvent) -> None:
        level = logging.WARNING if event.error_count else logging.INFO
        self.logger.log(
            level,
            f"Retention sweep finished: purged={event.purged_count}, "
            f"errors={event.error_count}",
        )
