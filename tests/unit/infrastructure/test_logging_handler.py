"""
Unit tests for LoggingEventHandler.
"""

import logging
from datetime import timedelta
from unittest.mock import Mock

import pytest

from freeshare.domain.events import (
    DomainEvent,
    ShareCreatedEvent,
    ShareDownloadedEvent,
    ShareExpiredEvent,
    ShareFetchedEvent,
    ShareSweepCompletedEvent,
    ShareUploadProgressEvent,
)
from freeshare.domain.sharing.entities import utcnow
from freeshare.infrastructure.event_handlers import LoggingEventHandler

NOW = utcnow()


@pytest.fixture
def logger():
    return Mock(spec=logging.Logger)


@pytest.fixture
def handler(logger):
    return LoggingEventHandler(logger)


def test_progress_logs_at_debug(handler, logger):
    handler.handle(
        ShareUploadProgressEvent(aggregate_id="54321", occurred_at=NOW, phase="storing", percentage=50)
    )
    message = logger.debug.call_args[0][0]
    assert "phase=storing" in message
    assert "50%" in message


def test_created(handler, logger):
    handler.handle(
        ShareCreatedEvent(
            aggregate_id="54321",
            occurred_at=NOW,
            file_name="report.pdf",
            file_size=1024,
            is_password_protected=True,
            expires_at=NOW + timedelta(days=7),
        )
    )
    message = logger.info.call_args[0][0]
    assert "share_code=54321" in message
    assert "protected=True" in message


@pytest.mark.parametrize("event, fragment", [
    (ShareFetchedEvent(aggregate_id="54321", occurred_at=NOW, link_expires_at=NOW), "Share fetched"),
    (
        ShareDownloadedEvent(aggregate_id="54321", occurred_at=NOW, downloads_count=3, byte_count=10),
        "downloads=3",
    ),
    (
        ShareExpiredEvent(aggregate_id="54321", occurred_at=NOW, trigger="access", purged=True),
        "trigger=access",
    ),
])
def test_info_events(handler, logger, event, fragment):
    handler.handle(event)
    assert fragment in logger.info.call_args[0][0]


def test_failed_purge_logs_warning(handler, logger):
    handler.handle(
        ShareExpiredEvent(aggregate_id="54321", occurred_at=NOW, trigger="sweep", purged=False)
    )
    logger.warning.assert_called_once()
    logger.info.assert_not_called()


@pytest.mark.parametrize("error_count, level", [(0, logging.INFO), (2, logging.WARNING)])
def test_sweep_completed_level(handler, logger, error_count, level):
    handler.handle(
        ShareSweepCompletedEvent(
            aggregate_id="sweep", occurred_at=NOW, purged_count=4, error_count=error_count
        )
    )
    assert logger.log.call_args[0][0] == level
    assert "purged=4" in logger.log.call_args[0][1]


def test_unknown_event_logs_debug(handler, logger):
    handler.handle(DomainEvent(aggregate_id="54321", occurred_at=NOW))
    assert "Unhandled event" in logger.debug.call_args[0][0]


def test_handler_errors_are_logged(handler, logger):
    logger.info.side_effect = [RuntimeError("disk full"), None]
    handler.handle(ShareFetchedEvent(aggregate_id="54321", occurred_at=NOW, link_expires_at=NOW))
    logger.error.assert_called_once()
