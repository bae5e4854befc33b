"""
Shared pytest fixtures and configuration for the FreeShare test suite.

This module provides:
- Hypothesis configuration for property-based testing
- In-memory stores and a wired ShareService
- A controllable clock and an event recorder
- Location-based test markers
"""

from datetime import datetime, timedelta
from typing import List

import pytest
from hypothesis import HealthCheck, Phase, settings

from freeshare.application.event_publisher import EventPublisher
from freeshare.application.retention_sweeper import RetentionSweeper
from freeshare.application.share_service import ShareService
from freeshare.config.share_config import ShareConfig
from freeshare.domain.events import DomainEvent
from freeshare.domain.sharing.entities import ShareRecord, utcnow
from freeshare.domain.sharing.signed_url_service import SignedUrlService
from tests.fixtures.mock_repositories import InMemoryBlobStore, InMemoryShareRepository

# Register Hypothesis profiles
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.target, Phase.shrink],
)
settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.load_profile("default")


class FrozenClock:
    """Callable clock that only moves when a test advances it."""

    def __init__(self, start: datetime = None):
        self.now = start or utcnow()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class EventRecorder:
    """Subscribes to every domain event and keeps them in order."""

    def __init__(self, publisher: EventPublisher):
        self.events: List[DomainEvent] = []
        publisher.subscribe(DomainEvent, self.events.append)

    def of_type(self, event_type) -> List[DomainEvent]:
        return [event for event in self.events if isinstance(event, event_type)]


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest.fixture
def signed_url_service() -> SignedUrlService:
    return SignedUrlService(secret_key="test-secret", base_url="http://testserver/api/v1/blobs")


@pytest.fixture
def share_repository() -> InMemoryShareRepository:
    return InMemoryShareRepository()


@pytest.fixture
def blob_store(signed_url_service) -> InMemoryBlobStore:
    return InMemoryBlobStore(signed_url_service)


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def share_config() -> ShareConfig:
    return ShareConfig(
        max_file_size_bytes=1024 * 1024,
        retention_days=7,
        signed_url_ttl_seconds=3600,
        code_max_attempts=10,
    )


@pytest.fixture
def event_publisher() -> EventPublisher:
    return EventPublisher()


@pytest.fixture
def recorded_events(event_publisher) -> EventRecorder:
    return EventRecorder(event_publisher)


@pytest.fixture
def retention_sweeper(share_repository, blob_store, event_publisher, clock) -> RetentionSweeper:
    return RetentionSweeper(share_repository, blob_store, event_publisher, clock)


@pytest.fixture
def share_service(
    share_repository, blob_store, event_publisher, share_config, clock, retention_sweeper
) -> ShareService:
    return ShareService(
        share_repository,
        blob_store,
        event_publisher=event_publisher,
        config=share_config,
        clock=clock,
        retention_sweeper=retention_sweeper,
    )


# =============================================================================
# Domain Entity Fixtures
# =============================================================================

@pytest.fixture
def make_record(clock):
    """Factory for ShareRecords relative to the test clock."""

    def _make(
        share_code="54321",
        file_name="report.pdf",
        file_size=1024,
        mime_type="application/pdf",
        created_ago=timedelta(0),
        **kwargs,
    ) -> ShareRecord:
        return ShareRecord.create(
            share_code=share_code,
            blob_key=kwargs.pop("blob_key", f"files/{share_code}/1700000000000_{file_name}"),
            file_name=file_name,
            file_size=file_size,
            mime_type=mime_type,
            now=clock() - created_ago,
            **kwargs,
        )

    return _make


# =============================================================================
# Pytest Configuration Hooks
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (require external services)"
    )
    config.addinivalue_line(
        "markers", "property: Property-based tests using Hypothesis"
    )


def pytest_collection_modifyitems(config, items):
    """
    Automatically mark tests based on their location.

    - tests/unit/* -> @pytest.mark.unit
    - tests/integration/* -> @pytest.mark.integration
    - tests/property/* -> @pytest.mark.property
    """
    for item in items:
        test_path = str(item.fspath)

        if "/unit/" in test_path or "\\unit\\" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path or "\\integration\\" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/property/" in test_path or "\\property\\" in test_path:
            item.add_marker(pytest.mark.property)
