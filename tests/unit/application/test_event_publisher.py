"""
Unit tests for EventPublisher.
"""

from datetime import timedelta

from freeshare.application.event_publisher import EventPublisher
from freeshare.domain.events import (
    DomainEvent,
    ShareCreatedEvent,
    ShareExpiredEvent,
    ShareUploadProgressEvent,
)
from freeshare.domain.sharing.entities import utcnow


def _progress(phase="storing", percentage=50):
    return ShareUploadProgressEvent(
        aggregate_id="54321", occurred_at=utcnow(), phase=phase, percentage=percentage
    )


def _expired():
    return ShareExpiredEvent(
        aggregate_id="54321", occurred_at=utcnow(), trigger="sweep", purged=True
    )


def test_publish_with_no_handlers_is_a_no_op():
    EventPublisher().publish(_progress())


def test_handler_receives_only_its_type():
    publisher = EventPublisher()
    received = []
    publisher.subscribe(ShareExpiredEvent, received.append)

    publisher.publish(_progress())
    publisher.publish(_expired())

    assert len(received) == 1
    assert isinstance(received[0], ShareExpiredEvent)


def test_base_type_subscription_sees_everything():
    publisher = EventPublisher()
    received = []
    publisher.subscribe(DomainEvent, received.append)

    publisher.publish(_progress())
    publisher.publish(_expired())

    assert [type(e) for e in received] == [ShareUploadProgressEvent, ShareExpiredEvent]


def test_handlers_run_in_subscription_order():
    publisher = EventPublisher()
    calls = []
    publisher.subscribe(ShareUploadProgressEvent, lambda e: calls.append("first"))
    publisher.subscribe(ShareUploadProgressEvent, lambda e: calls.append("second"))

    publisher.publish(_progress())

    assert calls == ["first", "second"]


def test_failing_handler_does_not_stop_others(caplog):
    publisher = EventPublisher()
    received = []

    def broken(event):
        raise RuntimeError("handler exploded")

    publisher.subscribe(ShareUploadProgressEvent, broken)
    publisher.subscribe(ShareUploadProgressEvent, received.append)

    publisher.publish(_progress())

    assert len(received) == 1
    assert "handler exploded" in caplog.text


def test_unsubscribe():
    publisher = EventPublisher()
    received = []
    publisher.subscribe(ShareExpiredEvent, received.append)

    assert publisher.unsubscribe(ShareExpiredEvent, received.append) is True
    assert publisher.unsubscribe(ShareExpiredEvent, received.append) is False

    publisher.publish(_expired())
    assert received == []


def test_handler_count():
    publisher = EventPublisher()
    publisher.subscribe(DomainEvent, lambda e: None)
    publisher.subscribe(ShareExpiredEvent, lambda e: None)
    assert publisher.handler_count() == 2


def test_event_serialization():
    now = utcnow()
    event = ShareCreatedEvent(
        aggregate_id="54321",
        occurred_at=now,
        file_name="report.pdf",
        file_size=1024,
        is_password_protected=True,
        expires_at=now + timedelta(days=7),
    )

    data = event.to_dict()

    assert data["event_type"] == "ShareCreatedEvent"
    assert data["aggregate_id"] == "54321"
    assert data["occurred_at"] == now.isoformat()
    assert data["expires_at"] == (now + timedelta(days=7)).isoformat()
    assert data["is_password_protected"] is True
