"""
Event Publisher

Application service for publishing domain events to registered handlers.
Upload progress and share lifecycle changes are reported through it, so the
core workflow runs the same with zero subscribers.
"""

import logging
from threading import Lock
from typing import Callable, Dict, List, Type

from freeshare.domain.events import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class EventPublisher:
    """
    Event publisher that dispatches domain events to registered handlers.

    A handler subscribed to an event class also receives events of its
    subclasses, so subscribing to DomainEvent observes everything. Handlers
    run synchronously; their exceptions are logged and never reach the
    publisher's caller.
    """

    def __init__(self):
        self._handlers: Dict[Type[DomainEvent], List[EventHandler]] = {}
        self._lock = Lock()

    def subscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        """
        Register a handler for an event type and its subclasses.

        Args:
            event_type: The type of domain event to handle
            handler: Callable that accepts the event as parameter
        """
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(
            f"Registered handler {getattr(handler, '__name__', handler)!s} "
            f"for {event_type.__name__}"
        )

    def unsubscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> bool:
        """
        Remove a previously registered handler.

        Returns:
            True if the handler was registered
        """
        with self._lock:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)
                return True
        return False

    def handler_count(self) -> int:
        with self._lock:
            return sum(len(handlers) for handlers in self._handlers.values())

    def publish(self, event: DomainEvent) -> None:
        """
        Publish an event to every handler registered for its type or a base type.

        Args:
            event: The domain event to publish
        """
        with self._lock:
            handlers = [
                handler
                for event_type in type(event).__mro__
                for handler in self._handlers.get(event_type, [])
            ]

        if not handlers:
            return

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Error in handler {getattr(handler, '__name__', handler)!s} "
                    f"for {type(event).__name__}: {e}",
                    exc_info=True,
                )
