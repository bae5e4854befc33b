"""
Dependency Injection Container

Holds the store clients and services built by the app factory so that
API handlers and Celery tasks resolve the same instances.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class DependencyNotFoundError(Exception):
    """Raised when attempting to resolve an unregistered dependency."""
    pass


class DependencyContainer:
    """
    Dependency injection container for managing service lifecycles.

    Supports singleton (single instance) and transient (factory-created)
    registration patterns. Thread-safe for concurrent access.
    """

    def __init__(self):
        self._singletons: Dict[Type, Any] = {}
        self._transients: Dict[Type, Callable[[], Any]] = {}
        self._overrides: Dict[Type, Any] = {}
        self._lock = threading.Lock()

        logger.debug("DependencyContainer initialized")

    def register_singleton(self, interface: Type[T], implementation: T) -> None:
        """
        Register a singleton service (single instance shared across all resolutions).

        Args:
            interface: The interface or class type to register
            implementation: The concrete instance to use

        Example:
            container.register_singleton(ShareService, share_service)
        """
        with self._lock:
            self._singletons[interface] = implementation
            logger.debug(f"Registered singleton: {interface.__name__}")

    def register_transient(self, interface: Type[T], factory: Callable[[], T]) -> None:
        """
        Register a transient service (new instance created on each resolution).

        Args:
            interface: The interface or class type to register
            factory: A callable that creates new instances
        """
        with self._lock:
            self._transients[interface] = factory
            logger.debug(f"Registered transient: {interface.__name__}")

    def resolve(self, interface: Type[T]) -> T:
        """
        Resolve a registered service.

        Overrides win over singletons, singletons over transients.

        Raises:
            DependencyNotFoundError: If the interface is not registered
        """
        with self._lock:
            if interface in self._overrides:
                return self._overrides[interface]

            if interface in self._singletons:
                return self._singletons[interface]

            if interface not in self._transients:
                raise DependencyNotFoundError(
                    f"No registration found for type: {interface.__name__}"
                )
            factory = self._transients[interface]

        # Factory runs outside the lock so it can resolve other dependencies
        return factory()

    def override(self, interface: Type[T], implementation: T) -> None:
        """
        Override a registered service (primarily for testing).

        Example:
            container.override(RetentionSweeper, mock_sweeper)
        """
        with self._lock:
            self._overrides[interface] = implementation
            logger.debug(f"Overridden: {interface.__name__}")

    def clear_overrides(self) -> None:
        with self._lock:
            self._overrides.clear()
            logger.debug("Cleared all overrides")

    def is_registered(self, interface: Type) -> bool:
        with self._lock:
            return (
                interface in self._singletons or
                interface in self._transients or
                interface in self._overrides
            )

    def get_registration_type(self, interface: Type) -> str:
        """
        Returns:
            'singleton', 'transient', 'override', or 'not_registered'
        """
        with self._lock:
            if interface in self._overrides:
                return 'override'
            if interface in self._singletons:
                return 'singleton'
            if interface in self._transients:
                return 'transient'
            return 'not_registered'

    def setup_event_handlers(
        self, event_publisher, event_handler_classes: Optional[List[Type]] = None
    ) -> None:
        """
        Subscribe infrastructure event handlers to every domain event.

        Args:
            event_publisher: EventPublisher instance to subscribe handlers to
            event_handler_classes: Handler classes to instantiate; defaults to
                [LoggingEventHandler]
        """
        from freeshare.domain.events import DomainEvent
        from freeshare.infrastructure.event_handlers.logging_handler import (
            LoggingEventHandler,
        )

        if event_handler_classes is None:
            event_handler_classes = [LoggingEventHandler]

        for handler_class in event_handler_classes:
            try:
                if handler_class is LoggingEventHandler:
                    handler = handler_class(logging.getLogger("freeshare"))
                else:
                    handler = handler_class()

                event_publisher.subscribe(DomainEvent, handler.handle)
                logger.debug(f"Registered event handler: {handler_class.__name__}")
            except Exception as e:
                # A broken observer must not stop the app from starting
                logger.error(f"Failed to register event handler {handler_class.__name__}: {e}")
