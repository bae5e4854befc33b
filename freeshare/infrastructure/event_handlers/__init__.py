"""
Infrastructure Event Handlers

Observers subscribed to the application EventPublisher.
"""

from .logging_handler import LoggingEventHandler

__all__ = ["LoggingEventHandler"]
