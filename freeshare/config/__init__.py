"""
Configuration

Environment-driven settings for the share policy, Redis and Celery.
"""

from .share_config import ShareConfig

__all__ = ["ShareConfig"]
