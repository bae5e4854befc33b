"""
Celery Tasks

Background tasks for FreeShare.
"""

from .cleanup_task import sweep_expired_shares

__all__ = ['sweep_expired_shares']
