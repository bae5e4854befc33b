"""
Application Services Layer

Orchestrates domain services and coordinates use cases.
"""

from .event_publisher import EventPublisher
from .retention_sweeper import RetentionSweeper
from .share_requests import (
    DownloadRequest,
    FetchResult,
    SweepReport,
    UploadRequest,
    UploadResult,
)
from .share_service import ShareService
from .stats_service import StatsService

__all__ = [
    'DownloadRequest',
    'EventPublisher',
    'FetchResult',
    'RetentionSweeper',
    'ShareService',
    'StatsService',
    'SweepReport',
    'UploadRequest',
    'UploadResult',
]
