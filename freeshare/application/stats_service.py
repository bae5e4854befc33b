"""
Stats Service

Usage statistics over the stored share records.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List

from freeshare.domain.errors import ValidationError
from freeshare.domain.sharing.entities import ShareRecord, utcnow
from freeshare.domain.sharing.repositories import ShareRepository

logger = logging.getLogger(__name__)

TIME_RANGES = {
    "all": None,
    "week": timedelta(days=7),
    "month": timedelta(days=30),
}

NEAR_LIMIT_PERCENT = 90
TOP_N = 10


class StatsService:
    """Aggregates counts, sizes and downloads for the dashboard endpoint."""

    def __init__(
        self,
        share_repository: ShareRepository,
        storage_limit_mb: float = 1024,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.share_repository = share_repository
        self.storage_limit_mb = storage_limit_mb
        self._clock = clock

    def get_stats(self, time_range: str = "all") -> Dict[str, Any]:
        """
        Compute usage statistics.

        Args:
            time_range: 'all', 'week' or 'month'; limits the records to those
                created inside the window

        Returns:
            Dictionary of totals, storage usage, top lists and type distribution.
            Record views never include password hashes or keys.

        Raises:
            ValidationError: Unknown time_range
        """
        if time_range not in TIME_RANGES:
            raise ValidationError(
                f"Unknown time range {time_range!r}, expected one of {sorted(TIME_RANGES)}"
            )

        records = self._records_in_range(time_range)

        total_size = sum(record.file_size for record in records)
        total_size_mb = round(total_size / (1024 * 1024), 2)
        used_percent = (
            round(total_size_mb / self.storage_limit_mb * 100, 2)
            if self.storage_limit_mb
            else 0.0
        )

        return {
            "time_range": time_range,
            "total_files": len(records),
            "total_size": total_size,
            "total_size_mb": total_size_mb,
            "total_downloads": sum(record.downloads_count for record in records),
            "protected_files": sum(1 for record in records if record.is_password_protected),
            "storage_limit_mb": self.storage_limit_mb,
            "storage_used_percent": used_percent,
            "is_near_limit": used_percent >= NEAR_LIMIT_PERCENT,
            "recent_files": self._top(records, key=lambda r: r.created_at),
            "popular_files": self._top(records, key=lambda r: r.downloads_count),
            "file_types": dict(
                Counter(record.extension or "unknown" for record in records)
            ),
        }

    def _records_in_range(self, time_range: str) -> List[ShareRecord]:
        records = self.share_repository.list_all()
        window = TIME_RANGES[time_range]
        if window is None:
            return records

        cutoff = self._clock() - window
        return [record for record in records if record.created_at >= cutoff]

    @staticmethod
    def _top(records: List[ShareRecord], key) -> List[Dict[str, Any]]:
        ranked = sorted(records, key=key, reverse=True)[:TOP_N]
        return [record.to_public_dict() for record in ranked]
