"""
Unit tests for StatsService.
"""

from datetime import timedelta

import pytest

from freeshare.application.stats_service import StatsService
from freeshare.domain.errors import ValidationError
from freeshare.domain.sharing.crypto import CryptoHelper

MB = 1024 * 1024


@pytest.fixture
def stats_service(share_repository, clock):
    return StatsService(share_repository, storage_limit_mb=10, clock=clock)


@pytest.fixture
def populated(share_repository, make_record):
    crypto = CryptoHelper()
    records = [
        make_record(share_code="11111", file_name="a.pdf", file_size=2 * MB,
                    created_ago=timedelta(days=1)),
        make_record(share_code="22222", file_name="b.PNG", file_size=1 * MB,
                    created_ago=timedelta(days=3)),
        make_record(share_code="33333", file_name="README", file_size=1 * MB,
                    created_ago=timedelta(days=20),
                    password_hash=crypto.hash_password("pw"),
                    encryption_key=crypto.generate_key()),
        make_record(share_code="44444", file_name="c.pdf", file_size=1 * MB,
                    created_ago=timedelta(days=45)),
    ]
    for record in records:
        share_repository.put_record(record)
    share_repository.update("11111", {"downloads_count": 5})
    return records


def test_empty_store(stats_service):
    stats = stats_service.get_stats()

    assert stats["total_files"] == 0
    assert stats["total_size"] == 0
    assert stats["total_downloads"] == 0
    assert stats["storage_used_percent"] == 0.0
    assert stats["is_near_limit"] is False
    assert stats["recent_files"] == []
    assert stats["popular_files"] == []
    assert stats["file_types"] == {}


def test_all_time_totals(stats_service, share_repository, populated):
    share_repository.update("22222", {"downloads_count": 2})

    stats = stats_service.get_stats("all")

    assert stats["time_range"] == "all"
    assert stats["total_files"] == 4
    assert stats["total_size"] == 5 * MB
    assert stats["total_size_mb"] == 5.0
    assert stats["total_downloads"] == 7
    assert stats["protected_files"] == 1
    assert stats["storage_limit_mb"] == 10
    assert stats["storage_used_percent"] == 50.0
    assert stats["is_near_limit"] is False


def test_file_types(stats_service, populated):
    assert stats_service.get_stats()["file_types"] == {"pdf": 2, "png": 1, "unknown": 1}


@pytest.mark.parametrize("time_range, expected_codes", [
    ("week", {"11111", "22222"}),
    ("month", {"11111", "22222", "33333"}),
    ("all", {"11111", "22222", "33333", "44444"}),
])
def test_time_ranges(stats_service, populated, time_range, expected_codes):
    stats = stats_service.get_stats(time_range)
    assert stats["total_files"] == len(expected_codes)
    assert {f["share_code"] for f in stats["recent_files"]} == expected_codes


def test_unknown_time_range(stats_service):
    with pytest.raises(ValidationError):
        stats_service.get_stats("year")


def test_recent_files_newest_first(stats_service, populated):
    recent = stats_service.get_stats()["recent_files"]
    assert [f["share_code"] for f in recent] == ["11111", "22222", "33333", "44444"]


def test_popular_files_most_downloaded_first(stats_service, populated):
    popular = stats_service.get_stats()["popular_files"]
    assert popular[0]["share_code"] == "11111"
    assert popular[0]["downloads_count"] == 5


def test_file_views_never_expose_secrets(stats_service, populated):
    stats = stats_service.get_stats()
    for view in stats["recent_files"] + stats["popular_files"]:
        assert "password_hash" not in view
        assert "encryption_key" not in view
        assert "blob_key" not in view


def test_top_lists_are_capped(share_repository, make_record, clock):
    for n in range(15):
        share_repository.put_record(
            make_record(share_code=str(10000 + n), created_ago=timedelta(minutes=n))
        )
    stats = StatsService(share_repository, clock=clock).get_stats()

    assert stats["total_files"] == 15
    assert len(stats["recent_files"]) == 10
    assert len(stats["popular_files"]) == 10


def test_near_limit(share_repository, make_record, clock):
    share_repository.put_record(make_record(file_size=int(9.5 * MB)))
    stats = StatsService(share_repository, storage_limit_mb=10, clock=clock).get_stats()

    assert stats["storage_used_percent"] == 95.0
    assert stats["is_near_limit"] is True
