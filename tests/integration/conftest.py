import os

import pytest
import redis

from freeshare.infrastructure.redis_repository import RedisRepository
from freeshare.infrastructure.redis_share_repository import RedisShareRepository


@pytest.fixture
def redis_client():
    """
    Yields a clean Redis client for integration testing.
    Connects to REDIS_HOST / REDIS_PORT, using a separate db for tests.
    """
    host = os.getenv("REDIS_HOST", "localhost")
    port = int(os.getenv("REDIS_PORT", 6379))
    db = int(os.getenv("REDIS_TEST_DB", 15))

    client = redis.Redis(host=host, port=port, db=db, decode_responses=False, socket_timeout=2)

    try:
        client.ping()
    except (redis.ConnectionError, redis.TimeoutError):
        pytest.skip("Redis service not available. Skipping integration tests.")

    # Clean before test
    client.flushdb()

    yield client

    # Clean after test
    client.flushdb()
    client.close()


@pytest.fixture
def redis_repository(redis_client):
    return RedisRepository(redis_client, key_prefix="freeshare-test")


@pytest.fixture
def redis_share_repository(redis_repository):
    return RedisShareRepository(redis_repository)
