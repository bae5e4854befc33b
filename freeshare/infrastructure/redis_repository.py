"""
Redis Repository Base Class

Provides JSON storage, atomic Lua-scripted updates and sorted-set helpers
for Redis-backed repositories. Backend failures are translated into domain
errors: timeouts become TransientError, everything else StorageError.
"""

import json
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from freeshare.domain.errors import StorageError, TransientError


@contextmanager
def translate_redis_errors(action: str) -> Iterator[None]:
    """Map redis-py exceptions onto the share error taxonomy."""
    try:
        yield
    except RedisTimeoutError as e:
        raise TransientError(f"Redis timed out while trying to {action}", e) from e
    except RedisError as e:
        raise StorageError(f"Redis failed to {action}: {e}", e) from e


class RedisRepository:
    """Base Redis repository with JSON helpers and atomic scripts."""

    # SET NX the document and index it in one step. Returns 0 if the key exists.
    INSERT_INDEXED_SCRIPT = """
    local key = KEYS[1]
    local index = KEYS[2]
    if redis.call('SET', key, ARGV[1], 'NX') then
        redis.call('ZADD', index, ARGV[2], ARGV[3])
        return 1
    end
    return 0
    """

    DELETE_INDEXED_SCRIPT = """
    local removed = redis.call('DEL', KEYS[1])
    redis.call('ZREM', KEYS[2], ARGV[1])
    return removed
    """

    # Merge a JSON object of fields into the stored document.
    UPDATE_FIELDS_SCRIPT = """
    local key = KEYS[1]
    local data = redis.call('GET', key)
    if not data then
        return 0
    end

    local json_data = cjson.decode(data)
    local fields = cjson.decode(ARGV[1])
    for field, value in pairs(fields) do
        json_data[field] = value
    end

    redis.call('SET', key, cjson.encode(json_data))
    return 1
    """

    def __init__(self, redis_client: redis.Redis, key_prefix: str = ""):
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _make_key(self, key: str) -> str:
        """Create a prefixed key for Redis storage."""
        return f"{self.key_prefix}:{key}" if self.key_prefix else key

    def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Get JSON data from Redis.

        Returns:
            Dictionary if found, None if the key does not exist

        Raises:
            StorageError: The stored value is not valid JSON
        """
        redis_key = self._make_key(key)
        with translate_redis_errors(f"read {key}"):
            data = self.redis.get(redis_key)

        if data is None:
            return None

        if isinstance(data, bytes):
            data = data.decode('utf-8')
        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt JSON stored under {key}", e) from e

    def get_many_json(self, keys: List[str]) -> List[Optional[Dict[str, Any]]]:
        """Read several JSON documents in one round trip (None for missing keys)."""
        if not keys:
            return []

        redis_keys = [self._make_key(key) for key in keys]
        with translate_redis_errors(f"read {len(keys)} keys"):
            values = self.redis.mget(redis_keys)

        documents = []
        for key, value in zip(keys, values):
            if value is None:
                documents.append(None)
                continue
            if isinstance(value, bytes):
                value = value.decode('utf-8')
            try:
                documents.append(json.loads(value))
            except json.JSONDecodeError as e:
                raise StorageError(f"Corrupt JSON stored under {key}", e) from e
        return documents

    def insert_indexed_json(
        self, key: str, data: Dict[str, Any], index: str, score: float, member: str
    ) -> bool:
        """
        Store a document only if its key is free, and add it to a sorted-set index.

        Returns:
            True if inserted, False if the key already existed
        """
        with translate_redis_errors(f"insert {key}"):
            result = self.redis.eval(
                self.INSERT_INDEXED_SCRIPT,
                2,
                self._make_key(key),
                self._make_key(index),
                json.dumps(data),
                score,
                member,
            )
        return result == 1

    def delete_indexed(self, key: str, index: str, member: str) -> bool:
        """
        Delete a document and its index entry. Missing keys are not an error.

        Returns:
            True if the document existed
        """
        with translate_redis_errors(f"delete {key}"):
            result = self.redis.eval(
                self.DELETE_INDEXED_SCRIPT,
                2,
                self._make_key(key),
                self._make_key(index),
                member,
            )
        return result == 1

    def update_json_fields(self, key: str, fields: Dict[str, Any]) -> bool:
        """
        Atomically merge fields into a stored JSON object using a Lua script.

        Returns:
            True if the document existed and was updated
        """
        with translate_redis_errors(f"update {key}"):
            result = self.redis.eval(
                self.UPDATE_FIELDS_SCRIPT, 1, self._make_key(key), json.dumps(fields)
            )
        return result == 1

    def range_by_score(self, index: str, max_score: float, exclusive: bool = True) -> List[str]:
        """
        Members of a sorted set with score below max_score.

        Args:
            index: Sorted set name
            max_score: Upper bound
            exclusive: Exclude members scored exactly max_score
        """
        upper = f"({max_score}" if exclusive else max_score
        with translate_redis_errors(f"query {index}"):
            members = self.redis.zrangebyscore(self._make_key(index), "-inf", upper)
        return [self._decode(member) for member in members]

    def index_members(self, index: str) -> List[str]:
        """All members of a sorted set, lowest score first."""
        with translate_redis_errors(f"list {index}"):
            members = self.redis.zrange(self._make_key(index), 0, -1)
        return [self._decode(member) for member in members]

    def add_to_index(self, index: str, score: float, member: str) -> None:
        with translate_redis_errors(f"index {member}"):
            self.redis.zadd(self._make_key(index), {member: score})

    def remove_from_index(self, index: str, *members: str) -> int:
        if not members:
            return 0
        with translate_redis_errors(f"prune {index}"):
            return self.redis.zrem(self._make_key(index), *members)

    def exists(self, key: str) -> bool:
        with translate_redis_errors(f"check {key}"):
            return self.redis.exists(self._make_key(key)) > 0

    @staticmethod
    def _decode(value: Any) -> str:
        return value.decode('utf-8') if isinstance(value, bytes) else str(value)


class RedisConnectionManager:
    """Manages Redis connection with connection pooling."""

    def __init__(
        self,
        host: str = 'localhost',
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        max_connections: int = 20,
        socket_timeout: Optional[float] = 5.0,
        decode_responses: bool = False,
    ):
        self.connection_pool = redis.ConnectionPool(
            host=host,
            port=port,
            db=db,
            password=password,
            max_connections=max_connections,
            decode_responses=decode_responses,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
            socket_keepalive=True,
        )
        # Building the client opens no connection
        self._client = redis.Redis(connection_pool=self.connection_pool)

    @property
    def client(self) -> redis.Redis:
        """Redis client bound to this manager's connection pool."""
        return self._client

    def health_check(self) -> bool:
        """Check if Redis connection is healthy."""
        try:
            return bool(self.client.ping())
        except (RedisConnectionError, RedisTimeoutError):
            return False

    def close(self):
        """Close the connection pool."""
        if self.connection_pool:
            self.connection_pool.disconnect()
