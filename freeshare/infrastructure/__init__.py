"""
Infrastructure Layer

Concrete stores behind the domain interfaces.
"""

from .local_blob_store import LocalBlobStore
from .redis_repository import RedisConnectionManager, RedisRepository
from .redis_share_repository import RedisShareRepository

__all__ = [
    'LocalBlobStore',
    'RedisConnectionManager',
    'RedisRepository',
    'RedisShareRepository',
]
