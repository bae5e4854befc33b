"""
Redis Share Repository Implementation

Concrete Redis-based implementation of ShareRepository.

Layout:
- share:{code}  JSON document of the record (secrets included)
- share_expiry  sorted set of share codes scored by expires_at (unix seconds)

Records carry no Redis TTL: an expired record must stay readable until the
sweeper (or a lazy purge) has deleted its blob, otherwise the blob key would
be lost and the payload orphaned.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from freeshare.domain.errors import ShareCodeConflictError, StorageError, ValidationError
from freeshare.domain.sharing.entities import ShareRecord
from freeshare.domain.sharing.repositories import ShareRepository

from .redis_repository import RedisRepository

logger = logging.getLogger(__name__)


class RedisShareRepository(ShareRepository):
    """Redis-based implementation of ShareRepository."""

    def __init__(self, redis_repository: RedisRepository):
        """
        Initialize with Redis repository.

        Args:
            redis_repository: RedisRepository instance from infrastructure layer
        """
        self.redis_repo = redis_repository
        self.record_prefix = "share"
        self.expiry_index = "share_expiry"

    def _record_key(self, share_code: str) -> str:
        return f"{self.record_prefix}:{share_code}"

    def insert(self, record: ShareRecord) -> None:
        inserted = self.redis_repo.insert_indexed_json(
            self._record_key(record.share_code),
            record.to_dict(),
            index=self.expiry_index,
            score=record.expires_at.timestamp(),
            member=record.share_code,
        )
        if not inserted:
            raise ShareCodeConflictError(
                f"Share code {record.share_code} is already stored"
            )

    def find_by_code(self, share_code: str) -> Optional[ShareRecord]:
        data = self.redis_repo.get_json(self._record_key(share_code))
        if data is None:
            return None
        return self._deserialize(share_code, data)

    def update(self, share_code: str, fields: Dict[str, Any]) -> bool:
        if not fields:
            return self.redis_repo.exists(self._record_key(share_code))

        updated = self.redis_repo.update_json_fields(
            self._record_key(share_code), ShareRecord.serialize_fields(fields)
        )
        if updated and isinstance(fields.get("expires_at"), datetime):
            self.redis_repo.add_to_index(
                self.expiry_index, fields["expires_at"].timestamp(), share_code
            )
        return updated

    def delete(self, share_code: str) -> bool:
        return self.redis_repo.delete_indexed(
            self._record_key(share_code), self.expiry_index, share_code
        )

    def find_expired_before(self, timestamp: datetime) -> List[ShareRecord]:
        """
        Records whose expires_at is strictly before timestamp.

        Index entries whose document has vanished are pruned on the way.
        """
        codes = self.redis_repo.range_by_score(
            self.expiry_index, timestamp.timestamp(), exclusive=True
        )
        return self._load(codes)

    def list_all(self) -> List[ShareRecord]:
        return self._load(self.redis_repo.index_members(self.expiry_index))

    def _load(self, codes: List[str]) -> List[ShareRecord]:
        if not codes:
            return []

        documents = self.redis_repo.get_many_json(
            [self._record_key(code) for code in codes]
        )

        records = []
        dangling = []
        for code, data in zip(codes, documents):
            if data is None:
                dangling.append(code)
                continue
            records.append(self._deserialize(code, data))

        if dangling:
            logger.debug(f"Pruning {len(dangling)} dangling expiry index entries")
            self.redis_repo.remove_from_index(self.expiry_index, *dangling)

        return records

    @staticmethod
    def _deserialize(share_code: str, data: Dict[str, Any]) -> ShareRecord:
        try:
            return ShareRecord.from_dict(data)
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise StorageError(
                f"Stored record for share {share_code} is malformed: {e}", e
            ) from e
