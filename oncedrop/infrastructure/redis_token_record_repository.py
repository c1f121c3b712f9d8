"""
Redis Token Record Repository Implementation

Concrete Redis-based implementation of TokenRecordRepository.
Records are JSON documents; the one-time mark is a Lua script so the
check and the write happen as a single atomic step inside Redis.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterator, Optional

from oncedrop.domain.errors import RecordStoreError
from oncedrop.domain.transfers.entities import TokenRecord, utcnow
from oncedrop.domain.transfers.repositories import TokenRecordRepository
from oncedrop.domain.transfers.results import MarkUsedOutcome

logger = logging.getLogger(__name__)

# 0 = missing, 1 = marked by this call, 2 = already used
MARK_USED_SCRIPT = """
local data = redis.call('GET', KEYS[1])
if not data then
    return 0
end

local record = cjson.decode(data)
if record['used'] == true then
    return 2
end

record['used'] = true
record['used_at'] = ARGV[1]
redis.call('SET', KEYS[1], cjson.encode(record), 'KEEPTTL')
return 1
"""

_MARK_RESULTS = {
    0: MarkUsedOutcome.NOT_FOUND,
    1: MarkUsedOutcome.MARKED,
    2: MarkUsedOutcome.ALREADY_USED,
}


class RedisTokenRecordRepository(TokenRecordRepository):
    """
    Redis-based implementation of TokenRecordRepository.

    Each record is kept for its validity window plus a retention period, so
    a recently expired token is still reported as expired rather than
    unknown. After that Redis drops it.
    """

    def __init__(self, redis_repository, retention: timedelta = timedelta(days=7)):
        """
        Initialize with Redis repository.

        Args:
            redis_repository: RedisRepository instance from infrastructure layer
            retention: How long records outlive their expiry
        """
        self.redis_repo = redis_repository
        self.token_prefix = "transfer"
        self.retention = retention

    def _key(self, token: str) -> str:
        return f"{self.token_prefix}:{token}"

    def _ttl_for(self, record: TokenRecord) -> int:
        remaining = record.expires_at - utcnow() + self.retention
        return max(1, int(remaining.total_seconds()))

    def insert(self, record: TokenRecord) -> bool:
        """Insert with SET NX so an existing token is never overwritten."""
        return self.redis_repo.set_json_if_absent(
            self._key(record.id), record.to_dict(), ttl=self._ttl_for(record)
        )

    def get_by_id(self, token: str) -> Optional[TokenRecord]:
        data = self.redis_repo.get_json(self._key(token))
        if data is None:
            return None

        try:
            return TokenRecord.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise RecordStoreError(
                f"Error deserializing record for token {token[:6]}...", e
            ) from e

    def mark_used_if_unused(self, token: str, used_at: datetime) -> MarkUsedOutcome:
        result = self.redis_repo.eval_script(
            MARK_USED_SCRIPT, [self._key(token)], [used_at.isoformat()]
        )
        try:
            return _MARK_RESULTS[int(result)]
        except (KeyError, TypeError, ValueError) as e:
            raise RecordStoreError(f"Unexpected mark-used reply: {result!r}", e) from e

    def mark_purged(self, token: str) -> bool:
        return self.redis_repo.update_json_field(self._key(token), "purged", True)

    def iter_records(self) -> Iterator[TokenRecord]:
        """
        Iterate over stored records.

        Records that vanish between SCAN and GET are skipped, as are records
        that fail to decode. Connection failures propagate.
        """
        for key in self.redis_repo.iter_keys_by_pattern(f"{self.token_prefix}:*"):
            try:
                data = self.redis_repo.get_json(key)
            except RecordStoreError as e:
                # Corrupt JSON carries the decode error; anything else is transport
                if not isinstance(e.original_error, ValueError):
                    raise
                logger.warning("Skipping corrupt record under %s: %s", key, e)
                continue
            if data is None:
                continue
            try:
                record = TokenRecord.from_dict(data)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping undecodable record under %s: %s", key, e)
                continue
            yield record
