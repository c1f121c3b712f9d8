"""
Redis Repository Base Class

Provides atomic operations for record persistence.
Implements the repository pattern for Redis-based data storage.
"""

import json
import logging
from typing import Any, Dict, Iterator, List, Optional

import redis
from redis.exceptions import RedisError

from oncedrop.domain.errors import RecordStoreError

logger = logging.getLogger(__name__)


class RedisRepository:
    """
    Base Redis repository with atomic JSON operations.

    Every Redis failure is re-raised as RecordStoreError so callers can tell
    a missing key apart from an unreachable server.
    """

    def __init__(self, redis_client: redis.Redis, key_prefix: str = ""):
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _make_key(self, key: str) -> str:
        """Create a prefixed key for Redis storage."""
        return f"{self.key_prefix}:{key}" if self.key_prefix else key

    def _strip_prefix(self, redis_key) -> str:
        if isinstance(redis_key, bytes):
            redis_key = redis_key.decode("utf-8")
        if self.key_prefix:
            return redis_key[len(self.key_prefix) + 1:]
        return redis_key

    def set_json_if_absent(
        self, key: str, data: Dict[str, Any], ttl: Optional[int] = None
    ) -> bool:
        """
        Set JSON data only if the key does not exist (SET NX).

        Returns:
            True if the key was created, False if it already existed
        """
        try:
            redis_key = self._make_key(key)
            json_data = json.dumps(data)
            return bool(self.redis.set(redis_key, json_data, ex=ttl, nx=True))
        except RedisError as e:
            raise RecordStoreError(f"Error inserting JSON data for key {key}", e) from e

    def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Get JSON data from Redis.

        Args:
            key: Redis key

        Returns:
            Dictionary if found, None if the key does not exist
        """
        try:
            data = self.redis.get(self._make_key(key))
        except RedisError as e:
            raise RecordStoreError(f"Error getting JSON data for key {key}", e) from e

        if data is None:
            return None

        if isinstance(data, bytes):
            data = data.decode("utf-8")
        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            raise RecordStoreError(f"Corrupt JSON stored under key {key}", e) from e

    def update_json_field(self, key: str, field: str, value: Any) -> bool:
        """
        Atomically update a single field in a JSON object using Lua script.

        The key's TTL is preserved.

        Args:
            key: Redis key
            field: Field name to update
            value: New value for the field

        Returns:
            True if updated, False if the key does not exist
        """
        lua_script = """
        local data = redis.call('GET', KEYS[1])
        if not data then
            return 0
        end

        local json_data = cjson.decode(data)
        json_data[ARGV[1]] = cjson.decode(ARGV[2])

        redis.call('SET', KEYS[1], cjson.encode(json_data), 'KEEPTTL')
        return 1
        """
        result = self.eval_script(lua_script, [key], [field, json.dumps(value)])
        return result == 1

    def eval_script(self, lua_script: str, keys: List[str], args: List[Any]) -> Any:
        """
        Run a Lua script atomically against prefixed keys.

        Args:
            lua_script: Script source
            keys: Unprefixed keys passed as KEYS
            args: Values passed as ARGV

        Returns:
            The script's return value
        """
        try:
            redis_keys = [self._make_key(k) for k in keys]
            return self.redis.eval(lua_script, len(redis_keys), *redis_keys, *args)
        except RedisError as e:
            raise RecordStoreError(f"Error running script on keys {keys}", e) from e

    def iter_keys_by_pattern(self, pattern: str) -> Iterator[str]:
        """
        Iterate over keys matching a pattern using SCAN.

        Args:
            pattern: Redis key pattern (supports wildcards)

        Yields:
            Matching keys (without prefix)
        """
        try:
            for redis_key in self.redis.scan_iter(match=self._make_key(pattern)):
                yield self._strip_prefix(redis_key)
        except RedisError as e:
            raise RecordStoreError(f"Error scanning keys by pattern {pattern}", e) from e


class RedisConnectionManager:
    """Manages Redis connection with connection pooling."""

    def __init__(self, host: str = 'localhost', port: int = 6379, db: int = 0,
                 password: Optional[str] = None, max_connections: int = 20,
                 decode_responses: bool = False):
        self.connection_pool = redis.ConnectionPool(
            host=host,
            port=port,
            db=db,
            password=password,
            max_connections=max_connections,
            decode_responses=decode_responses,
            retry_on_timeout=True,
            socket_keepalive=True,
        )
        self._client = None

    @property
    def client(self) -> redis.Redis:
        """Get Redis client instance with connection pooling."""
        if self._client is None:
            self._client = redis.Redis(connection_pool=self.connection_pool)
        return self._client

    def health_check(self) -> bool:
        """Check if Redis connection is healthy."""
        try:
            return bool(self.client.ping())
        except RedisError as e:
            logger.warning("Redis health check failed: %s", e)
            return False

    def close(self):
        """Close the connection pool."""
        if self.connection_pool:
            self.connection_pool.disconnect()
