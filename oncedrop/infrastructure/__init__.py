"""
Infrastructure Layer

Concrete adapters for Redis record storage and blob storage.
"""

from .local_object_store import LocalObjectStore
from .redis_repository import RedisConnectionManager, RedisRepository
from .redis_token_record_repository import RedisTokenRecordRepository

__all__ = [
    "LocalObjectStore",
    "RedisConnectionManager",
    "RedisRepository",
    "RedisTokenRecordRepository",
]
