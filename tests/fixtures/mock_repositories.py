"""
Mock Repository Implementations

In-memory implementations of the record store and object store for unit
testing. Behaviour mirrors the real adapters, including the atomic
check-and-mark, with inspection helpers for test assertions.
"""

import threading
from datetime import datetime, timedelta
from typing import Dict, Iterator, List, Optional

from oncedrop.domain.errors import ObjectStoreError, RecordStoreError
from oncedrop.domain.object_storage import IObjectStore, StoredObject
from oncedrop.domain.transfers import (
    MarkUsedOutcome,
    TokenRecord,
    TokenRecordRepository,
)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class InMemoryTokenRecordRepository(TokenRecordRepository):
    """
    In-memory TokenRecordRepository.

    Records are stored as dicts so callers never share mutable entities
    with the store, as with a real backend. ``fail_with`` makes every call
    raise RecordStoreError.
    """

    def __init__(self):
        self._storage: Dict[str, dict] = {}
        self._lock = threading.Lock()
        self.fail_with: Optional[str] = None
        self.mark_calls = 0

    def _check(self):
        if self.fail_with:
            raise RecordStoreError(self.fail_with)

    def insert(self, record: TokenRecord) -> bool:
        self._check()
        with self._lock:
            if record.id in self._storage:
                return False
            self._storage[record.id] = record.to_dict()
            return True

    def get_by_id(self, token: str) -> Optional[TokenRecord]:
        self._check()
        data = self._storage.get(token)
        return TokenRecord.from_dict(data) if data else None

    def mark_used_if_unused(self, token: str, used_at: datetime) -> MarkUsedOutcome:
        self._check()
        with self._lock:
            self.mark_calls += 1
            data = self._storage.get(token)
            if data is None:
                return MarkUsedOutcome.NOT_FOUND
            if data["used"]:
                return MarkUsedOutcome.ALREADY_USED
            data["used"] = True
            data["used_at"] = used_at.isoformat()
            return MarkUsedOutcome.MARKED

    def mark_purged(self, token: str) -> bool:
        self._check()
        with self._lock:
            data = self._storage.get(token)
            if data is None:
                return False
            data["purged"] = True
            return True

    def iter_records(self) -> Iterator[TokenRecord]:
        self._check()
        for data in list(self._storage.values()):
            yield TokenRecord.from_dict(data)

    # Inspection helpers

    def put_record(self, record: TokenRecord) -> None:
        """Store a record as-is, bypassing insert semantics."""
        self._storage[record.id] = record.to_dict()

    def remove(self, token: str) -> None:
        self._storage.pop(token, None)

    def count(self) -> int:
        return len(self._storage)


class InMemoryObjectStore(IObjectStore):
    """
    In-memory IObjectStore.

    Locators are ``memory://<key>?ttl=<seconds>``. Failure switches make
    individual operations raise ObjectStoreError.
    """

    name = "memory"

    def __init__(self):
        self.blobs: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
        self.updated: Dict[str, datetime] = {}
        self.issued_locators: List[str] = []
        self.deleted: List[str] = []
        self.fail_put = False
        self.fail_locator = False
        self.fail_delete = False
        self.closed = False
        self._lock = threading.Lock()

    def put(self, key: str, payload: bytes, content_type: str) -> None:
        if not key:
            raise ValueError("key cannot be empty")
        if self.fail_put:
            raise ObjectStoreError(f"put failed for {key}")
        if key in self.blobs:
            raise ObjectStoreError(f"Object already exists: {key}")
        self.blobs[key] = bytes(payload)
        self.content_types[key] = content_type
        self.updated.setdefault(key, datetime.now().astimezone())

    def issue_retrieval_locator(self, key: str, ttl_seconds: int) -> str:
        if self.fail_locator:
            raise ObjectStoreError(f"locator failed for {key}")
        if key not in self.blobs:
            raise ObjectStoreError(f"Object not found: {key}")
        locator = f"memory://{key}?ttl={ttl_seconds}"
        with self._lock:
            self.issued_locators.append(locator)
        return locator

    def delete(self, key: str) -> bool:
        if self.fail_delete:
            raise ObjectStoreError(f"delete failed for {key}")
        self.blobs.pop(key, None)
        self.content_types.pop(key, None)
        self.updated.pop(key, None)
        self.deleted.append(key)
        return True

    def list_objects(self) -> Iterator[StoredObject]:
        for key in list(self.blobs):
            yield StoredObject(key=key, updated_at=self.updated[key])

    def close(self) -> None:
        self.closed = True

    # Inspection helpers

    def put_at(self, key: str, payload: bytes, updated_at: datetime) -> None:
        """Store a blob with an explicit modification time."""
        self.blobs[key] = payload
        self.updated[key] = updated_at
