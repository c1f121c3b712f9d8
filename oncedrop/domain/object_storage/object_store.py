"""
Object Store Interface

Abstract interface for durable blob storage.
This abstraction allows the domain layer to remain infrastructure-agnostic
by defining contracts for blob operations without depending on specific
storage implementations (local filesystem, cloud storage, etc.).

Contract Guarantees:
- put() returns only after the blob is durably stored; partial blobs are
  never visible under the final key
- issue_retrieval_locator() yields a URL that works for any holder until
  its TTL runs out, so callers must authorize before asking for one
- delete() is idempotent
- Infrastructure failures raise ObjectStoreError
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator


@dataclass(frozen=True)
class StoredObject:
    """Listing entry for a stored blob."""

    key: str
    updated_at: datetime


class IObjectStore(ABC):
    """Unified interface for blob storage operations."""

    name: str = "abstract"

    @abstractmethod
    def put(self, key: str, payload: bytes, content_type: str) -> None:
        """
        Store a blob under ``key``. An existing blob is never overwritten.

        Args:
            key: Object key (e.g., 'kT3...Xq.bin')
            payload: Opaque bytes to store
            content_type: Content type recorded with the blob

        Raises:
            ValueError: If key is empty
            ObjectStoreError: If the key already exists or the blob could
                not be durably written

        Example:
            >>> store.put('kT3...Xq.bin', ciphertext, 'application/octet-stream')
        """
        pass  # pragma: no cover

    @abstractmethod
    def issue_retrieval_locator(self, key: str, ttl_seconds: int) -> str:
        """
        Mint a short-lived, self-authorizing URL for ``key``.

        Args:
            key: Object key
            ttl_seconds: Lifetime of the URL

        Returns:
            URL string

        Raises:
            ObjectStoreError: If the URL cannot be generated
        """
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete a blob.

        Returns:
            True if the blob was deleted or did not exist

        Raises:
            ObjectStoreError: If the delete failed
        """
        pass  # pragma: no cover

    @abstractmethod
    def list_objects(self) -> Iterator[StoredObject]:
        """Iterate over stored blobs (housekeeping only)."""
        pass  # pragma: no cover

    def close(self) -> None:
        """Release clients held by the store."""
