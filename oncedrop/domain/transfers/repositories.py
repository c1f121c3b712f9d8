"""
Transfer Repositories

Repository interface for token record persistence.
Concrete implementations are in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterator, Optional

from .entities import TokenRecord
from .results import MarkUsedOutcome


class TokenRecordRepository(ABC):
    """
    Abstract repository interface for token records.

    Implementations raise RecordStoreError for infrastructure failures so
    that callers can tell "not there" apart from "could not ask".
    """

    @abstractmethod
    def insert(self, record: TokenRecord) -> bool:
        """
        Persist a new record.

        Args:
            record: TokenRecord to insert

        Returns:
            True if inserted, False if a record with the same id exists

        Raises:
            RecordStoreError: If the store cannot be reached
        """
        pass  # pragma: no cover

    @abstractmethod
    def get_by_id(self, token: str) -> Optional[TokenRecord]:
        """
        Retrieve a record by token.

        Args:
            token: Transfer token

        Returns:
            TokenRecord if found, None otherwise

        Raises:
            RecordStoreError: If the store cannot be reached
        """
        pass  # pragma: no cover

    @abstractmethod
    def mark_used_if_unused(self, token: str, used_at: datetime) -> MarkUsedOutcome:
        """
        Atomically set ``used`` where the record exists and is still unused.

        This must be a single conditional operation in the store. Splitting
        it into a read and a write reopens the double-redemption race.

        Args:
            token: Transfer token
            used_at: Redemption timestamp to record

        Returns:
            MARKED for the one winning caller, ALREADY_USED for every other
            caller, NOT_FOUND if the record is absent

        Raises:
            RecordStoreError: If the store cannot be reached
        """
        pass  # pragma: no cover

    @abstractmethod
    def mark_purged(self, token: str) -> bool:
        """
        Flag that the record's object has been removed by housekeeping.

        Returns:
            True if the record was updated, False if it no longer exists
        """
        pass  # pragma: no cover

    @abstractmethod
    def iter_records(self) -> Iterator[TokenRecord]:
        """Iterate over all stored records (housekeeping only)."""
        pass  # pragma: no cover

    def close(self) -> None:
        """Release connections held by the repository."""
