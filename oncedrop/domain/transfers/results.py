"""
Transfer Results

Value objects describing the outcome of each controller operation.
Every failure the caller must distinguish has its own outcome.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .entities import TokenRecord
from .value_objects import ValidationFailure


class TransferOutcome(Enum):
    ISSUED = "issued"
    REDEEMED = "redeemed"
    FOUND = "found"
    INVALID = "invalid"
    NOT_FOUND = "not_found"
    ALREADY_USED = "already_used"
    EXPIRED = "expired"
    STORAGE_ERROR = "storage_error"


class MarkUsedOutcome(Enum):
    """Result of the record store's atomic check-and-mark."""

    MARKED = "marked"
    ALREADY_USED = "already_used"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class IssueResult:
    """
    Outcome of issuing a token.

    Attributes:
        outcome: ISSUED, INVALID or STORAGE_ERROR
        record: The persisted record (only when ISSUED)
        failure: Validation rule that refused the upload (only when INVALID)
    """

    outcome: TransferOutcome
    record: Optional[TokenRecord] = None
    failure: Optional[ValidationFailure] = None

    @property
    def success(self) -> bool:
        return self.outcome is TransferOutcome.ISSUED

    @property
    def token(self) -> Optional[str]:
        return self.record.id if self.record else None


@dataclass(frozen=True)
class RedeemResult:
    """Outcome of a redemption; ``locator`` is set only when REDEEMED."""

    outcome: TransferOutcome
    locator: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome is TransferOutcome.REDEEMED


@dataclass(frozen=True)
class MetadataResult:
    outcome: TransferOutcome
    original_name: Optional[str] = None
    mime: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome is TransferOutcome.FOUND

    def to_dict(self) -> dict:
        return {"original_name": self.original_name, "mime": self.mime}
