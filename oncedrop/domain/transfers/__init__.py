"""
Transfers Domain

Handles one-time token issuance, redemption and upload admission.
"""

from .entities import TokenRecord
from .repositories import TokenRecordRepository
from .results import (
    IssueResult,
    MarkUsedOutcome,
    MetadataResult,
    RedeemResult,
    TransferOutcome,
)
from .services import TokenLifecycleController
from .validation import ValidationResult, validate_upload
from .value_objects import (
    AcceptedUpload,
    TransferPolicy,
    TransferToken,
    ValidationFailure,
)

__all__ = [
    "AcceptedUpload",
    "IssueResult",
    "MarkUsedOutcome",
    "MetadataResult",
    "RedeemResult",
    "TokenLifecycleController",
    "TokenRecord",
    "TokenRecordRepository",
    "TransferOutcome",
    "TransferPolicy",
    "TransferToken",
    "ValidationFailure",
    "ValidationResult",
    "validate_upload",
]
