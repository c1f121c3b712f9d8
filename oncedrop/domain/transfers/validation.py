"""
Upload Validation

Pure admission checks applied before any storage side effect.
"""

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote

from .value_objects import AcceptedUpload, TransferPolicy, ValidationFailure

_SAFE_FILENAME = re.compile(r"[A-Za-z0-9_.\- ]+")


@dataclass(frozen=True)
class ValidationResult:
    """Either an accepted upload or the first rule it broke."""

    accepted: Optional[AcceptedUpload] = None
    failure: Optional[ValidationFailure] = None

    @property
    def is_valid(self) -> bool:
        return self.accepted is not None

    @classmethod
    def reject(cls, failure: ValidationFailure) -> "ValidationResult":
        return cls(failure=failure)


def decode_filename(raw_name: Optional[str]) -> Optional[str]:
    """
    Percent-decode and trim a declared filename.

    Returns None when the name is not valid UTF-8 after decoding.
    """
    if raw_name is None:
        return ""
    try:
        return unquote(raw_name, errors="strict").strip()
    except UnicodeDecodeError:
        return None


def validate_upload(
    payload: bytes,
    declared_mime: Optional[str],
    declared_filename: Optional[str],
) -> ValidationResult:
    """
    Check that an upload may be stored.

    Rules are applied in a fixed order and the first failure wins, so the
    same input always yields the same, specific reason.

    Args:
        payload: Raw (encrypted) bytes as received
        declared_mime: Content type declared by the sender
        declared_filename: Percent-encoded filename declared by the sender

    Returns:
        ValidationResult with the accepted tuple or the failure reason
    """
    if not payload:
        return ValidationResult.reject(ValidationFailure.EMPTY_PAYLOAD)

    if len(payload) > TransferPolicy.MAX_PAYLOAD_BYTES:
        return ValidationResult.reject(ValidationFailure.PAYLOAD_TOO_LARGE)

    if declared_mime not in TransferPolicy.ALLOWED_MIME_TYPES:
        return ValidationResult.reject(ValidationFailure.MIME_NOT_ALLOWED)

    filename = decode_filename(declared_filename)
    if filename == "":
        return ValidationResult.reject(ValidationFailure.FILENAME_REQUIRED)

    if filename is None or not _SAFE_FILENAME.fullmatch(filename):
        return ValidationResult.reject(ValidationFailure.FILENAME_ILLEGAL)

    # No dot means no extension at all
    if "." not in filename:
        return ValidationResult.reject(ValidationFailure.EXTENSION_NOT_ALLOWED)

    extension = filename.rsplit(".", 1)[1].lower()
    if extension not in TransferPolicy.ALLOWED_EXTENSIONS:
        return ValidationResult.reject(ValidationFailure.EXTENSION_NOT_ALLOWED)

    return ValidationResult(
        accepted=AcceptedUpload(
            mime=declared_mime, filename=filename, extension=extension
        )
    )
