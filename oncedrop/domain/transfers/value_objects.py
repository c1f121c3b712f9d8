"""
Transfer Value Objects

Immutable value objects for type safety and validation.
"""

import secrets
import string
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import FrozenSet

from oncedrop.domain.errors import InvalidTransferTokenError

# URL-safe base64 alphabet used by secrets.token_urlsafe
TOKEN_ALPHABET = frozenset(string.ascii_letters + string.digits + "-_")
TOKEN_BYTES = 16
TOKEN_LENGTH = 22


class TransferPolicy:
    """Fixed admission and lifetime rules for one-time transfers."""

    MAX_PAYLOAD_BYTES = 5 * 1024 * 1024
    ALLOWED_MIME_TYPES: FrozenSet[str] = frozenset(
        {"image/png", "image/jpeg", "application/pdf"}
    )
    ALLOWED_EXTENSIONS: FrozenSet[str] = frozenset({"png", "jpg", "jpeg", "pdf"})
    VALIDITY_WINDOW = timedelta(hours=24)
    LOCATOR_TTL_SECONDS = 60
    OBJECT_KEY_SUFFIX = ".bin"
    STORAGE_CONTENT_TYPE = "application/octet-stream"

    @classmethod
    def object_key(cls, token: str) -> str:
        """Storage key of the blob bound to ``token``."""
        return f"{token}{cls.OBJECT_KEY_SUFFIX}"

    @classmethod
    def token_from_object_key(cls, key: str) -> str:
        """Inverse of :meth:`object_key`; returns an empty string for foreign keys."""
        if not key.endswith(cls.OBJECT_KEY_SUFFIX):
            return ""
        return key[: -len(cls.OBJECT_KEY_SUFFIX)]


@dataclass(frozen=True)
class TransferToken:
    """
    Value object representing a one-time transfer token.

    Tokens are 22 characters drawn from the URL-safe base64 alphabet and
    carry 128 bits from ``secrets``. No uniqueness check is made against
    stored records: by the birthday bound the probability of any collision
    among ``n`` tokens is about ``n**2 / 2**129``, i.e. ~1.5e-15 after
    10**12 issued tokens.
    """

    value: str

    def __post_init__(self):
        if not self.is_well_formed(self.value):
            raise InvalidTransferTokenError(
                f"Invalid transfer token: expected {TOKEN_LENGTH} URL-safe characters"
            )

    @staticmethod
    def is_well_formed(value: object) -> bool:
        """Check length and alphabet without touching any store."""
        if not isinstance(value, str) or len(value) != TOKEN_LENGTH:
            return False
        return all(c in TOKEN_ALPHABET for c in value)

    @classmethod
    def generate(cls) -> "TransferToken":
        """
        Generate a new cryptographically secure token.

        ``secrets.token_urlsafe(16)`` always yields exactly 22 characters
        once the base64 padding is stripped.
        """
        return cls(secrets.token_urlsafe(TOKEN_BYTES))

    def __str__(self) -> str:
        return self.value

    def short(self) -> str:
        """Truncated form safe for log lines."""
        return f"{self.value[:6]}..."


class ValidationFailure(Enum):
    """Reasons an upload is refused, in the order the rules are applied."""

    EMPTY_PAYLOAD = "empty_file"
    PAYLOAD_TOO_LARGE = "file_too_large"
    MIME_NOT_ALLOWED = "unsupported_mime_type"
    FILENAME_REQUIRED = "filename_required"
    FILENAME_ILLEGAL = "illegal_filename"
    EXTENSION_NOT_ALLOWED = "extension_not_allowed"


@dataclass(frozen=True)
class AcceptedUpload:
    """Declared attributes of an upload that passed validation."""

    mime: str
    filename: str
    extension: str
