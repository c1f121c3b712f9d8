"""
Transfer Entities

Domain entity for a one-time transfer token and the object it guards.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .value_objects import TransferPolicy


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class TokenRecord:
    """
    Entity binding one token to one stored object and its metadata.

    The record is the only persisted entity. ``used`` flips to True exactly
    once, and only through the record store's conditional update.
    """

    id: str
    original_name: str
    mime: str
    size: int
    expires_at: datetime
    created_at: datetime = field(default_factory=utcnow)
    used: bool = False
    used_at: Optional[datetime] = None
    purged: bool = False

    @classmethod
    def create(
        cls,
        token: str,
        original_name: str,
        mime: str,
        size: int,
        now: Optional[datetime] = None,
    ) -> "TokenRecord":
        """
        Factory method for a freshly issued, unused record.

        Args:
            token: Transfer token (also the object key prefix)
            original_name: Validated filename
            mime: Validated content type
            size: Ciphertext length in bytes
            now: Issuance time, defaults to the current UTC time

        Returns:
            New TokenRecord expiring one validity window after ``now``
        """
        now = now or utcnow()
        return cls(
            id=token,
            original_name=original_name,
            mime=mime,
            size=size,
            created_at=now,
            expires_at=now + TransferPolicy.VALIDITY_WINDOW,
        )

    @property
    def object_key(self) -> str:
        return TransferPolicy.object_key(self.id)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if the validity window has passed."""
        return (now or utcnow()) >= self.expires_at

    def is_redeemable(self, now: Optional[datetime] = None) -> bool:
        return not self.used and not self.is_expired(now)

    def get_remaining_seconds(self, now: Optional[datetime] = None) -> int:
        """Seconds until expiration (0 if expired)."""
        remaining = self.expires_at - (now or utcnow())
        return max(0, int(remaining.total_seconds()))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "original_name": self.original_name,
            "mime": self.mime,
            "size": self.size,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "used": self.used,
            "used_at": self.used_at.isoformat() if self.used_at else None,
            "purged": self.purged,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenRecord":
        """Create TokenRecord from dictionary."""
        return cls(
            id=data["id"],
            original_name=data["original_name"],
            mime=data["mime"],
            size=int(data["size"]),
            created_at=_parse_timestamp(data["created_at"]),
            expires_at=_parse_timestamp(data["expires_at"]),
            used=bool(data.get("used", False)),
            used_at=_parse_timestamp(data.get("used_at")),
            purged=bool(data.get("purged", False)),
        )
