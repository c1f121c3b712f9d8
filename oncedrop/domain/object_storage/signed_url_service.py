"""
Signed URL Service

Service for generating time-limited signed URLs for direct blob access.
Used by stores that cannot mint their own pre-signed URLs.
"""

import hashlib
import hmac
import logging
import secrets
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import quote

logger = logging.getLogger(__name__)


class SignatureCheck(Enum):
    VALID = "valid"
    INVALID = "invalid"
    EXPIRED = "expired"


@dataclass
class SignedUrl:
    """
    Represents a signed URL with expiration.
    """

    url: str
    key: str
    expires: int
    signature: str

    def get_remaining_seconds(self, now: Optional[float] = None) -> int:
        """Get remaining seconds until expiration."""
        now = time.time() if now is None else now
        return max(0, int(self.expires - now))


class SignedUrlService:
    """
    Service for generating and validating signed URLs.

    The signature is an HMAC-SHA256 over the key and the absolute expiry
    (unix seconds), so neither can be changed by the holder.
    """

    def __init__(self, secret_key: Optional[str] = None, base_url: str = ""):
        """
        Initialize SignedUrlService.

        Args:
            secret_key: Secret key for HMAC signing; a random key is generated
                when omitted, which only works for single-process deployments
            base_url: URL prefix the key is appended to
        """
        if not secret_key:
            logger.warning(
                "No SECRET_KEY configured; generated an ephemeral signing key. "
                "Locators will not validate across processes."
            )
        self.secret_key = secret_key or self._generate_secret_key()
        self.base_url = base_url.rstrip("/")

    @staticmethod
    def _generate_secret_key(length: int = 32) -> str:
        """Generate a cryptographically secure secret key."""
        return secrets.token_hex(length)

    def generate_signed_url(
        self, key: str, ttl_seconds: int, now: Optional[float] = None
    ) -> SignedUrl:
        """
        Generate a signed URL for blob access.

        Args:
            key: Object key
            ttl_seconds: Time to live in seconds
            now: Current unix time (for tests)

        Returns:
            SignedUrl object with URL and expiration information
        """
        now = time.time() if now is None else now
        expires = int(now) + ttl_seconds
        signature = self._generate_signature(key, expires)
        url = f"{self.base_url}/{quote(key)}?expires={expires}&signature={signature}"
        return SignedUrl(url=url, key=key, expires=expires, signature=signature)

    def _generate_signature(self, key: str, expires: int) -> str:
        """
        Generate HMAC signature for key and expiration.

        Args:
            key: Object key
            expires: Expiration as unix seconds

        Returns:
            HMAC signature as hex string
        """
        message = f"{key}:{expires}"
        return hmac.new(
            self.secret_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
        ).hexdigest()

    def validate(
        self,
        key: str,
        expires: Optional[str],
        signature: Optional[str],
        now: Optional[float] = None,
    ) -> SignatureCheck:
        """
        Validate a signed request.

        The signature is checked before the expiry.

        Args:
            key: Object key from the path
            expires: ``expires`` query parameter
            signature: ``signature`` query parameter
            now: Current unix time (for tests)

        Returns:
            SignatureCheck verdict
        """
        if not signature or not expires:
            return SignatureCheck.INVALID
        try:
            expires_at = int(expires)
        except (TypeError, ValueError):
            return SignatureCheck.INVALID

        expected = self._generate_signature(key, expires_at)
        # Use constant-time comparison to prevent timing attacks
        if not hmac.compare_digest(
            signature.encode("utf-8"), expected.encode("utf-8")
        ):
            return SignatureCheck.INVALID

        now = time.time() if now is None else now
        if now >= expires_at:
            return SignatureCheck.EXPIRED
        return SignatureCheck.VALID
