"""
Object Storage Domain

Blob storage contract and signed locator generation.
"""

from .object_store import IObjectStore, StoredObject
from .signed_url_service import SignatureCheck, SignedUrl, SignedUrlService

__all__ = [
    "IObjectStore",
    "StoredObject",
    "SignatureCheck",
    "SignedUrl",
    "SignedUrlService",
]
