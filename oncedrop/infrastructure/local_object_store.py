"""
Local Object Store Implementation

Concrete implementation of IObjectStore for local filesystem operations.
Retrieval locators are HMAC-signed URLs served by the API's blob endpoint.
"""

import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from oncedrop.domain.errors import ObjectStoreError
from oncedrop.domain.object_storage.object_store import IObjectStore, StoredObject
from oncedrop.domain.object_storage.signed_url_service import SignedUrlService

logger = logging.getLogger(__name__)

_TMP_SUFFIX = ".part"


class LocalObjectStore(IObjectStore):
    """
    Local filesystem implementation of IObjectStore.

    Blobs are written to a temporary file in the same directory, fsynced and
    hard-linked into place, so a reader never sees a partial blob under its
    final key and an existing key is never overwritten.

    Attributes:
        base_path: Base directory for blob storage
        signer: SignedUrlService producing retrieval locators
    """

    name = "local"

    def __init__(self, base_path: str, signer: SignedUrlService):
        """
        Initialize the local object store.

        Args:
            base_path: Base directory for blob storage
            signer: Signs locators pointing at the blob endpoint
        """
        self.base_path = Path(base_path)
        self.signer = signer
        self._ensure_base_directory()

    def _ensure_base_directory(self) -> None:
        """
        Ensure the base storage directory exists.

        Raises:
            ObjectStoreError: If directory creation fails
        """
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ObjectStoreError(
                f"Failed to create storage directory: {self.base_path}", e
            ) from e

    def _resolve(self, key: str) -> Path:
        """Map a key to a path inside base_path, refusing traversal."""
        if not key or not key.strip():
            raise ValueError("key cannot be empty")
        if "/" in key or "\\" in key or key in (".", ".."):
            raise ValueError(f"invalid object key: {key!r}")
        return self.base_path / key

    def put(self, key: str, payload: bytes, content_type: str) -> None:
        full_path = self._resolve(key)

        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self.base_path, prefix=".", suffix=_TMP_SUFFIX
            )
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            # link fails if the key exists, so a stored blob is never replaced
            os.link(tmp_name, full_path)
        except FileExistsError as e:
            raise ObjectStoreError(f"Object already exists: {key}", e) from e
        except OSError as e:
            raise ObjectStoreError(f"Failed to store object {key}", e) from e
        finally:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.debug("Stored %d bytes at %s", len(payload), full_path)

    def issue_retrieval_locator(self, key: str, ttl_seconds: int) -> str:
        if not self.exists(key):
            raise ObjectStoreError(f"Object not found: {key}")
        return self.signer.generate_signed_url(key, ttl_seconds).url

    def open(self, key: str) -> Optional[BinaryIO]:
        """
        Open a blob for streaming (used by the blob endpoint).

        Returns:
            Open binary file, or None if the blob does not exist. The caller
            must close it.
        """
        try:
            full_path = self._resolve(key)
            if not full_path.is_file():
                return None
            return open(full_path, "rb")
        except (OSError, ValueError):
            return None

    def exists(self, key: str) -> bool:
        try:
            return self._resolve(key).is_file()
        except (OSError, ValueError):
            return False

    def delete(self, key: str) -> bool:
        full_path = self._resolve(key)
        try:
            full_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise ObjectStoreError(f"Failed to delete object {key}", e) from e
        return True

    def list_objects(self) -> Iterator[StoredObject]:
        try:
            entries = list(self.base_path.iterdir())
        except OSError as e:
            raise ObjectStoreError(f"Failed to list {self.base_path}", e) from e

        for entry in entries:
            # Skip in-flight writes
            if entry.name.startswith(".") or not entry.is_file():
                continue
            try:
                mtime = entry.stat().st_mtime
            except FileNotFoundError:
                continue
            yield StoredObject(
                key=entry.name,
                updated_at=datetime.fromtimestamp(mtime, tz=timezone.utc),
            )
