"""
Google Cloud Storage Object Store Implementation

Concrete implementation of IObjectStore for Google Cloud Storage.
Retrieval locators are V4 signed URLs minted by GCS itself.
"""

import logging
from datetime import timedelta
from typing import Iterator, Optional

from google.api_core.exceptions import GoogleAPICallError, NotFound, PreconditionFailed
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage

from oncedrop.domain.errors import ObjectStoreError
from oncedrop.domain.object_storage.object_store import IObjectStore, StoredObject

logger = logging.getLogger(__name__)


class GCSObjectStore(IObjectStore):
    """
    Google Cloud Storage implementation of IObjectStore.

    Thread Safety:
        The GCS client handles concurrent operations safely.

    Attributes:
        bucket_name: Name of the GCS bucket for blob storage
        client: Google Cloud Storage client instance
        bucket: GCS bucket object
    """

    name = "gcs"

    def __init__(self, bucket_name: str, client: Optional[storage.Client] = None):
        """
        Initialize the GCS object store.

        Args:
            bucket_name: Name of the GCS bucket to use for storage
            client: Preconfigured client; default credentials are used if omitted

        Raises:
            ValueError: If bucket_name is empty
        """
        if not bucket_name or not bucket_name.strip():
            raise ValueError("bucket_name cannot be empty")

        self.bucket_name = bucket_name
        self.client = client or storage.Client()
        self.bucket = self.client.bucket(bucket_name)

    def put(self, key: str, payload: bytes, content_type: str) -> None:
        if not key or not key.strip():
            raise ValueError("key cannot be empty")

        blob = self.bucket.blob(key)
        try:
            # if_generation_match=0 refuses to overwrite an existing blob
            blob.upload_from_string(
                payload, content_type=content_type, if_generation_match=0
            )
        except PreconditionFailed as e:
            raise ObjectStoreError(f"Object already exists: {key}", e) from e
        except (GoogleAPICallError, GoogleAuthError) as e:
            raise ObjectStoreError(f"Failed to upload object {key} to GCS", e) from e

    def issue_retrieval_locator(self, key: str, ttl_seconds: int) -> str:
        try:
            blob = self.bucket.blob(key)
            if not blob.exists():
                raise ObjectStoreError(f"Object not found: {key}")
            return blob.generate_signed_url(
                version="v4",
                expiration=timedelta(seconds=ttl_seconds),
                method="GET",
            )
        except (GoogleAPICallError, GoogleAuthError, AttributeError) as e:
            # AttributeError: credentials without a private key cannot sign
            raise ObjectStoreError(f"Failed to generate signed URL for {key}", e) from e

    def delete(self, key: str) -> bool:
        try:
            self.bucket.blob(key).delete()
        except NotFound:
            pass
        except GoogleAPICallError as e:
            raise ObjectStoreError(f"Failed to delete object {key} from GCS", e) from e
        return True

    def list_objects(self) -> Iterator[StoredObject]:
        try:
            for blob in self.client.list_blobs(self.bucket_name):
                yield StoredObject(key=blob.name, updated_at=blob.updated)
        except GoogleAPICallError as e:
            raise ObjectStoreError(f"Failed to list bucket {self.bucket_name}", e) from e

    def close(self) -> None:
        self.client.close()
