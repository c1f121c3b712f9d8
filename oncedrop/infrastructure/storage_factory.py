"""
Storage Factory

Factory for creating the object store implementation selected by
``STORAGE_BACKEND``. The domain only sees the ``IObjectStore`` interface.
"""

import logging
from typing import Optional

from oncedrop.config.storage_config import StorageConfig, create_gcs_client
from oncedrop.domain.object_storage.object_store import IObjectStore
from oncedrop.domain.object_storage.signed_url_service import SignedUrlService

from .gcs_object_store import GCSObjectStore
from .local_object_store import LocalObjectStore

logger = logging.getLogger(__name__)


class StorageFactory:
    """Factory that returns the configured object store."""

    @staticmethod
    def create_storage(config: Optional[StorageConfig] = None) -> IObjectStore:
        """
        Create the object store.

        Environment Variables:
            STORAGE_BACKEND: 'local' (default) or 'gcs'
            STORAGE_DIR: Base directory for local storage
            GCS_BUCKET_NAME: Bucket for GCS storage

        Raises:
            RuntimeError: If the backend is unknown or cannot be initialized
        """
        config = config or StorageConfig()

        if config.backend == "local":
            return StorageFactory._create_local_storage(config)
        if config.backend == "gcs":
            return StorageFactory._create_gcs_storage(config)
        raise RuntimeError(f"Unknown STORAGE_BACKEND: {config.backend!r}")

    @staticmethod
    def _create_local_storage(config: StorageConfig) -> LocalObjectStore:
        signer = SignedUrlService(
            secret_key=config.secret_key, base_url=config.blob_base_url
        )
        try:
            store = LocalObjectStore(config.storage_dir, signer)
        except Exception as e:
            raise RuntimeError(f"Failed to initialize local storage: {e}") from e
        logger.info("Storage factory: using local filesystem at %s", config.storage_dir)
        return store

    @staticmethod
    def _create_gcs_storage(config: StorageConfig) -> GCSObjectStore:
        if not config.bucket_name:
            raise RuntimeError("GCS_BUCKET_NAME must be set when STORAGE_BACKEND=gcs")
        try:
            store = GCSObjectStore(config.bucket_name, client=create_gcs_client(config))
        except Exception as e:
            raise RuntimeError(f"Failed to initialize GCS storage: {e}") from e
        logger.info("Storage factory: using GCS bucket %s", config.bucket_name)
        return store
