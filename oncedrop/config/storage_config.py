"""
Storage Configuration

Selects and configures the object store backend.
"""

import logging
import os
from typing import Optional

from google.cloud import storage
from google.oauth2 import service_account

logger = logging.getLogger(__name__)


class StorageConfig:
    """Object storage configuration settings."""

    def __init__(self):
        self.backend = os.getenv("STORAGE_BACKEND", "local").lower()
        self.storage_dir = os.getenv("STORAGE_DIR", "/tmp/oncedrop")
        self.bucket_name = os.getenv("GCS_BUCKET_NAME")
        self.credentials_path = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
        self.secret_key = os.getenv("SECRET_KEY")
        # Public prefix of the blob endpoint used in local locators
        self.blob_base_url = os.getenv("BLOB_BASE_URL", "/api/v1/blobs")


def create_gcs_client(config: StorageConfig) -> storage.Client:
    """
    Create a Google Cloud Storage client.

    Uses the service account file when one is configured, default
    credentials otherwise. Signed URLs need a service account key.

    Args:
        config: Storage configuration

    Returns:
        GCS client
    """
    credentials_path: Optional[str] = config.credentials_path
    if credentials_path and os.path.exists(credentials_path):
        credentials = service_account.Credentials.from_service_account_file(
            credentials_path
        )
        logger.info("GCS client initialized with service account: %s", credentials_path)
        return storage.Client(credentials=credentials, project=credentials.project_id)

    logger.info("GCS client initialized with default credentials")
    return storage.Client()
