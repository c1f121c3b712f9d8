"""
API v1 - OnceDrop REST API

This module contains the versioned API endpoints with OpenAPI/Swagger documentation.
"""

import os

from flask import Blueprint
from flask_restx import Api

# Get API version from environment
API_VERSION = os.getenv("API_VERSION", "v1")
API_PREFIX = f"/api/{API_VERSION}"

# Create blueprint for API v1
api_v1_bp = Blueprint("api_v1", __name__, url_prefix=API_PREFIX)

# Initialize Flask-RESTX API with Swagger documentation
api = Api(
    api_v1_bp,
    version="1.0",
    title="OnceDrop API",
    description="One-time, expiring transfer of client-side encrypted files",
    doc="/docs",  # Swagger UI will be available at /api/v1/docs
    license="MIT",
    # Token possession is the only authorization
)

# Import namespaces after api is created to avoid circular imports
from .namespaces import blob_ns, files_ns  # noqa: E402

# Register namespaces
api.add_namespace(files_ns, path="/files")
api.add_namespace(blob_ns, path="/blobs")
