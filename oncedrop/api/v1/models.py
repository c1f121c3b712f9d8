"""
API Models for response documentation
"""

from flask_restx import fields

from oncedrop.api.v1 import api

# =============================================================================
# Response Models
# =============================================================================

upload_response = api.model(
    "UploadResponse",
    {
        "token": fields.String(
            description="One-time download token", example="kT3mQ9vX2aLp0RzW8yBn4c"
        ),
        "download_url": fields.String(
            description="Link to hand to the receiver",
            example="https://drop.example/api/v1/files/kT3mQ9vX2aLp0RzW8yBn4c/download",
        ),
        "expires_at": fields.String(
            description="When the token expires (ISO timestamp)"
        ),
    },
)

metadata_response = api.model(
    "MetadataResponse",
    {
        "original_name": fields.String(
            description="Filename declared by the sender", example="report.pdf"
        ),
        "mime": fields.String(
            description="Content type declared by the sender",
            enum=["image/png", "image/jpeg", "application/pdf"],
        ),
    },
)

error_response = api.model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error category"),
        "title": fields.String(description="Short error title"),
        "message": fields.String(description="User-facing error message"),
        "action": fields.String(description="Suggested next step"),
    },
)
