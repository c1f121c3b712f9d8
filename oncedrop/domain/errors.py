"""
Error Handling Module

Defines domain exceptions and error categories for the application.
Domain exceptions are pure and have no external dependencies.
Application exceptions carry the user-facing message set used by the API.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Error category enumeration for structured error handling."""

    EMPTY_FILE = "empty_file"
    FILE_TOO_LARGE = "file_too_large"
    UNSUPPORTED_MIME_TYPE = "unsupported_mime_type"
    FILENAME_REQUIRED = "filename_required"
    ILLEGAL_FILENAME = "illegal_filename"
    EXTENSION_NOT_ALLOWED = "extension_not_allowed"
    TOKEN_NOT_FOUND = "token_not_found"
    TOKEN_ALREADY_USED = "token_already_used"
    TOKEN_EXPIRED = "token_expired"
    INVALID_LOCATOR = "invalid_locator"
    OBJECT_NOT_FOUND = "object_not_found"
    LOCATOR_EXPIRED = "locator_expired"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    INVALID_REQUEST = "invalid_request"
    SYSTEM_ERROR = "system_error"


# User-friendly error messages with actionable guidance
ERROR_MESSAGES: Dict[ErrorCategory, Dict[str, str]] = {
    ErrorCategory.EMPTY_FILE: {
        "title": "Empty File",
        "message": "The uploaded file contains no data.",
        "action": "Choose a non-empty file and try again.",
    },
    ErrorCategory.FILE_TOO_LARGE: {
        "title": "File Too Large",
        "message": "The uploaded file exceeds the 5 MB limit.",
        "action": "Compress the file or split it before uploading.",
    },
    ErrorCategory.UNSUPPORTED_MIME_TYPE: {
        "title": "Unsupported File Type",
        "message": "Only PNG, JPEG and PDF files can be shared.",
        "action": "Convert the file to a supported format and try again.",
    },
    ErrorCategory.FILENAME_REQUIRED: {
        "title": "Filename Required",
        "message": "The upload did not include a filename.",
        "action": "Send the original filename in the X-Filename header.",
    },
    ErrorCategory.ILLEGAL_FILENAME: {
        "title": "Illegal Filename",
        "message": "Filenames may only contain letters, digits, spaces, dots, hyphens and underscores.",
        "action": "Rename the file and try again.",
    },
    ErrorCategory.EXTENSION_NOT_ALLOWED: {
        "title": "Extension Not Allowed",
        "message": "Only .png, .jpg, .jpeg and .pdf files can be shared.",
        "action": "Rename or convert the file to a supported format.",
    },
    ErrorCategory.TOKEN_NOT_FOUND: {
        "title": "Link Not Found",
        "message": "This download link does not exist.",
        "action": "Check that the link was copied completely.",
    },
    ErrorCategory.TOKEN_ALREADY_USED: {
        "title": "Link Already Used",
        "message": "This file has already been downloaded. Links work only once.",
        "action": "Ask the sender to upload the file again.",
    },
    ErrorCategory.TOKEN_EXPIRED: {
        "title": "Link Expired",
        "message": "This download link has expired. Files are available for 24 hours.",
        "action": "Ask the sender to upload the file again.",
    },
    ErrorCategory.INVALID_LOCATOR: {
        "title": "Invalid Download Signature",
        "message": "The download address is invalid or has been tampered with.",
        "action": "Open the original download link again.",
    },
    ErrorCategory.OBJECT_NOT_FOUND: {
        "title": "File Not Found",
        "message": "The stored file no longer exists.",
        "action": "Ask the sender to upload the file again.",
    },
    ErrorCategory.LOCATOR_EXPIRED: {
        "title": "Download Address Expired",
        "message": "The temporary download address is only valid for one minute.",
        "action": "The file link has been consumed; ask the sender for a new upload.",
    },
    ErrorCategory.STORAGE_UNAVAILABLE: {
        "title": "Storage Unavailable",
        "message": "The file storage service is temporarily unavailable.",
        "action": "Please try again in a few moments.",
    },
    ErrorCategory.INVALID_REQUEST: {
        "title": "Invalid Request",
        "message": "The request is missing required information or contains invalid data.",
        "action": "Please check your input and try again.",
    },
    ErrorCategory.SYSTEM_ERROR: {
        "title": "System Error",
        "message": "An unexpected error occurred while processing your request.",
        "action": "Please try again later. If the problem persists, contact support.",
    },
}


# ============================================================================
# Domain Exceptions (Pure - No External Dependencies)
# ============================================================================

class DomainError(Exception):
    """
    Base exception for all domain errors.

    Domain exceptions are pure and have no external dependencies.
    They can optionally wrap original errors for context.
    """

    def __init__(self, message: str, original_error: Exception = None):
        """
        Initialize domain error.

        Args:
            message: Error message
            original_error: Optional original exception that caused this error
        """
        super().__init__(message)
        self.original_error = original_error


class ObjectStoreError(DomainError):
    """
    Raised when the object store cannot complete an operation.

    Covers failed writes, failed locator generation and transport timeouts.
    """
    pass


class RecordStoreError(DomainError):
    """Raised when the token record store is unreachable or returns garbage."""
    pass


class InvalidTransferTokenError(DomainError, ValueError):
    """Raised when a string is not a well-formed transfer token."""
    pass


# ============================================================================
# Application Layer Exceptions
# ============================================================================

class ApplicationError(Exception):
    """
    Base application error with category and user-friendly messaging.

    Bridges domain outcomes with user-facing error messages and HTTP
    responses. The technical message is kept for logs only and never
    serialized into a response.
    """

    def __init__(
        self,
        category: ErrorCategory,
        technical_message: Optional[str] = None,
    ):
        """
        Initialize application error.

        Args:
            category: Error category
            technical_message: Technical error details for logging
        """
        self.category = category
        self.technical_message = technical_message or ""

        error_info = ERROR_MESSAGES.get(
            category, ERROR_MESSAGES[ErrorCategory.SYSTEM_ERROR]
        )
        self.title = error_info["title"]
        self.message = error_info["message"]
        self.action = error_info["action"]

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for API response.

        Returns:
            Dictionary with error information
        """
        return {
            "error": self.category.value,
            "title": self.title,
            "message": self.message,
            "action": self.action,
        }


def create_error_response(
    category: ErrorCategory,
    technical_message: Optional[str] = None,
    status_code: int = 400,
) -> tuple[Dict[str, Any], int]:
    """
    Create a structured error response for API endpoints.

    Args:
        category: Error category
        technical_message: Technical error details for logging
        status_code: HTTP status code

    Returns:
        Tuple of (error_dict, status_code)
    """
    error = ApplicationError(category, technical_message)
    return error.to_dict(), status_code
