"""
Error Handling Module

Defines domain exceptions and error categories for the application.
Domain exceptions are pure and have no external dependencies.
Application exceptions carry user-facing messaging for API responses.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Error category enumeration for structured error handling."""

    INVALID_REQUEST = "invalid_request"
    UNAUTHORIZED = "unauthorized"
    FILE_TOO_LARGE = "file_too_large"
    TRANSFER_NOT_FOUND = "transfer_not_found"
    SYSTEM_ERROR = "system_error"


# User-friendly error messages with actionable guidance
ERROR_MESSAGES: Dict[ErrorCategory, Dict[str, str]] = {
    ErrorCategory.INVALID_REQUEST: {
        "title": "Invalid Request",
        "message": "The request is missing required information or contains invalid data.",
        "action": "Please check your input and try again.",
    },
    ErrorCategory.UNAUTHORIZED: {
        "title": "Unauthorized",
        "message": "The upload password is missing or incorrect.",
        "action": "Send the password in the X-Upload-Password header or a 'password' form field.",
    },
    ErrorCategory.FILE_TOO_LARGE: {
        "title": "File Too Large",
        "message": "The uploaded file exceeds the maximum allowed size.",
        "action": "Split the file or ask the operator to raise MAX_FILE_SIZE_MB.",
    },
    ErrorCategory.TRANSFER_NOT_FOUND: {
        "title": "File Not Found",
        "message": "This link has already been used or has expired.",
        "action": "Ask the sender to upload the file again.",
    },
    ErrorCategory.SYSTEM_ERROR: {
        "title": "System Error",
        "message": "An unexpected error occurred while processing your request.",
        "action": "Please try again later. If the problem persists, contact the operator.",
    },
}


# ============================================================================
# Domain Exceptions (Pure - No External Dependencies)
# ============================================================================

class DomainError(Exception):
    """
    Base exception for all domain errors.

    Domain exceptions can optionally wrap original errors for context.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class EntropyUnavailableError(DomainError):
    """
    Raised when the secure randomness source cannot produce an identifier.

    Fatal to the upload that triggered it; other transfers are unaffected.
    """
    pass


class TransferNotFoundError(DomainError):
    """Raised when an identifier has no live transfer (never existed, consumed or expired)."""
    pass


class DuplicateTransferError(DomainError):
    """Raised when registering an identifier that already has a live transfer."""
    pass


class NotificationDeliveryError(DomainError):
    """Raised by a notification sink that could not deliver an event to its watcher."""
    pass


class FileTooLargeError(DomainError):
    """Raised when an upload exceeds the configured size limit."""

    def __init__(self, max_bytes: int, message: Optional[str] = None):
        super().__init__(message or f"File too large (max: {max_bytes >> 20} MB)")
        self.max_bytes = max_bytes


class StorageError(DomainError):
    """Raised when uploaded bytes cannot be written to storage."""
    pass


# ============================================================================
# Application Layer Exceptions
# ============================================================================

class ApplicationError(Exception):
    """
    Base application error with category and user-friendly messaging.

    Bridges domain errors with user-facing error messages and HTTP responses.
    """

    def __init__(
        self,
        category: ErrorCategory,
        technical_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.category = category
        self.technical_message = technical_message or ""
        self.context = context or {}

        error_info = ERROR_MESSAGES.get(
            category, ERROR_MESSAGES[ErrorCategory.SYSTEM_ERROR]
        )
        self.title = error_info["title"]
        self.message = error_info["message"]
        self.action = error_info["action"]

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API response."""
        return {
            "error": self.category.value,
            "title": self.title,
            "message": self.message,
            "action": self.action,
        }


def create_error_response(
    category: ErrorCategory,
    technical_message: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 400,
) -> tuple[Dict[str, Any], int]:
    """
    Create a structured error response for API endpoints.

    Args:
        category: Error category
        technical_message: Technical error details (not exposed to clients)
        context: Additional context information
        status_code: HTTP status code

    Returns:
        Tuple of (error_dict, status_code)
    """
    error = ApplicationError(category, technical_message, context)
    return error.to_dict(), status_code
