"""
Error Handling Module

Defines share-domain exceptions and error categories for the application.
Every failure carries a stable ErrorCategory plus a human-readable message,
so API and task layers can report it without inspecting exception text.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Error category enumeration for structured error handling."""

    INVALID_REQUEST = "invalid_request"
    INVALID_SHARE_CODE = "invalid_share_code"
    FILE_TOO_LARGE = "file_too_large"
    CODE_UNAVAILABLE = "code_unavailable"
    SHARE_NOT_FOUND = "share_not_found"
    SHARE_EXPIRED = "share_expired"
    LINK_EXPIRED = "link_expired"
    INVALID_SIGNATURE = "invalid_signature"
    PASSWORD_REQUIRED = "password_required"
    INVALID_PASSWORD = "invalid_password"
    DECRYPTION_FAILED = "decryption_failed"
    STORAGE_ERROR = "storage_error"
    SERVICE_UNAVAILABLE = "service_unavailable"
    SYSTEM_ERROR = "system_error"


# User-friendly error messages with actionable guidance
ERROR_MESSAGES: Dict[ErrorCategory, Dict[str, str]] = {
    ErrorCategory.INVALID_REQUEST: {
        "title": "Invalid Request",
        "message": "The request is missing required information or contains invalid data.",
        "action": "Please check your input and try again.",
    },
    ErrorCategory.INVALID_SHARE_CODE: {
        "title": "Invalid Share Code",
        "message": "Share codes are exactly 5 digits.",
        "action": "Check the code you were given and enter all 5 digits.",
    },
    ErrorCategory.FILE_TOO_LARGE: {
        "title": "File Too Large",
        "message": "The selected file exceeds the maximum allowed size.",
        "action": "Try compressing the file or splitting it into smaller parts.",
    },
    ErrorCategory.CODE_UNAVAILABLE: {
        "title": "Share Code Unavailable",
        "message": "No free share code could be reserved for this upload.",
        "action": "Please try the upload again in a moment.",
    },
    ErrorCategory.SHARE_NOT_FOUND: {
        "title": "File Not Found",
        "message": "No file is shared under this code.",
        "action": "Check the code and try again.",
    },
    ErrorCategory.SHARE_EXPIRED: {
        "title": "File Expired",
        "message": "This file has expired. Shared files are kept for 7 days.",
        "action": "Ask the sender to upload the file again.",
    },
    ErrorCategory.LINK_EXPIRED: {
        "title": "Link Expired",
        "message": "The download link has expired. Links are valid for one hour.",
        "action": "Enter the share code again to get a fresh link.",
    },
    ErrorCategory.INVALID_SIGNATURE: {
        "title": "Invalid Link",
        "message": "The download link is invalid or has been tampered with.",
        "action": "Enter the share code again to get a fresh link.",
    },
    ErrorCategory.PASSWORD_REQUIRED: {
        "title": "Password Required",
        "message": "This file is password protected. Please provide a password.",
        "action": "Ask the sender for the password.",
    },
    ErrorCategory.INVALID_PASSWORD: {
        "title": "Incorrect Password",
        "message": "The password you entered is incorrect.",
        "action": "Check the password and try again.",
    },
    ErrorCategory.DECRYPTION_FAILED: {
        "title": "Decryption Failed",
        "message": "The file could not be decrypted.",
        "action": "The stored file may be corrupt. Ask the sender to upload it again.",
    },
    ErrorCategory.STORAGE_ERROR: {
        "title": "Storage Error",
        "message": "The file storage backend reported an error.",
        "action": "Please try again later. If the problem persists, contact support.",
    },
    ErrorCategory.SERVICE_UNAVAILABLE: {
        "title": "Service Temporarily Unavailable",
        "message": "A storage backend did not respond in time.",
        "action": "Please wait a moment and try again.",
    },
    ErrorCategory.SYSTEM_ERROR: {
        "title": "System Error",
        "message": "An unexpected error occurred while processing your request.",
        "action": "Please try again later. If the problem persists, contact support.",
    },
}


# ============================================================================
# Domain Exceptions
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


class ShareError(DomainError):
    """
    Base exception for share workflow failures.

    Subclasses fix a default category and HTTP status; a category can be
    narrowed per raise site (e.g. ValidationError for an oversize file).
    """

    category = ErrorCategory.SYSTEM_ERROR
    http_status_code = 500

    def __init__(
        self,
        message: str,
        original_error: Exception = None,
        category: Optional[ErrorCategory] = None,
    ):
        super().__init__(message, original_error)
        if category is not None:
            self.category = category

    @property
    def kind(self) -> str:
        """Stable error kind, e.g. 'InvalidPasswordError'."""
        return type(self).__name__


class ValidationError(ShareError):
    """Raised for oversize files, malformed codes and other bad input."""

    category = ErrorCategory.INVALID_REQUEST
    http_status_code = 400

    def __init__(self, message, original_error=None, category=None):
        super().__init__(message, original_error, category)
        if self.category is ErrorCategory.FILE_TOO_LARGE:
            self.http_status_code = 413


class InvalidShareCodeError(ValidationError):
    """Raised when a share code is not a 5-digit number."""

    category = ErrorCategory.INVALID_SHARE_CODE


class ShareCodeConflictError(ValidationError):
    """Raised when a share code already belongs to a stored record."""

    category = ErrorCategory.CODE_UNAVAILABLE
    http_status_code = 409


class NotFoundError(ShareError):
    """Raised when no record exists for a share code."""

    category = ErrorCategory.SHARE_NOT_FOUND
    http_status_code = 404


class ExpiredError(ShareError):
    """Raised when a share (or a signed link) is past its expiry."""

    category = ErrorCategory.SHARE_EXPIRED
    http_status_code = 410


class PasswordRequiredError(ShareError):
    category = ErrorCategory.PASSWORD_REQUIRED
    http_status_code = 401


class InvalidPasswordError(ShareError):
    category = ErrorCategory.INVALID_PASSWORD
    http_status_code = 403


class DecryptionError(ShareError):
    """Raised on key mismatch or corrupt ciphertext."""

    category = ErrorCategory.DECRYPTION_FAILED
    http_status_code = 500


class StorageError(ShareError):
    """Raised when the blob or metadata backend fails."""

    category = ErrorCategory.STORAGE_ERROR
    http_status_code = 500


class TransientError(ShareError):
    """Raised on backend timeouts. Safe for the caller to retry."""

    category = ErrorCategory.SERVICE_UNAVAILABLE
    http_status_code = 503


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
        """
        Initialize application error.

        Args:
            category: Error category
            technical_message: Technical error details for logging
            context: Additional context information
        """
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
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 400,
) -> tuple[Dict[str, Any], int]:
    """
    Create a structured error response for API endpoints.

    Args:
        category: Error category
        technical_message: Technical error details for logging
        context: Additional context information
        status_code: HTTP status code

    Returns:
        Tuple of (error_dict, status_code)
    """
    error = ApplicationError(category, technical_message, context)
    return error.to_dict(), status_code


def share_error_response(error: ShareError) -> tuple[Dict[str, Any], int]:
    """Build the API response for a ShareError using its own category and status."""
    return create_error_response(
        error.category, str(error), status_code=error.http_status_code
    )
