"""Custom exception hierarchy for Atelier."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Lookup errors
    CATEGORY_NOT_FOUND = "CATEGORY_NOT_FOUND"
    TAG_NOT_FOUND = "TAG_NOT_FOUND"
    FOLDER_NOT_FOUND = "FOLDER_NOT_FOUND"
    MEDIA_NOT_FOUND = "MEDIA_NOT_FOUND"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Tree / uniqueness conflicts
    CONFLICT = "CONFLICT"

    # Storage errors
    STORAGE_ERROR = "STORAGE_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"

    # Auth & rate limiting
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    RATE_LIMITED = "RATE_LIMITED"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AtelierException(Exception):
    """
    Base exception for all Atelier errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            status_code: HTTP status code to return
            details: Optional additional context/details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON response.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class NotFoundError(AtelierException):
    """Referenced record does not exist."""

    resource = "Resource"
    code = ErrorCode.INTERNAL_ERROR

    def __init__(self, entity_id: Any):
        super().__init__(
            f"{self.resource} not found: {entity_id}",
            self.code,
            status_code=404,
            details={"id": entity_id}
        )


class CategoryNotFoundError(NotFoundError):
    """Category not found in database."""

    resource = "Category"
    code = ErrorCode.CATEGORY_NOT_FOUND


class TagNotFoundError(NotFoundError):
    """Tag not found in database."""

    resource = "Tag"
    code = ErrorCode.TAG_NOT_FOUND


class FolderNotFoundError(NotFoundError):
    """Media folder not found in database."""

    resource = "Folder"
    code = ErrorCode.FOLDER_NOT_FOUND


class MediaNotFoundError(NotFoundError):
    """Media item not found in database."""

    resource = "Media"
    code = ErrorCode.MEDIA_NOT_FOUND


class ValidationError(AtelierException):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class PayloadTooLargeError(ValidationError):
    """Upload stopped after passing the configured size limit."""

    def __init__(self, limit_bytes: int):
        super().__init__(
            f"File exceeds the {limit_bytes // (1024 * 1024)} MB upload limit",
            field="file",
        )
        self.limit_bytes = limit_bytes


class ConflictError(AtelierException):
    """Operation would break a tree or uniqueness invariant.

    Raised for duplicate names/slugs, self-parenting, moving a node under
    its own descendant, and deleting a category that still has children.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message,
            ErrorCode.CONFLICT,
            status_code=409,
            details=details
        )


class StorageError(AtelierException):
    """File storage operation failed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.STORAGE_ERROR,
            status_code=500,
            details=details
        )


class AuthenticationError(AtelierException):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(AtelierException):
    """Authenticated user lacks permission for the requested action."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )


class DatabaseError(AtelierException):
    """Database operation failed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.DATABASE_ERROR,
            status_code=500,
            details=details
        )
