"""
Custom Exception Classes for the CMS content core

Every failure that leaves the service layer is one of these classes, so
callers can branch on the type (or on ``error_code``) and pick a transport
status without looking at storage internals.

    NotFound          -> ResourceNotFoundError and subclasses (404)
    Conflict          -> DuplicateResourceError, ConflictError (409)
    ValidationFailed  -> ValidationError (400)
    StoreUnavailable  -> StoreUnavailableError (503)
    Internal          -> ServiceError (500)
"""

from enum import Enum
from typing import Any

from fastapi import status


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    AUTH_PERMISSION_DENIED = "AUTH_PERMISSION_DENIED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class CMSError(Exception):
    """Base exception class for all CMS-related exceptions"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.error_code = error_code
        super().__init__(self.message)

    @property
    def is_client_error(self) -> bool:
        return self.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR

    def to_dict(self) -> dict[str, Any]:
        """Serializable representation, safe to hand to API consumers."""
        error: dict[str, Any] = {
            "status_code": self.status_code,
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            error["details"] = self.details
        return {"error": error}


# ============================================================================
# Authorization
# ============================================================================


class AuthorizationError(CMSError):
    """Raised when user lacks permission for an action"""

    def __init__(
        self, message: str = "You do not have permission to perform this action", required_permission: str | None = None
    ):
        details = {"required_permission": required_permission} if required_permission else {}
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            details=details,
            error_code=ErrorCode.AUTH_PERMISSION_DENIED,
        )


# ============================================================================
# Resource Not Found Exceptions
# ============================================================================


class ResourceNotFoundError(CMSError):
    """Base class for resource not found errors"""

    def __init__(self, resource_type: str, resource_id: Any | None = None):
        message = f"{resource_type} not found"
        if resource_id is not None:
            message = f"{resource_type} with id '{resource_id}' not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": resource_id},
            error_code=ErrorCode.RESOURCE_NOT_FOUND,
        )


class UserNotFoundError(ResourceNotFoundError):
    """Raised when a user is not found"""

    def __init__(self, user_id: Any | None = None):
        super().__init__(resource_type="User", resource_id=user_id)


class ContentNotFoundError(ResourceNotFoundError):
    """Raised when content is not found"""

    def __init__(self, content_id: Any | None = None):
        super().__init__(resource_type="Content", resource_id=content_id)


class TranslationNotFoundError(ResourceNotFoundError):
    """Raised when no translation exists for a (content, locale) pair"""

    def __init__(self, content_id: Any | None = None, locale: str | None = None):
        super().__init__(resource_type="ContentTranslation", resource_id=content_id)
        if locale is not None:
            self.message = f"ContentTranslation for content '{content_id}' in locale '{locale}' not found"
            self.args = (self.message,)
            self.details["locale"] = locale


class RoleNotFoundError(ResourceNotFoundError):
    """Raised when a role is not found"""

    def __init__(self, role_id: Any | None = None):
        super().__init__(resource_type="Role", resource_id=role_id)


# ============================================================================
# Validation & Conflict Exceptions
# ============================================================================


class ValidationError(CMSError):
    """Raised when input validation fails"""

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=error_details,
            error_code=ErrorCode.VALIDATION_FAILED,
        )


class DuplicateResourceError(CMSError):
    """Raised when attempting to create a duplicate resource"""

    def __init__(self, resource_type: str, field: str, value: Any):
        super().__init__(
            message=f"{resource_type} with {field} '{value}' already exists",
            status_code=status.HTTP_409_CONFLICT,
            details={"resource_type": resource_type, "field": field, "value": value},
            error_code=ErrorCode.RESOURCE_CONFLICT,
        )


class ConflictError(CMSError):
    """Raised when an operation would break an invariant of existing data"""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=details or {},
            error_code=ErrorCode.RESOURCE_CONFLICT,
        )


# ============================================================================
# Store Exceptions
# ============================================================================


class StoreUnavailableError(CMSError):
    """Raised when a transaction could not be opened or committed"""

    def __init__(self, message: str = "The data store is unavailable", operation: str | None = None):
        details = {"operation": operation} if operation else {}
        super().__init__(
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=details,
            error_code=ErrorCode.STORE_UNAVAILABLE,
        )


class ServiceError(CMSError):
    """Raised when an operation fails for a reason that is not the caller's input or the store"""

    def __init__(self, message: str = "The operation could not be completed", operation: str | None = None):
        details = {"operation": operation} if operation else {}
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
            error_code=ErrorCode.INTERNAL_ERROR,
        )
