"""
Custom exception hierarchy for structured error handling.

WHY: Custom exceptions provide:
1. Consistent error handling across the API
2. HTTP status code mapping for FastAPI
3. Structured error responses with contextual data
4. No sensitive data leaks in error messages

IMPORTANT: NEVER raise the base Exception class. Always use custom exceptions.
Messages are surfaced verbatim to the portal frontend, which shows them as
toast notifications, so keep them short and user-facing.
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    WHY: Centralizing exception handling in a base class ensures consistent
    error responses and HTTP status code mapping.

    All custom exceptions should inherit from this class.
    """

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        """
        Initialize exception with message and context.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (overrides class default)
            **context: Additional context for debugging (filtered in to_dict)
        """
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize exception to dictionary for JSON response.

        Returns:
            Dictionary with error details (sensitive fields filtered out)
        """
        sensitive_fields = {"password", "token", "secret", "key", "api_key", "cms_key"}
        filtered_context = {
            k: v for k, v in self.context.items() if k.lower() not in sensitive_fields
        }

        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
            "details": filtered_context if filtered_context else None,
        }


# ============================================================================
# Authentication & Authorization Exceptions
# ============================================================================


class AuthenticationError(AppException):
    """
    Raised when the caller cannot be identified.

    HTTP Status: 401 Unauthorized
    """

    status_code = 401
    default_message = "Authentication failed"


class TokenExpiredError(AuthenticationError):
    """Raised when a JWT bearer token has expired."""

    default_message = "Token has expired"


class TokenInvalidError(AuthenticationError):
    """Raised when a JWT bearer token is malformed or badly signed."""

    default_message = "Token is invalid"


class AuthorizationError(AppException):
    """
    Raised when the resolved identity fails a role or membership check.

    WHY: Authorization failures are terminal and happen before any handler
    touches the database, so a single generic message is used for every
    check. The caller learns nothing about which step rejected them.

    HTTP Status: 403 Forbidden
    """

    status_code = 403
    default_message = "Unauthorized"


class PermissionDeniedError(AuthorizationError):
    """
    Raised when a file manager permission flag does not allow an action.

    WHY: Unlike role checks, file permission failures carry a specific
    message ("You do not have permission to delete this file") because
    customers can see the folder tree and need to know what was refused.
    """

    default_message = "You do not have permission to perform this action"


class InvalidAPIKeyError(AppException):
    """
    Raised when a public endpoint receives a wrong or missing API key.

    HTTP Status: 401 Unauthorized
    """

    status_code = 401
    default_message = "Invalid API key"


# ============================================================================
# Validation & Input Exceptions
# ============================================================================


class ValidationError(AppException):
    """
    Raised when input validation fails.

    Examples: dates in the past, a quote split that does not add up to 100,
    updating content of an entry that is not a text file.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    default_message = "Validation failed"


class InvalidRequestError(ValidationError):
    """Raised when a public endpoint request is missing required parameters."""

    default_message = "Invalid request"


# ============================================================================
# Resource Exceptions
# ============================================================================


class ResourceNotFoundError(AppException):
    """
    Raised when a referenced id fails to resolve.

    WHY: Messages follow the "<Entity> not found" convention the frontend
    already matches on.

    HTTP Status: 404 Not Found
    """

    status_code = 404
    default_message = "Resource not found"


class ResourceAlreadyExistsError(AppException):
    """
    Raised when creating a resource that would violate uniqueness.

    HTTP Status: 409 Conflict
    """

    status_code = 409
    default_message = "Resource already exists"


# ============================================================================
# Business Logic Exceptions
# ============================================================================


class InvalidStateTransitionError(AppException):
    """
    Raised when a document is not in the status an operation needs.

    Examples: updating a sent quote, accepting a quote that is still draft,
    voiding an extra cost that has been invoiced.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    default_message = "Invalid state transition"


# ============================================================================
# External Service Exceptions
# ============================================================================


class ExternalServiceError(AppException):
    """
    Raised when a third-party collaborator fails.

    HTTP Status: 502 Bad Gateway
    """

    status_code = 502
    default_message = "External service error"


class DocumentGenerationError(ExternalServiceError):
    """
    Raised when the PDF rendering endpoint does not return a document.

    WHY: This error gates the draft -> sent transition. It must propagate
    out of the document task so the task queue records the failure.
    """

    default_message = "Failed to generate PDF"


class EmailServiceError(ExternalServiceError):
    """Raised when the transactional email provider rejects a message."""

    default_message = "Failed to send email"
