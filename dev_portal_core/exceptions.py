"""
Consolidated exception system with error codes, context, and correlation support.

This module provides a unified exception hierarchy for the credential core,
with automatic logging and correlation ID tracking. Every error renders to a
caller-safe dictionary via ``to_dict``; internal diagnostics stay in the log.
"""

import threading
import traceback
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

# Removed logger import to avoid circular dependency - calling code should handle logging

_thread_local = threading.local()


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # System errors (1xxx)
    INTERNAL_ERROR = "1000"
    DATABASE_ERROR = "1001"
    CONFIGURATION_ERROR = "1003"
    GENERATION_ERROR = "1005"

    # Validation errors (2xxx)
    VALIDATION_FAILED = "2000"
    INVALID_FORMAT = "2001"
    MISSING_REQUIRED = "2002"
    INVALID_KEY = "2005"

    # Resource errors (3xxx)
    NOT_FOUND = "3000"
    DUPLICATE = "3001"
    EXPIRED = "3004"

    # Business logic errors (4xxx)
    INVALID_STATE_TRANSITION = "4001"
    QUOTA_EXCEEDED = "4002"
    PERMISSION_DENIED = "4003"
    UNAUTHORIZED = "4005"


class BaseError(Exception):
    """Base exception with context, error codes, logging, and error chaining."""

    # Context keys that are logged but never rendered to callers
    internal_context_keys = (
        "cause",
        "error_id",
        "correlation_id",
        "operation_name",
        "operation_id",
        "operation_duration_ms",
    )

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        """
        Initialize base error with rich context.

        Args:
            message: Human-readable error message
            error_code: Standardized error code from ErrorCode enum
            status_code: HTTP status code for API responses
            cause: Original exception that caused this error
            **context: Additional context information
        """
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.error_id = str(uuid.uuid4())
        self.context = context

        correlation_id = get_correlation_id()
        if correlation_id:
            self.context["correlation_id"] = correlation_id

        self.context["error_id"] = self.error_id

        if cause:
            self.context["cause"] = {
                "type": type(cause).__name__,
                "message": str(cause),
                "traceback": traceback.format_exception(type(cause), cause, cause.__traceback__),
            }

        self._log_error()

        super().__init__(message)

    def _log_error(self) -> None:
        """Log error with appropriate level based on status code."""
        # Import logger here to avoid circular dependency at module load time
        from .utils.logger import get_logger

        logger = get_logger()

        log_data = {
            "error_id": self.error_id,
            "error_code": self.error_code.value,
            "status_code": self.status_code,
            "error_message": self.message,
            "timestamp": self.timestamp,
            "context": {k: v for k, v in self.context.items() if k not in ["cause", "traceback"]},
        }

        if "correlation_id" in self.context:
            log_data["correlation_id"] = self.context["correlation_id"]

        if self.status_code >= 500:
            logger.error(
                f"Error {self.error_code}: {self.message}", extra=log_data, exc_info=self.cause
            )
        elif self.status_code >= 400:
            logger.warning(f"Client error {self.error_code}: {self.message}", extra=log_data)
        else:
            logger.info(f"Error {self.error_code}: {self.message}", extra=log_data)

    def to_dict(
        self, include_cause: bool = False, include_traceback: bool = False
    ) -> Dict[str, Any]:
        """
        Convert to dict for API responses.

        Args:
            include_cause: Include cause information (useful for debugging)
            include_traceback: Include full traceback (only in debug mode)

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        result: Dict[str, Any] = {
            "error": {
                "id": self.error_id,
                "code": self.error_code.value,
                "message": self.message,
                "timestamp": self.timestamp,
                "context": {
                    k: v for k, v in self.context.items() if k not in self.internal_context_keys
                },
            }
        }

        if "correlation_id" in self.context:
            result["error"]["correlation_id"] = self.context["correlation_id"]

        if include_cause and "cause" in self.context:
            result["error"]["cause"] = {
                "type": self.context["cause"]["type"],
                "message": self.context["cause"]["message"],
            }
            if include_traceback:
                result["error"]["cause"]["traceback"] = self.context["cause"]["traceback"]

        return result

    def add_context(self, **kwargs: Any) -> "BaseError":
        """
        Add additional context to the error (fluent interface).

        Returns:
            Self for method chaining
        """
        self.context.update(kwargs)
        return self

    @property
    def error_chain(self) -> List[Exception]:
        """Get the full chain of errors."""
        chain: List[Exception] = [self]
        current = self.cause
        while current:
            chain.append(current)
            current = getattr(current, "cause", None)
        return chain


# Layer-specific base exceptions
class RepositoryError(BaseError):
    """Repository layer errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.DATABASE_ERROR,
        status_code: int = 500,
        cause: Optional[Exception] = None,
        **context,
    ):
        """Initialize repository error with database context."""
        super().__init__(message, error_code, status_code, cause, **context)


class ServiceError(BaseError):
    """Service layer errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        operation: Optional[str] = None,
        cause: Optional[Exception] = None,
        **context,
    ):
        """Initialize service error with operation context."""
        if operation:
            context["operation"] = operation
        super().__init__(message, error_code, 500, cause, **context)


class ValidationError(BaseError):
    """Validation errors."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_FAILED,
        cause: Optional[Exception] = None,
        **context,
    ):
        """Initialize validation error with field context."""
        if field:
            context["field"] = field
        super().__init__(message, error_code, 400, cause, **context)


# Factory functions for common error patterns
def not_found(
    resource_type: str, cause: Optional[Exception] = None, **identifiers
) -> RepositoryError:
    """
    Factory for not found errors.

    Args:
        resource_type: Type of resource (e.g., 'User', 'APIKey')
        cause: Original exception if any
        **identifiers: Resource identifiers (e.g., record_id='123')

    Returns:
        Configured RepositoryError instance with 404 status
    """
    id_parts = [f"{k}={v}" for k, v in identifiers.items()]
    message = f"{resource_type} not found"
    if id_parts:
        message += f": {', '.join(id_parts)}"

    return RepositoryError(
        message,
        error_code=ErrorCode.NOT_FOUND,
        status_code=404,
        cause=cause,
        resource_type=resource_type,
        **identifiers,
    )


# Correlation ID management
def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current thread."""
    _thread_local.correlation_id = correlation_id


def get_correlation_id() -> Optional[str]:
    """Get the current thread's correlation ID."""
    return getattr(_thread_local, "correlation_id", None)


def clear_correlation_id() -> None:
    """Clear the current thread's correlation ID."""
    if hasattr(_thread_local, "correlation_id"):
        delattr(_thread_local, "correlation_id")


# ==================== GENERATION / INFRASTRUCTURE ====================


class SecretGenerationError(BaseError):
    """Raised when a secret, hash or token cannot be produced."""

    def __init__(self, message: str = "Failed to generate secret material", **kwargs):
        super().__init__(
            message=message, error_code=ErrorCode.GENERATION_ERROR, status_code=500, **kwargs
        )


# ==================== INPUT ====================


class InvalidPublicKeyError(ValidationError):
    """Raised when a partner public key is not an acceptable PEM-encoded RSA key."""

    def __init__(
        self,
        message: str = "Invalid public key format",
        error_code: ErrorCode = ErrorCode.INVALID_FORMAT,
        **kwargs,
    ):
        super().__init__(message=message, field="public_key", error_code=error_code, **kwargs)


# ==================== AUTHORIZATION ====================


class AuthenticationError(BaseError):
    """
    Raised when presented credentials cannot be resolved to a principal.

    The ``reason`` and the matched ``user_id`` are kept for diagnostics (they
    are logged) but never rendered by ``to_dict``, so callers cannot tell which
    check failed or whether an account exists.
    """

    internal_context_keys = BaseError.internal_context_keys + ("reason", "user_id")

    def __init__(self, message: str = "Unauthorized", reason: Optional[str] = None, **kwargs):
        self.reason = reason
        if reason:
            kwargs["reason"] = reason
        super().__init__(
            message=message, error_code=ErrorCode.UNAUTHORIZED, status_code=401, **kwargs
        )


class InvalidTokenError(AuthenticationError):
    """Raised when a session token fails signature, expiry, type or subject checks."""

    internal_context_keys = AuthenticationError.internal_context_keys + (
        "algorithm",
        "expected_type",
    )

    def __init__(self, message: str = "Invalid or expired token", **kwargs):
        super().__init__(message=message, **kwargs)


class InvalidCredentialsError(AuthenticationError):
    """Raised when an email/password pair does not match an account."""

    def __init__(self, message: str = "Invalid email or password", **kwargs):
        super().__init__(message=message, **kwargs)


class CredentialNotFoundError(BaseError):
    """
    Raised when a partner credential is missing, not owned by the caller,
    or presented with the wrong secret.
    """

    internal_context_keys = BaseError.internal_context_keys + ("reason",)

    def __init__(self, message: str = "Partner credential not found", **kwargs):
        super().__init__(message=message, error_code=ErrorCode.NOT_FOUND, status_code=404, **kwargs)


class APIKeyNotFoundError(BaseError):
    """Raised when an API key is missing, not owned by the caller, or invalid."""

    internal_context_keys = BaseError.internal_context_keys + ("reason",)

    def __init__(self, message: str = "API key not found", **kwargs):
        super().__init__(message=message, error_code=ErrorCode.NOT_FOUND, status_code=404, **kwargs)


class UserNotFoundError(BaseError):
    """Raised when a principal cannot be resolved to a live account."""

    def __init__(self, message: str = "User not found", **kwargs):
        super().__init__(message=message, error_code=ErrorCode.NOT_FOUND, status_code=404, **kwargs)


class EmailExistsError(BaseError):
    """Raised when registering an email that already belongs to an account."""

    def __init__(self, message: str = "Email already registered", **kwargs):
        super().__init__(message=message, error_code=ErrorCode.DUPLICATE, status_code=409, **kwargs)


# ==================== QUOTA ====================


class QuotaExceededError(BaseError):
    """Raised when a principal already holds the maximum number of active credentials."""

    def __init__(self, message: str = "Credential quota reached", **kwargs):
        super().__init__(
            message=message, error_code=ErrorCode.QUOTA_EXCEEDED, status_code=429, **kwargs
        )
