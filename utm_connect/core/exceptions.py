"""Custom exception classes for UTM Connect."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class UTMConnectError(Exception):
    """Base exception for UTM Connect."""

    http_status: int = 500
    title: str = "Internal Server Error"
    error_type_uri: str = "urn:utmconnect:error:internal-server"

    def __init__(
        self, message: str, recoverable: bool = True, details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize UTM Connect error.

        Args:
            message: Error message
            recoverable: Whether the error is recoverable with retry
            details: Additional error details
        """
        self.message = message
        self.recoverable = recoverable
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def _get_http_status(self) -> int:
        return self.http_status

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "recoverable": self.recoverable,
            "details": self.details,
            "timestamp": self.timestamp,
        }


# Validation Errors
class ValidationError(UTMConnectError):
    """Input validation error.

    Carries every violation found, so callers can report them all at once.
    """

    http_status = 400
    title = "Bad Request"
    error_type_uri = "urn:utmconnect:error:bad-request"

    def __init__(
        self,
        message: Optional[str] = None,
        field: Optional[str] = None,
        violations: Optional[List[str]] = None,
    ):
        """
        Initialize validation error.

        Args:
            message: Error message (defaults to the joined violations)
            field: Field name that failed validation
            violations: Individual rule violations
        """
        self.field = field
        self.violations = list(violations) if violations else ([message] if message else [])
        if message is None:
            message = "; ".join(self.violations) if self.violations else "Validation error"

        details: Dict[str, Any] = {"violations": self.violations}
        if field:
            details["field"] = field
        super().__init__(message, recoverable=False, details=details)


class ConflictError(UTMConnectError):
    """Resource already exists."""

    http_status = 409
    title = "Conflict"
    error_type_uri = "urn:utmconnect:error:conflict"

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message, recoverable=False)


# Authentication Errors
class AuthError(UTMConnectError):
    """Authentication failed."""

    http_status = 401
    title = "Unauthorized"
    error_type_uri = "urn:utmconnect:error:unauthorized"

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, recoverable=False)


class ForbiddenError(UTMConnectError):
    """Caller is authenticated but not allowed to touch the resource."""

    http_status = 403
    title = "Forbidden"
    error_type_uri = "urn:utmconnect:error:forbidden"

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, recoverable=False)


class NotFoundError(UTMConnectError):
    """Requested resource does not exist."""

    http_status = 404
    title = "Not Found"
    error_type_uri = "urn:utmconnect:error:not-found"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, recoverable=False)


class InternalError(UTMConnectError):
    """Unexpected server-side failure.

    The message is safe to show to clients; the underlying cause stays in
    ``details`` and in the logs.
    """

    def __init__(
        self,
        message: str = "Internal server error",
        recoverable: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable, details)


# Database Errors
class DatabaseError(InternalError):
    """Base class for database-related errors."""

    def __init__(
        self,
        message: str = "Database error occurred",
        recoverable: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable, details)


class DatabaseNotConnectedError(DatabaseError):
    """Raised when operation attempted without connection."""

    def __init__(self):
        super().__init__(
            "Database connection is not established. Call connect() first.", recoverable=False
        )


class DatabasePoolTimeoutError(DatabaseError):
    """Raised when database connection pool is exhausted and timeout occurs."""

    def __init__(self, timeout: float, pool_size: int):
        super().__init__(
            f"Database connection pool exhausted after {timeout}s (pool size: {pool_size}). "
            "Consider increasing DB_POOL_SIZE or optimizing database queries.",
            recoverable=True,
            details={"timeout": timeout, "pool_size": pool_size},
        )


# File Errors
class FileUploadError(ValidationError):
    """Uploaded file was rejected."""

    def __init__(self, message: str = "Invalid file upload"):
        super().__init__(message, field="file")
