"""
Typed application errors.

Every error carries an HTTP status and a stable machine-readable ``code``.
The NinjaAPI exception handlers in ``core.handlers`` are the only place
these are turned into responses.
"""
from typing import Any, Dict, List, Optional


class AppError(Exception):
    """Base class for errors that map to a well-defined HTTP response"""

    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        self.message = message or self.default_message
        if code:
            self.code = code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"

    @classmethod
    def for_field(cls, field: str, message: str, code: str = "invalid") -> "ValidationError":
        return cls(details=[{"field": field, "message": message, "code": code}])


class AuthenticationError(AppError):
    status_code = 401
    code = "AUTH_ERROR"
    default_message = "Authentication required"


class AuthorizationError(AppError):
    status_code = 403
    code = "AUTHORIZATION_ERROR"
    default_message = "Insufficient permissions"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Resource already exists"


class RateLimitError(AppError):
    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"
    default_message = "Too many requests, please try again later."

    def __init__(self, message: Optional[str] = None, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.retry_after is not None:
            body["retryAfter"] = self.retry_after
        return body


class DatabaseError(AppError):
    status_code = 500
    code = "DATABASE_ERROR"
    default_message = "Database operation failed"
