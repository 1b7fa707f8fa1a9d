"""Domain exceptions mapped to HTTP responses.

Handlers raise these and the per-module ``_safe_handler`` turns them into
API Gateway responses using ``status_code`` and ``to_dict()``.
"""

from __future__ import annotations

from typing import Any
from typing import Optional


class AppError(Exception):
    """Base exception for application errors.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code (default 500).
        detail: Optional additional context.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        detail: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response body."""
        result: dict[str, Any] = {"error": self.message}
        if self.detail:
            result["detail"] = self.detail
        return result


class ValidationError(AppError):
    """Raised when request input is missing or malformed."""

    def __init__(self, message: str, field: Optional[str] = None):
        detail = f"Field: {field}" if field else None
        super().__init__(message, status_code=400, detail=detail)
        self.field = field


class NotFoundError(AppError):
    """Raised when a requested row does not exist.

    The message keeps the ``"<Resource> not found"`` form clients already
    display; the identifier goes into ``detail``.
    """

    def __init__(self, resource: str, identifier: Any = None):
        super().__init__(
            f"{resource} not found",
            status_code=404,
            detail=f"id: {identifier}" if identifier is not None else None,
        )
        self.resource = resource
        self.identifier = identifier


class AuthenticationError(AppError):
    """Raised when the caller has no identity."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, status_code=401)


class AuthorizationError(AppError):
    """Raised when the caller is known but does not own the resource."""

    def __init__(self, message: str = "No permission"):
        super().__init__(message, status_code=403)


class ConflictError(AppError):
    """Raised when a write collides with an existing row."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message, status_code=409, detail=detail)


class RateLimitError(AppError):
    """Raised when an upstream service throttles the caller."""

    def __init__(self, message: str = "Too many requests"):
        super().__init__(message, status_code=429)


class ConfigurationError(AppError):
    """Raised when a required setting is missing."""

    def __init__(self, config_name: str):
        super().__init__(
            f"Missing required configuration: {config_name}",
            status_code=500,
        )
        self.config_name = config_name


class PaymentError(AppError):
    """Raised when the payment provider rejects a request."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message, status_code=502, detail=detail)


class CursorError(ValidationError):
    """Raised when a pagination cursor cannot be decoded."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__("Invalid cursor", field="cursor")
        self.detail = detail
