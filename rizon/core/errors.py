"""API error classes.

Every error that can reach a client carries a stable machine-readable
code, a human-readable message and an HTTP status. The exception
handlers in main.py render them into the standard error envelope.

DeliveryError and SigningError are not APIError subclasses:
- DeliveryError is always absorbed by the caller and logged
- SigningError aborts application startup (misconfiguration)
"""

from typing import Literal

TokenFailureReason = Literal["not_found", "expired", "already_used"]


class APIError(Exception):
    """Base class for API errors.

    All API errors have a code, message, and HTTP status.
    Subclasses set default status_code.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional list of additional error details.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError(APIError):
    """Malformed or missing input (400)."""

    def __init__(
        self,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class UnauthorizedError(APIError):
    """Missing or invalid credential (401)."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
        )


class LoginTokenError(UnauthorizedError):
    """A login token could not be redeemed (401).

    Attributes:
        reason: Why redemption failed. Logged; the response only carries
            the message.
    """

    reason: TokenFailureReason

    def __init__(self, message: str) -> None:
        super().__init__(message)


class LoginTokenNotFoundError(LoginTokenError):
    """No login token with the presented value exists."""

    reason: TokenFailureReason = "not_found"

    def __init__(self) -> None:
        super().__init__("Invalid token")


class LoginTokenExpiredError(LoginTokenError):
    """The login token's expiry has passed."""

    reason: TokenFailureReason = "expired"

    def __init__(self) -> None:
        super().__init__("Token has expired")


class LoginTokenAlreadyUsedError(LoginTokenError):
    """The login token was already redeemed (possibly by a concurrent request)."""

    reason: TokenFailureReason = "already_used"

    def __init__(self) -> None:
        super().__init__("Token has already been used")


class RateLimitedError(APIError):
    """Too many requests within the window (429).

    Attributes:
        retry_after: Seconds until the next request is expected to succeed.
    """

    def __init__(
        self,
        message: str = "Too many login requests, please try again later",
        *,
        retry_after: int = 60,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(
            code="RATE_LIMITED",
            message=message,
            status_code=429,
        )


class NotFoundError(APIError):
    """Resource not found (404).

    Use when requested resource doesn't exist OR doesn't belong to user.
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=404,
        )


class ConflictError(APIError):
    """Duplicate or conflicting resource (409)."""

    def __init__(
        self,
        code: str,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details,
        )


class StorageError(APIError):
    """Backing store unavailable or an unexpected constraint violation (500).

    The message is opaque. The underlying database error is logged and
    chained, never rendered.
    """

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(
            code="INTERNAL_ERROR",
            message=message,
            status_code=500,
        )


class DeliveryError(Exception):
    """Best-effort outbound delivery (email, chat notification) failed."""


class SigningError(Exception):
    """Session signing key material is missing or invalid."""
