"""Response envelope models.

Success bodies are {"data": ...}; failures are
{"error": {"code": ..., "message": ..., "details": ...}}. The exception
handlers build failures through error_envelope() so every error path,
including slowapi's, renders the same shape.
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Success envelope.

    Usage:
        @router.get("/status")
        async def get_status(...) -> DataResponse[UserStatusResponse]:
            return DataResponse(data=UserStatusResponse(...))
    """

    data: T


class ErrorDetail(BaseModel):
    """Body of the error envelope.

    Attributes:
        code: Stable machine-readable code (e.g., "RATE_LIMITED").
        message: Human-readable message, safe to show to the user.
        details: Field-level problems for VALIDATION_ERROR, else None.
    """

    code: str
    message: str
    details: list[dict] | None = None


class ErrorResponse(BaseModel):
    """Error envelope."""

    error: ErrorDetail


def error_envelope(
    code: str,
    message: str,
    details: list[dict] | None = None,
) -> dict[str, Any]:
    """Serialized error envelope for a JSONResponse body."""
    return ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details)
    ).model_dump()
