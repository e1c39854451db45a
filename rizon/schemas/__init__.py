"""Pydantic request/response schemas for API endpoints."""

from rizon.schemas.auth import (
    LoginRequest,
    MessageResponse,
    UserResponse,
    UserStatusResponse,
    VerifyResponse,
)
from rizon.schemas.feedback import (
    FeedbackCreate,
    FeedbackResponse,
    FeedbackSubmitResponse,
)

__all__ = [
    # Auth
    "LoginRequest",
    "MessageResponse",
    "UserResponse",
    "UserStatusResponse",
    "VerifyResponse",
    # Feedback
    "FeedbackCreate",
    "FeedbackResponse",
    "FeedbackSubmitResponse",
]
