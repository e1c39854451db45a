"""Auth and user request/response schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator


class LoginRequest(BaseModel):
    """Request body for POST /auth/request."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: object) -> object:
        """Trim and lower-case before validation."""
        if isinstance(value, str):
            return value.strip().lower()
        return value


class MessageResponse(BaseModel):
    """Generic acknowledgement.

    Attributes:
        message: Human-readable outcome.
        note: Optional follow-up hint (e.g. delayed delivery).
    """

    message: str
    note: str | None = None


class UserResponse(BaseModel):
    """Public view of a user."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    onboarding_completed: bool
    created_at: datetime
    updated_at: datetime


class VerifyResponse(BaseModel):
    """Response for GET /auth/verify.

    Attributes:
        token: Signed bearer credential.
        expires_at: Credential expiry.
        user: The authenticated user.
    """

    token: str
    expires_at: datetime
    user: UserResponse


class UserStatusResponse(BaseModel):
    """Response for GET /user/status."""

    onboarding_completed: bool
