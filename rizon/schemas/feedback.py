"""Feedback request/response schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

_MAX_TEXT_LENGTH = 5000
_MAX_KEY_LENGTH = 255
_MAX_RATING = 5


class FeedbackCreate(BaseModel):
    """Request body for POST /feedback.

    Attributes:
        text: Feedback body. Required, non-blank.
        rating: Star rating 0-5. Defaults to 0 (no rating).
        idempotency_key: Client-generated key; retries reuse it.
    """

    model_config = ConfigDict(extra="forbid")

    text: str = Field(min_length=1, max_length=_MAX_TEXT_LENGTH)
    rating: int = Field(default=0, ge=0, le=_MAX_RATING)
    idempotency_key: str = Field(min_length=1, max_length=_MAX_KEY_LENGTH)

    @field_validator("text", "idempotency_key", mode="before")
    @classmethod
    def strip_whitespace(cls, value: object) -> object:
        """Blank strings count as missing."""
        if isinstance(value, str):
            return value.strip()
        return value


class FeedbackResponse(BaseModel):
    """Public view of a feedback record."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    text: str
    rating: int
    idempotency_key: str | None
    created_at: datetime


class FeedbackSubmitResponse(BaseModel):
    """Response for POST /feedback (201 new, 200 replay)."""

    message: str
    feedback: FeedbackResponse
