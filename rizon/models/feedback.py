"""Feedback model.

Immutable user feedback records. The unique idempotency key is the
storage-level guard against duplicate submissions; NULL keys are not
constrained.
"""

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rizon.models.base import Base, utcnow


class Feedback(Base):
    """User feedback submission.

    Attributes:
        id: UUID primary key.
        user_id: FK to the submitting user.
        text: Free-text feedback body.
        rating: Star rating, 0-5.
        idempotency_key: Caller-supplied deduplication key. Unique when set.
        created_at: Submission timestamp.
    """

    __tablename__ = "feedback"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    text: Mapped[str] = mapped_column(
        Text(),
        nullable=False,
    )
    rating: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    idempotency_key: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow,
        nullable=False,
    )
