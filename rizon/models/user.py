"""User model.

One user per email address, created lazily on the first successful
magic link redemption.
"""

import uuid

from sqlalchemy import Boolean, String, false
from sqlalchemy.orm import Mapped, mapped_column

from rizon.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """Mobile app user.

    Attributes:
        id: UUID primary key.
        email: Unique, lower-cased email address.
        onboarding_completed: Set once by the user finishing onboarding.
            Never reverts to False.
        created_at: Account creation timestamp (from TimestampMixin).
        updated_at: Last modification timestamp (from TimestampMixin).
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    onboarding_completed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )
