"""Login token model - magic link tokens.

Single-use, time-limited tokens issued per login request. Only the
SHA-256 hash of the token value is stored; the plain value travels in
the emailed link.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Index, String, false
from sqlalchemy.orm import Mapped, mapped_column

from rizon.models.base import Base, utcnow


class LoginToken(Base):
    """Magic link login token.

    Lifecycle: created unused by TokenIssuer, flipped used=False→True
    exactly once by TokenRedeemer's conditional update, and purged by
    TokenPurgeWorker once past expiry.

    Attributes:
        id: UUID primary key.
        email: Login identity the token was issued for.
        token_hash: SHA-256 hex digest of the plain token. Unique.
        expires_at: Token is valid only while now < expires_at.
        used: Whether the token has been redeemed.
        used_at: When the token was redeemed. NULL while unused.
        created_at: Issue time; drives the sliding-window rate limit.
    """

    __tablename__ = "login_tokens"
    __table_args__ = (
        Index("ix_login_tokens_email_created_at", "email", "created_at"),
        Index("ix_login_tokens_expires_at", "expires_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    token_hash: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        nullable=False,
    )
    used: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )
    used_at: Mapped[datetime | None] = mapped_column(
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow,
        nullable=False,
    )
