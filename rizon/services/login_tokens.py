"""Magic link token issuing and redemption.

Token values come from `secrets.token_urlsafe(32)` (256 bits) and are
independent of the identity and the clock. Only their SHA-256 hash is
persisted, so a leaked table does not yield usable links.

Redemption order:
1. Look up by hash → LoginTokenNotFoundError
2. now >= expires_at → LoginTokenExpiredError
3. used → LoginTokenAlreadyUsedError
4. Conditional UPDATE used=false→true. Zero rows affected means a
   concurrent redemption won → LoginTokenAlreadyUsedError
"""

import hashlib
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from rizon.core.database import SessionFactory, unit_of_work
from rizon.core.errors import (
    LoginTokenAlreadyUsedError,
    LoginTokenExpiredError,
    LoginTokenNotFoundError,
)
from rizon.models.base import utcnow
from rizon.repositories.login_token_repository import LoginTokenRepository

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TTL = timedelta(minutes=15)

# 32 bytes of entropy → 43 URL-safe characters
_TOKEN_BYTES = 32


def hash_token(plain: str) -> str:
    """SHA-256 hex digest used as the stored token value."""
    return hashlib.sha256(plain.encode()).hexdigest()


def generate_token() -> tuple[str, str]:
    """Generate a login token and its SHA-256 hash.

    Returns:
        (plain_token, token_hash): plain for the link, hash for storage.
    """
    plain = secrets.token_urlsafe(_TOKEN_BYTES)
    return plain, hash_token(plain)


@dataclass(frozen=True)
class IssuedLoginToken:
    """A freshly issued login token.

    Attributes:
        email: Identity the token was issued for.
        token: Plain token value. Only exists in memory and in the link.
        expires_at: Token expiry.
        created_at: Issue time.
    """

    email: str
    token: str
    expires_at: datetime
    created_at: datetime


class TokenIssuer:
    """Creates opaque, time-bounded, single-use login tokens.

    Does not deliver the token; the caller builds the link and hands it
    to the email sender.

    Args:
        session_factory: Store client.
        ttl: Token lifetime.
        clock: Returns the current aware UTC time.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        ttl: timedelta = DEFAULT_TOKEN_TTL,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._ttl = ttl
        self._clock = clock

    async def issue(self, email: str) -> IssuedLoginToken:
        """Create and persist a new login token for an identity.

        Args:
            email: Normalized login identity.

        Returns:
            IssuedLoginToken carrying the plain token value.

        Raises:
            StorageError: If the store is unavailable.
        """
        plain, token_hash = generate_token()
        now = self._clock()
        expires_at = now + self._ttl

        async with unit_of_work(self._session_factory) as db:
            await LoginTokenRepository.create(
                db,
                email=email,
                token_hash=token_hash,
                expires_at=expires_at,
                created_at=now,
            )

        return IssuedLoginToken(
            email=email,
            token=plain,
            expires_at=expires_at,
            created_at=now,
        )


class TokenRedeemer:
    """Validates and consumes a login token exactly once.

    Args:
        session_factory: Store client.
        clock: Returns the current aware UTC time.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    async def redeem(self, token: str) -> str:
        """Consume a token and return the identity it was issued for.

        Args:
            token: Plain token value from the magic link.

        Returns:
            The email address the token was issued for.

        Raises:
            LoginTokenNotFoundError: No such token.
            LoginTokenExpiredError: Token expiry has passed.
            LoginTokenAlreadyUsedError: Token was already redeemed, or a
                concurrent redemption won the conditional update.
            StorageError: If the store is unavailable.
        """
        token_hash = hash_token(token)
        now = self._clock()

        async with unit_of_work(self._session_factory) as db:
            record = await LoginTokenRepository.get_by_hash(db, token_hash)
            if record is None:
                raise LoginTokenNotFoundError()
            if now >= record.expires_at:
                raise LoginTokenExpiredError()
            if record.used:
                raise LoginTokenAlreadyUsedError()

            email = record.email
            consumed = await LoginTokenRepository.mark_used(
                db, token_hash=token_hash, now=now
            )
            if not consumed:
                logger.info("Login token redemption lost a concurrent race")
                raise LoginTokenAlreadyUsedError()

        return email
