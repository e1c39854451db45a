"""Repository for LoginToken operations.

Single-use magic link tokens stored as hashed values. The used flag is
only ever flipped by mark_used(), a conditional UPDATE that is the
storage-level arbiter between concurrent redemptions.
"""

from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rizon.models.login_token import LoginToken


class LoginTokenRepository:
    """Stateless repository for login_tokens table operations.

    All methods are static with no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        token_hash: str,
        expires_at: datetime,
        created_at: datetime,
    ) -> LoginToken:
        """Store a new unused login token.

        Args:
            db: Async database session.
            email: Login identity.
            token_hash: SHA-256 hash of the plain token.
            expires_at: Token expiry timestamp.
            created_at: Issue timestamp (counted by the rate limiter).

        Returns:
            Created LoginToken.

        Raises:
            sqlalchemy.exc.IntegrityError: If token_hash already exists.
        """
        token = LoginToken(
            email=email,
            token_hash=token_hash,
            expires_at=expires_at,
            used=False,
            created_at=created_at,
        )
        db.add(token)
        await db.flush()
        return token

    @staticmethod
    async def get_by_hash(db: AsyncSession, token_hash: str) -> LoginToken | None:
        """Look up a token by the hash of its value.

        Args:
            db: Async database session.
            token_hash: SHA-256 hash of the plain token.

        Returns:
            LoginToken if found, None otherwise.
        """
        stmt = select(LoginToken).where(LoginToken.token_hash == token_hash)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def mark_used(
        db: AsyncSession,
        *,
        token_hash: str,
        now: datetime,
    ) -> bool:
        """Atomically flip used False→True for an unexpired token.

        The WHERE clause carries the precondition, so the check and the
        write are a single statement. A concurrent redemption that loses
        the race matches zero rows.

        Args:
            db: Async database session.
            token_hash: SHA-256 hash of the plain token.
            now: Redemption time.

        Returns:
            True if this call performed the transition, False otherwise.
        """
        stmt = (
            update(LoginToken)
            .where(
                LoginToken.token_hash == token_hash,
                LoginToken.used.is_(False),
                LoginToken.expires_at > now,
            )
            .values(used=True, used_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count == 1

    @staticmethod
    async def count_created_since(
        db: AsyncSession,
        *,
        email: str,
        since: datetime,
    ) -> tuple[int, datetime | None]:
        """Count tokens issued for an identity at or after a point in time.

        Args:
            db: Async database session.
            email: Login identity.
            since: Window start (inclusive).

        Returns:
            (count, oldest created_at in the window or None).
        """
        stmt = select(func.count(), func.min(LoginToken.created_at)).where(
            LoginToken.email == email,
            LoginToken.created_at >= since,
        )
        result = await db.execute(stmt)
        count, oldest = result.one()
        return int(count), oldest

    @staticmethod
    async def delete_expired(db: AsyncSession, *, now: datetime) -> int:
        """Delete all tokens whose expiry has passed (periodic purge).

        Args:
            db: Async database session.
            now: Purge reference time.

        Returns:
            Number of deleted rows.
        """
        stmt = delete(LoginToken).where(LoginToken.expires_at <= now)
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count
