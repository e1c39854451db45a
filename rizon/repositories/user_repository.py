"""Repository for User operations.

Provides database access for the users table. The unique constraint on
email is what makes find-or-create safe under concurrency.
"""

import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rizon.models.base import utcnow
from rizon.models.user import User


class UserRepository:
    """Stateless repository for User table operations.

    All methods are static with no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: uuid.UUID) -> User | None:
        """Fetch a user by primary key.

        Args:
            db: Async database session.
            user_id: UUID primary key.

        Returns:
            User if found, None otherwise.
        """
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """Fetch a user by email address (case-insensitive).

        Args:
            db: Async database session.
            email: Email address to look up.

        Returns:
            User if found, None otherwise.
        """
        stmt = select(User).where(User.email == email.lower())
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(db: AsyncSession, *, email: str) -> User:
        """Create a new user with onboarding not yet completed.

        Email is normalized to lowercase before storage.

        Args:
            db: Async database session.
            email: User email address.

        Returns:
            Created User.

        Raises:
            sqlalchemy.exc.IntegrityError: If email already exists.
        """
        user = User(email=email.lower(), onboarding_completed=False)
        db.add(user)
        await db.flush()
        return user

    @staticmethod
    async def complete_onboarding(db: AsyncSession, user_id: uuid.UUID) -> bool:
        """Set onboarding_completed to true if it is not already.

        Args:
            db: Async database session.
            user_id: UUID of the user.

        Returns:
            True if the flag changed, False if it was already set or the
            user does not exist.
        """
        stmt = (
            update(User)
            .where(User.id == user_id, User.onboarding_completed.is_(False))
            .values(onboarding_completed=True, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count == 1
