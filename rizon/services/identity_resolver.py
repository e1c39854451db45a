"""Find-or-create users by email.

Race condition: two first-time redemptions for the same email can both
miss the lookup. The UNIQUE constraint on users.email rejects the second
insert; the loser recovers inside a savepoint and returns the winner's
row.
"""

import logging

from sqlalchemy.exc import IntegrityError

from rizon.core.database import SessionFactory, unit_of_work
from rizon.models.user import User
from rizon.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Maps a validated email to its durable user record.

    Args:
        session_factory: Store client.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def resolve_or_create(self, email: str) -> User:
        """Return the user for an email, creating it on first use.

        Args:
            email: Validated login identity.

        Returns:
            Existing or newly created User (onboarding_completed=False
            when new).

        Raises:
            StorageError: If the store is unavailable, or the insert
                conflicted and the winning row still cannot be found.
        """
        async with unit_of_work(self._session_factory) as db:
            existing = await UserRepository.get_by_email(db, email)
            if existing is not None:
                return existing

            try:
                async with db.begin_nested():
                    user = await UserRepository.create(db, email=email)
                logger.info("Created user %s", user.id)
                return user
            except IntegrityError:
                # Race condition: user created by a concurrent request.
                # Savepoint was rolled back; session is still usable.
                winner = await UserRepository.get_by_email(db, email)
                if winner is not None:
                    return winner
                raise  # Can't recover
