"""User onboarding state reads and writes."""

import uuid

from rizon.core.database import SessionFactory, unit_of_work
from rizon.core.errors import NotFoundError
from rizon.models.user import User
from rizon.repositories.user_repository import UserRepository


class UserAccountService:
    """Reads and updates a user's onboarding state.

    Args:
        session_factory: Store client.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def get_user(self, user_id: uuid.UUID) -> User:
        """Fetch a user by id.

        Raises:
            NotFoundError: If the user no longer exists.
        """
        async with unit_of_work(self._session_factory) as db:
            user = await UserRepository.get_by_id(db, user_id)
        if user is None:
            raise NotFoundError("User")
        return user

    async def complete_onboarding(self, user_id: uuid.UUID) -> User:
        """Mark onboarding completed. Idempotent; never reverts the flag.

        Raises:
            NotFoundError: If the user no longer exists.
        """
        async with unit_of_work(self._session_factory) as db:
            await UserRepository.complete_onboarding(db, user_id)
            user = await UserRepository.get_by_id(db, user_id)
            if user is None:
                raise NotFoundError("User")
        return user
