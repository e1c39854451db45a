"""Repository for Feedback operations.

Feedback records are insert-only; there is no update or delete path.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rizon.models.feedback import Feedback


class FeedbackRepository:
    """Stateless repository for feedback table operations."""

    @staticmethod
    async def get_by_idempotency_key(db: AsyncSession, key: str) -> Feedback | None:
        """Fetch the feedback stored under an idempotency key.

        Args:
            db: Async database session.
            key: Caller-supplied idempotency key.

        Returns:
            Feedback if found, None otherwise.
        """
        stmt = select(Feedback).where(Feedback.idempotency_key == key)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        text: str,
        rating: int,
        idempotency_key: str | None,
    ) -> Feedback:
        """Insert a feedback record.

        Args:
            db: Async database session.
            user_id: Submitting user.
            text: Feedback body.
            rating: Star rating.
            idempotency_key: Deduplication key, or None.

        Returns:
            Created Feedback.

        Raises:
            sqlalchemy.exc.IntegrityError: If idempotency_key already exists.
        """
        feedback = Feedback(
            user_id=user_id,
            text=text,
            rating=rating,
            idempotency_key=idempotency_key,
        )
        db.add(feedback)
        await db.flush()
        return feedback
