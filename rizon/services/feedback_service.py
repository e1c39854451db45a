"""Feedback submission.

Writes go through the IdempotentWriteGuard keyed on the caller's
idempotency key. Only the submission that actually inserted the record
triggers a notification, and it does so after the transaction commits,
so replays and rolled-back writes never notify.
"""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from rizon.core.database import SessionFactory, unit_of_work
from rizon.core.errors import ConflictError, NotFoundError
from rizon.core.notifications import BackgroundDispatcher
from rizon.models.feedback import Feedback
from rizon.repositories.feedback_repository import FeedbackRepository
from rizon.repositories.user_repository import UserRepository
from rizon.services.idempotent_write import IdempotentWriteGuard

logger = logging.getLogger(__name__)


def format_feedback_message(user_id: uuid.UUID, text: str, rating: int) -> str:
    """Build the Slack message for a new feedback record."""
    stars = "⭐" * rating if rating > 0 else "none"
    return (
        "📝 *New Feedback Received*\n"
        f"User: `{user_id}`\n"
        f"Rating: {stars}\n"
        f"Feedback: {text}"
    )


@dataclass(frozen=True)
class FeedbackSubmission:
    """Outcome of a feedback submission.

    Attributes:
        feedback: The stored record.
        created: False when the idempotency key was already used.
    """

    feedback: Feedback
    created: bool


class FeedbackService:
    """Records feedback exactly once per idempotency key.

    Args:
        session_factory: Store client.
        dispatcher: Fire-and-forget notification dispatch.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        dispatcher: BackgroundDispatcher,
    ) -> None:
        self._session_factory = session_factory
        self._dispatcher = dispatcher
        self._guard: IdempotentWriteGuard[Feedback] = IdempotentWriteGuard(
            FeedbackRepository.get_by_idempotency_key
        )

    async def submit(
        self,
        *,
        user_id: uuid.UUID,
        text: str,
        rating: int,
        idempotency_key: str,
    ) -> FeedbackSubmission:
        """Store feedback unless the idempotency key was already used.

        Args:
            user_id: Authenticated submitter.
            text: Feedback body.
            rating: Star rating.
            idempotency_key: Caller-supplied deduplication key.

        Returns:
            FeedbackSubmission with the stored record.

        Raises:
            NotFoundError: If the submitter no longer exists.
            ConflictError: If the key belongs to another user's feedback.
            StorageError: If the store is unavailable.
        """

        async def _create(db: AsyncSession) -> Feedback:
            return await FeedbackRepository.create(
                db,
                user_id=user_id,
                text=text,
                rating=rating,
                idempotency_key=idempotency_key,
            )

        async with unit_of_work(self._session_factory) as db:
            if await UserRepository.get_by_id(db, user_id) is None:
                raise NotFoundError("User")
            outcome = await self._guard.submit_once(db, idempotency_key, _create)

        feedback = outcome.record
        if feedback.user_id != user_id:
            # Keys are global; never echo another user's feedback.
            raise ConflictError(
                code="IDEMPOTENCY_KEY_REUSED",
                message="Idempotency key was already used for a different submission",
            )

        if outcome.is_new:
            self._dispatcher.publish(
                format_feedback_message(user_id, feedback.text, feedback.rating)
            )
        else:
            logger.info("Idempotent feedback replay for record %s", feedback.id)

        return FeedbackSubmission(feedback=feedback, created=outcome.is_new)
