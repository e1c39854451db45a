"""Idempotent write guard.

Deduplicates a write by a caller-supplied idempotency key:

1. Look up the record by key; if present, return it (is_new=False).
2. Otherwise insert inside a savepoint.
3. If a concurrent duplicate got there first, the UNIQUE constraint on
   the key rejects the insert. The savepoint is rolled back and the
   winner's record is returned exactly as in step 1.

Steps 1 and 2 are not atomic; the storage constraint is the arbiter.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")

Lookup = Callable[[AsyncSession, str], Awaitable[T | None]]
Create = Callable[[AsyncSession], Awaitable[T]]


@dataclass(frozen=True)
class WriteOutcome(Generic[T]):
    """Result of an idempotent write.

    Attributes:
        record: The stored record (new, or the one already under the key).
        is_new: True only for the call that actually inserted it.
    """

    record: T
    is_new: bool


class IdempotentWriteGuard(Generic[T]):
    """Check-then-insert with unique-constraint fallback.

    Args:
        lookup: Fetches the record stored under a key, or None.
    """

    def __init__(self, lookup: Lookup[T]) -> None:
        self._lookup = lookup

    async def submit_once(
        self,
        db: AsyncSession,
        key: str,
        create: Create[T],
    ) -> WriteOutcome[T]:
        """Create the record for a key unless one already exists.

        Args:
            db: Session with an open transaction.
            key: Idempotency key.
            create: Inserts the record. Must store it under `key` so the
                unique constraint applies.

        Returns:
            WriteOutcome with is_new=True only for the winning insert.

        Raises:
            sqlalchemy.exc.IntegrityError: If the insert conflicted but no
                record exists under the key (a different constraint failed).
        """
        existing = await self._lookup(db, key)
        if existing is not None:
            return WriteOutcome(record=existing, is_new=False)

        try:
            async with db.begin_nested():
                record = await create(db)
            return WriteOutcome(record=record, is_new=True)
        except IntegrityError:
            # Race condition: duplicate submission inserted first.
            winner = await self._lookup(db, key)
            if winner is not None:
                return WriteOutcome(record=winner, is_new=False)
            raise  # Can't recover
