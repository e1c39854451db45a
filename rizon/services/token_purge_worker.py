"""Expired login token purge worker.

asyncio background task via FastAPI lifespan event. Deletes login tokens
past their expiry on a fixed interval, which gives the login_tokens table
a time-to-live without relying on database-specific TTL features.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from datetime import datetime

from rizon.core.database import SessionFactory, unit_of_work
from rizon.models.base import utcnow
from rizon.repositories.login_token_repository import LoginTokenRepository

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 5 * 60


class TokenPurgeWorker:
    """Background worker that periodically purges expired login tokens.

    Lifecycle:
    - start() creates an asyncio task that runs the purge loop.
    - stop() cancels the task and waits for graceful shutdown.
    - run_once() executes a single purge (for testing).

    Args:
        session_factory: Store client.
        interval_seconds: Seconds between purges.
        clock: Returns the current aware UTC time.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        interval_seconds: int = DEFAULT_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._interval_seconds = interval_seconds
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Whether the background task is currently active."""
        return self._running and self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the background purge loop. No-op if already running."""
        if self.is_running:
            logger.warning("Token purge worker already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Token purge worker started (interval=%ds)", self._interval_seconds)

    async def stop(self) -> None:
        """Stop the background purge loop."""
        self._running = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        logger.info("Token purge worker stopped")

    async def run_once(self) -> int:
        """Delete every token whose expiry has passed.

        Returns:
            Number of tokens deleted.
        """
        async with unit_of_work(self._session_factory) as db:
            return await LoginTokenRepository.delete_expired(db, now=self._clock())

    async def _run_loop(self) -> None:
        """Background loop: purge → sleep → repeat."""
        try:
            while self._running:
                try:
                    deleted = await self.run_once()
                    if deleted:
                        logger.info("Purged %d expired login token(s)", deleted)
                except Exception:  # noqa: BLE001
                    logger.exception("Error purging expired login tokens")
                await asyncio.sleep(self._interval_seconds)
        except asyncio.CancelledError:
            logger.debug("Token purge loop cancelled")
            raise
