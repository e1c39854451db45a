"""Notification sinks and fire-and-forget dispatch.

Notifier is a one-method capability (publish a message). Two sinks:
- SlackWebhookNotifier: HTTP POST to a Slack incoming webhook
- LogNotifier: logs the message (default when no webhook is configured)

BackgroundDispatcher runs each publish as an independent asyncio task,
detached from the request that triggered it. Failures are logged and
dropped. On shutdown, tasks still running after a short grace period are
cancelled, so in-flight notifications may be lost (best-effort).
"""

import asyncio
import contextlib
import logging
from typing import Protocol

import httpx

from rizon.core.errors import DeliveryError

logger = logging.getLogger(__name__)

_SLACK_TIMEOUT = 10.0


class Notifier(Protocol):
    """Publishes a message to a notification channel."""

    async def publish(self, message: str) -> None:
        """Publish a message.

        Raises:
            DeliveryError: If the message could not be delivered.
        """
        ...


class LogNotifier:
    """Notifier that writes messages to the application log."""

    async def publish(self, message: str) -> None:
        logger.info("Notification published: %s", message)


class SlackWebhookNotifier:
    """Notifier that posts to a Slack incoming webhook.

    Args:
        webhook_url: Incoming webhook URL.
        timeout: Request timeout in seconds.
    """

    def __init__(self, webhook_url: str, *, timeout: float = _SLACK_TIMEOUT) -> None:
        self._webhook_url = webhook_url
        self._timeout = timeout

    async def publish(self, message: str) -> None:
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    self._webhook_url,
                    json={"text": message},
                    timeout=self._timeout,
                )
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise DeliveryError("Slack webhook request failed") from exc


class BackgroundDispatcher:
    """Spawns notifications off the request's critical path.

    Lifecycle:
    - publish() schedules a task and returns immediately.
    - wait_idle() awaits all pending tasks (tests, graceful shutdown).
    - aclose() waits up to the grace period, then cancels stragglers.

    Args:
        notifier: Sink that receives the messages.
        shutdown_grace_seconds: How long aclose() waits before cancelling.
    """

    def __init__(
        self,
        notifier: Notifier,
        *,
        shutdown_grace_seconds: float = 2.0,
    ) -> None:
        self._notifier = notifier
        self._grace = shutdown_grace_seconds
        # Strong references: the event loop only keeps weak ones
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Number of notifications still in flight."""
        return len(self._tasks)

    def publish(self, message: str) -> None:
        """Schedule a message for delivery without awaiting it.

        Must be called from an async context (running event loop).
        """
        task = asyncio.create_task(self._deliver(message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, message: str) -> None:
        try:
            await self._notifier.publish(message)
        except asyncio.CancelledError:
            raise
        except Exception:  # noqa: BLE001
            logger.exception("Notification delivery failed; dropping message")

    async def wait_idle(self) -> None:
        """Wait until every scheduled notification has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Give in-flight notifications a grace period, then cancel them."""
        if not self._tasks:
            return
        _, still_running = await asyncio.wait(list(self._tasks), timeout=self._grace)
        for task in still_running:
            task.cancel()
        for task in still_running:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if still_running:
            logger.warning(
                "Dropped %d in-flight notification(s) at shutdown", len(still_running)
            )
