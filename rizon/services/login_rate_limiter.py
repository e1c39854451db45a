"""Per-identity login request rate limiting.

Sliding window over login token issue times: a request is rejected when
the identity already has `max_requests` tokens created within the
trailing window, measured from the moment of the call.

The check is read-only. Issuing the token afterwards is what raises the
count for later checks, so a failed issue never consumes quota.
"""

import logging
import math
from collections.abc import Callable
from datetime import datetime, timedelta

from rizon.core.database import SessionFactory, unit_of_work
from rizon.core.errors import RateLimitedError
from rizon.models.base import utcnow
from rizon.repositories.login_token_repository import LoginTokenRepository

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS = 5
DEFAULT_WINDOW = timedelta(minutes=10)


class LoginRateLimiter:
    """Policy layer over the login token store's counting capability.

    Args:
        session_factory: Store client.
        max_requests: Tokens allowed per identity within the window.
        window: Trailing window length.
        clock: Returns the current aware UTC time.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window: timedelta = DEFAULT_WINDOW,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._max_requests = max_requests
        self._window = window
        self._clock = clock

    async def check_and_count(self, email: str) -> int:
        """Count recent tokens for an identity and enforce the limit.

        Args:
            email: Normalized login identity.

        Returns:
            Number of tokens issued within the trailing window.

        Raises:
            RateLimitedError: If the count has reached the limit.
            StorageError: If the store is unavailable.
        """
        now = self._clock()
        since = now - self._window
        async with unit_of_work(self._session_factory) as db:
            count, oldest = await LoginTokenRepository.count_created_since(
                db, email=email, since=since
            )

        if count >= self._max_requests:
            retry_after = self._seconds_until_slot(now, oldest)
            logger.info(
                "Login request rate limited (count=%d, retry_after=%ds)",
                count,
                retry_after,
            )
            raise RateLimitedError(retry_after=retry_after)

        return count

    def _seconds_until_slot(self, now: datetime, oldest: datetime | None) -> int:
        """Seconds until the oldest token in the window slides out."""
        if oldest is None:
            return int(self._window.total_seconds())
        remaining = (oldest + self._window - now).total_seconds()
        return max(1, math.ceil(remaining))
