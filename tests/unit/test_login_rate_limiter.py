"""Tests for the per-identity sliding-window login limit."""

from datetime import UTC, datetime, timedelta

import pytest

from rizon.core.database import SessionFactory
from rizon.core.errors import RateLimitedError
from rizon.services.login_rate_limiter import LoginRateLimiter
from rizon.services.login_tokens import TokenIssuer

_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


async def _issue_at(
    session_factory: SessionFactory, email: str, at: datetime, count: int = 1
) -> None:
    issuer = TokenIssuer(session_factory, clock=lambda: at)
    for _ in range(count):
        await issuer.issue(email)


class TestLoginRateLimiter:
    """Tests for LoginRateLimiter.check_and_count()."""

    async def test_no_tokens_allows_request(
        self, session_factory: SessionFactory
    ) -> None:
        limiter = LoginRateLimiter(session_factory, clock=lambda: _NOW)

        assert await limiter.check_and_count("a@ex.com") == 0

    async def test_four_recent_tokens_still_allowed(
        self, session_factory: SessionFactory
    ) -> None:
        await _issue_at(session_factory, "a@ex.com", _NOW - timedelta(minutes=1), 4)
        limiter = LoginRateLimiter(session_factory, clock=lambda: _NOW)

        assert await limiter.check_and_count("a@ex.com") == 4

    async def test_sixth_request_within_window_is_rejected(
        self, session_factory: SessionFactory
    ) -> None:
        # Five requests within one minute
        for second in range(0, 60, 12):
            await _issue_at(
                session_factory, "a@ex.com", _NOW + timedelta(seconds=second)
            )
        check_at = _NOW + timedelta(minutes=2)
        limiter = LoginRateLimiter(session_factory, clock=lambda: check_at)

        with pytest.raises(RateLimitedError) as exc_info:
            await limiter.check_and_count("a@ex.com")

        assert exc_info.value.status_code == 429
        assert exc_info.value.code == "RATE_LIMITED"
        # Oldest token (at _NOW) leaves the window 8 minutes after check_at
        assert exc_info.value.retry_after == 8 * 60

    async def test_window_slides(self, session_factory: SessionFactory) -> None:
        await _issue_at(session_factory, "a@ex.com", _NOW, 5)
        after_window = _NOW + timedelta(minutes=10, seconds=1)
        limiter = LoginRateLimiter(session_factory, clock=lambda: after_window)

        assert await limiter.check_and_count("a@ex.com") == 0

    async def test_window_boundary_is_inclusive(
        self, session_factory: SessionFactory
    ) -> None:
        await _issue_at(session_factory, "a@ex.com", _NOW, 5)
        at_boundary = _NOW + timedelta(minutes=10)
        limiter = LoginRateLimiter(session_factory, clock=lambda: at_boundary)

        with pytest.raises(RateLimitedError):
            await limiter.check_and_count("a@ex.com")

    async def test_limit_is_per_identity(
        self, session_factory: SessionFactory
    ) -> None:
        await _issue_at(session_factory, "a@ex.com", _NOW, 5)
        limiter = LoginRateLimiter(session_factory, clock=lambda: _NOW)

        assert await limiter.check_and_count("b@ex.com") == 0

    async def test_used_tokens_still_count(
        self, session_factory: SessionFactory
    ) -> None:
        from rizon.services.login_tokens import TokenRedeemer

        issuer = TokenIssuer(session_factory, clock=lambda: _NOW)
        redeemer = TokenRedeemer(session_factory, clock=lambda: _NOW)
        for _ in range(5):
            issued = await issuer.issue("a@ex.com")
            await redeemer.redeem(issued.token)
        limiter = LoginRateLimiter(session_factory, clock=lambda: _NOW)

        with pytest.raises(RateLimitedError):
            await limiter.check_and_count("a@ex.com")

    async def test_custom_limit(self, session_factory: SessionFactory) -> None:
        await _issue_at(session_factory, "a@ex.com", _NOW, 2)
        limiter = LoginRateLimiter(
            session_factory,
            max_requests=2,
            window=timedelta(minutes=1),
            clock=lambda: _NOW + timedelta(seconds=30),
        )

        with pytest.raises(RateLimitedError) as exc_info:
            await limiter.check_and_count("a@ex.com")

        assert exc_info.value.retry_after == 30
