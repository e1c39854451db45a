"""Tests for the magic link login flow."""

from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlparse

import pytest

from rizon.core.auth import SessionIssuer
from rizon.core.database import SessionFactory
from rizon.core.errors import (
    DeliveryError,
    LoginTokenAlreadyUsedError,
    LoginTokenNotFoundError,
    RateLimitedError,
)
from rizon.services.identity_resolver import IdentityResolver
from rizon.services.login_rate_limiter import LoginRateLimiter
from rizon.services.login_tokens import TokenIssuer, TokenRedeemer
from rizon.services.magic_link_login import MagicLinkLoginService, build_login_link
from tests.conftest import TEST_AUTH_SECRET


@pytest.fixture
def email_sender() -> AsyncMock:
    sender = AsyncMock()
    sender.send_login_link = AsyncMock(return_value=None)
    return sender


@pytest.fixture
def session_issuer() -> SessionIssuer:
    return SessionIssuer(TEST_AUTH_SECRET, issuer="rizon")


@pytest.fixture
def login(
    session_factory: SessionFactory,
    session_issuer: SessionIssuer,
    email_sender: AsyncMock,
) -> MagicLinkLoginService:
    return MagicLinkLoginService(
        rate_limiter=LoginRateLimiter(session_factory),
        token_issuer=TokenIssuer(session_factory),
        token_redeemer=TokenRedeemer(session_factory),
        identity_resolver=IdentityResolver(session_factory),
        session_issuer=session_issuer,
        email_sender=email_sender,
    )


def _token_from_link(email_sender: AsyncMock) -> str:
    link = email_sender.send_login_link.call_args.kwargs["link"]
    return parse_qs(urlparse(link).query)["token"][0]


class TestBuildLoginLink:
    def test_points_at_redirect_page(self) -> None:
        link = build_login_link("https://api.rizon.app/", "abc-123")

        assert link == "https://api.rizon.app/auth/redirect?token=abc-123"


class TestRequestLogin:
    """Tests for MagicLinkLoginService.request_login()."""

    async def test_emails_link_with_token(
        self, login: MagicLinkLoginService, email_sender: AsyncMock
    ) -> None:
        result = await login.request_login("a@ex.com", base_url="https://api.test")

        assert result.delivered is True
        email_sender.send_login_link.assert_awaited_once()
        kwargs = email_sender.send_login_link.call_args.kwargs
        assert kwargs["to_email"] == "a@ex.com"
        assert kwargs["link"].startswith("https://api.test/auth/redirect?token=")

    async def test_delivery_failure_is_absorbed(
        self, login: MagicLinkLoginService, email_sender: AsyncMock
    ) -> None:
        email_sender.send_login_link.side_effect = DeliveryError("resend down")

        result = await login.request_login("a@ex.com", base_url="https://api.test")

        assert result.delivered is False

    async def test_token_still_redeemable_after_delivery_failure(
        self, login: MagicLinkLoginService, email_sender: AsyncMock
    ) -> None:
        email_sender.send_login_link.side_effect = DeliveryError("resend down")
        await login.request_login("a@ex.com", base_url="https://api.test")

        verified = await login.verify(_token_from_link(email_sender))

        assert verified.user.email == "a@ex.com"

    async def test_sixth_request_is_rate_limited(
        self, login: MagicLinkLoginService, email_sender: AsyncMock
    ) -> None:
        for _ in range(5):
            await login.request_login("a@ex.com", base_url="https://api.test")

        with pytest.raises(RateLimitedError):
            await login.request_login("a@ex.com", base_url="https://api.test")

        assert email_sender.send_login_link.await_count == 5


class TestVerify:
    """Tests for MagicLinkLoginService.verify()."""

    async def test_new_email_creates_user_and_session(
        self,
        login: MagicLinkLoginService,
        email_sender: AsyncMock,
        session_issuer: SessionIssuer,
    ) -> None:
        await login.request_login("new@ex.com", base_url="https://api.test")

        verified = await login.verify(_token_from_link(email_sender))

        assert verified.user.email == "new@ex.com"
        assert verified.user.onboarding_completed is False
        claims = session_issuer.verify(verified.session.token)
        assert claims.user_id == verified.user.id
        assert claims.email == "new@ex.com"

    async def test_returning_user_keeps_identity(
        self, login: MagicLinkLoginService, email_sender: AsyncMock
    ) -> None:
        await login.request_login("a@ex.com", base_url="https://api.test")
        first = await login.verify(_token_from_link(email_sender))
        await login.request_login("a@ex.com", base_url="https://api.test")
        second = await login.verify(_token_from_link(email_sender))

        assert first.user.id == second.user.id

    async def test_reused_token_rejected(
        self, login: MagicLinkLoginService, email_sender: AsyncMock
    ) -> None:
        await login.request_login("a@ex.com", base_url="https://api.test")
        token = _token_from_link(email_sender)
        await login.verify(token)

        with pytest.raises(LoginTokenAlreadyUsedError):
            await login.verify(token)

    async def test_unknown_token_rejected(self, login: MagicLinkLoginService) -> None:
        with pytest.raises(LoginTokenNotFoundError):
            await login.verify("nope")
