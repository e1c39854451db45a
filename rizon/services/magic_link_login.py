"""Magic link login flow.

Request: rate limit → issue token → email link (best-effort).
Verify:  redeem token → find-or-create user → sign session credential.
"""

import logging
from dataclasses import dataclass
from urllib.parse import urlencode

from rizon.core.auth import IssuedSession, SessionIssuer
from rizon.core.email import ResendEmailSender
from rizon.core.errors import DeliveryError, LoginTokenError
from rizon.models.user import User
from rizon.services.identity_resolver import IdentityResolver
from rizon.services.login_rate_limiter import LoginRateLimiter
from rizon.services.login_tokens import TokenIssuer, TokenRedeemer

logger = logging.getLogger(__name__)

REDIRECT_PATH = "/auth/redirect"


def build_login_link(base_url: str, token: str) -> str:
    """Build the emailed HTTPS link that hands the token to the app."""
    return f"{base_url.rstrip('/')}{REDIRECT_PATH}?{urlencode({'token': token})}"


@dataclass(frozen=True)
class LoginRequestResult:
    """Outcome of a login request.

    Attributes:
        delivered: False when email delivery failed; the token still exists.
    """

    delivered: bool


@dataclass(frozen=True)
class VerifiedLogin:
    """A redeemed token turned into a session."""

    session: IssuedSession
    user: User


class MagicLinkLoginService:
    """Coordinates the passwordless login components.

    Args:
        rate_limiter: Per-identity login request limit.
        token_issuer: Creates login tokens.
        token_redeemer: Consumes login tokens.
        identity_resolver: Finds or creates users.
        session_issuer: Signs bearer credentials.
        email_sender: Delivers login links.
    """

    def __init__(
        self,
        *,
        rate_limiter: LoginRateLimiter,
        token_issuer: TokenIssuer,
        token_redeemer: TokenRedeemer,
        identity_resolver: IdentityResolver,
        session_issuer: SessionIssuer,
        email_sender: ResendEmailSender,
    ) -> None:
        self._rate_limiter = rate_limiter
        self._token_issuer = token_issuer
        self._token_redeemer = token_redeemer
        self._identity_resolver = identity_resolver
        self._session_issuer = session_issuer
        self._email_sender = email_sender

    async def request_login(self, email: str, *, base_url: str) -> LoginRequestResult:
        """Issue a login token and email the link.

        Args:
            email: Normalized login identity.
            base_url: Public base URL for the emailed link.

        Returns:
            LoginRequestResult. Delivery failure is absorbed, not raised.

        Raises:
            RateLimitedError: Too many recent requests for this identity.
            StorageError: If the store is unavailable.
        """
        await self._rate_limiter.check_and_count(email)
        issued = await self._token_issuer.issue(email)
        link = build_login_link(base_url, issued.token)

        try:
            await self._email_sender.send_login_link(to_email=email, link=link)
        except DeliveryError:
            logger.warning("Login email delivery failed", exc_info=True)
            return LoginRequestResult(delivered=False)

        return LoginRequestResult(delivered=True)

    async def verify(self, token: str) -> VerifiedLogin:
        """Redeem a token and issue a session for its identity.

        Args:
            token: Plain token value.

        Returns:
            VerifiedLogin with the signed credential and the user.

        Raises:
            LoginTokenError: Token not found, expired or already used.
            StorageError: If the store is unavailable.
        """
        try:
            email = await self._token_redeemer.redeem(token)
        except LoginTokenError as exc:
            logger.info("Login token rejected (reason=%s)", exc.reason)
            raise

        user = await self._identity_resolver.resolve_or_create(email)
        session = self._session_issuer.issue_session(user)
        return VerifiedLogin(session=session, user=user)
