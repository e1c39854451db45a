"""Service wiring.

build_services() constructs every component once, at application
startup, from the settings and the store client. The resulting Services
object lives on app.state and is read by the API dependencies.
"""

from dataclasses import dataclass
from datetime import timedelta

from rizon.core.auth import SessionIssuer
from rizon.core.config import Settings
from rizon.core.database import SessionFactory
from rizon.core.email import ResendEmailSender
from rizon.core.notifications import (
    BackgroundDispatcher,
    LogNotifier,
    Notifier,
    SlackWebhookNotifier,
)
from rizon.services.feedback_service import FeedbackService
from rizon.services.identity_resolver import IdentityResolver
from rizon.services.login_rate_limiter import LoginRateLimiter
from rizon.services.login_tokens import TokenIssuer, TokenRedeemer
from rizon.services.magic_link_login import MagicLinkLoginService
from rizon.services.token_purge_worker import TokenPurgeWorker
from rizon.services.user_account_service import UserAccountService


@dataclass
class Services:
    """Process-wide service instances."""

    session_issuer: SessionIssuer
    login: MagicLinkLoginService
    feedback: FeedbackService
    users: UserAccountService
    dispatcher: BackgroundDispatcher
    token_purge_worker: TokenPurgeWorker


def build_notifier(settings: Settings) -> Notifier:
    """Slack webhook notifier when configured, log notifier otherwise."""
    webhook_url = settings.slack_webhook_url.get_secret_value()
    if webhook_url:
        return SlackWebhookNotifier(webhook_url)
    return LogNotifier()


def build_services(
    settings: Settings,
    session_factory: SessionFactory,
    *,
    notifier: Notifier | None = None,
    email_sender: ResendEmailSender | None = None,
) -> Services:
    """Construct all services.

    Args:
        settings: Application settings.
        session_factory: Store client shared by all services.
        notifier: Override for the feedback notification sink.
        email_sender: Override for the login email sender.

    Returns:
        Services.

    Raises:
        SigningError: If AUTH_SECRET is missing or invalid.
    """
    session_issuer = SessionIssuer(
        settings.auth_secret.get_secret_value(),
        issuer=settings.auth_issuer,
        ttl=timedelta(days=settings.session_ttl_days),
    )

    if email_sender is None:
        email_sender = ResendEmailSender(
            api_key=settings.resend_api_key.get_secret_value(),
            from_address=settings.email_from,
            ttl_minutes=settings.login_token_ttl_minutes,
        )

    dispatcher = BackgroundDispatcher(
        notifier or build_notifier(settings),
        shutdown_grace_seconds=settings.notification_shutdown_grace_seconds,
    )

    login = MagicLinkLoginService(
        rate_limiter=LoginRateLimiter(
            session_factory,
            max_requests=settings.login_rate_limit_max,
            window=timedelta(minutes=settings.login_rate_limit_window_minutes),
        ),
        token_issuer=TokenIssuer(
            session_factory,
            ttl=timedelta(minutes=settings.login_token_ttl_minutes),
        ),
        token_redeemer=TokenRedeemer(session_factory),
        identity_resolver=IdentityResolver(session_factory),
        session_issuer=session_issuer,
        email_sender=email_sender,
    )

    return Services(
        session_issuer=session_issuer,
        login=login,
        feedback=FeedbackService(session_factory, dispatcher),
        users=UserAccountService(session_factory),
        dispatcher=dispatcher,
        token_purge_worker=TokenPurgeWorker(
            session_factory,
            interval_seconds=settings.token_purge_interval_seconds,
        ),
    )
