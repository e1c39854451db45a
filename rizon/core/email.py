"""Email sending via Resend API.

Simple HTTP POST to Resend for magic link emails. Without an API key the
sender runs in dev mode: it logs the link instead of sending and reports
success.
"""

import logging
from html import escape

import httpx

from rizon.core.errors import DeliveryError

logger = logging.getLogger(__name__)

_RESEND_API_URL = "https://api.resend.com/emails"
_RESEND_TIMEOUT = 10.0

_SUBJECT = "Your Rizon Login Link"


def render_login_email(link: str, *, ttl_minutes: int) -> str:
    """Render the HTML body of the login email."""
    href = escape(link, quote=True)
    return (
        '<div style="font-family: sans-serif; max-width: 480px; margin: 0 auto; '
        'padding: 24px;">'
        '<h2 style="color: #333;">Welcome to Rizon!</h2>'
        "<p>Click the button below to log in to your account:</p>"
        f'<a href="{href}" style="display: inline-block; background: #6366f1; '
        "color: white; padding: 12px 24px; border-radius: 8px; "
        'text-decoration: none; font-weight: 600;">Open Rizon App</a>'
        '<p style="color: #888; font-size: 14px; margin-top: 16px;">'
        f"This link expires in {ttl_minutes} minutes and can only be used once.</p>"
        '<p style="color: #aaa; font-size: 12px;">'
        "If you didn't request this, you can safely ignore this email.</p>"
        "</div>"
    )


class ResendEmailSender:
    """Delivers login links through Resend.

    Args:
        api_key: Resend API key. Empty enables dev mode.
        from_address: Sender address.
        ttl_minutes: Token lifetime quoted in the email body.
    """

    def __init__(self, *, api_key: str, from_address: str, ttl_minutes: int) -> None:
        self._api_key = api_key
        self._from_address = from_address
        self._ttl_minutes = ttl_minutes

    @property
    def dev_mode(self) -> bool:
        """True when no API key is configured."""
        return not self._api_key

    async def send_login_link(self, *, to_email: str, link: str) -> None:
        """Send a magic link email.

        Args:
            to_email: Recipient email address.
            link: Magic link URL carrying the plain token.

        Raises:
            DeliveryError: If Resend rejects the request or is unreachable.
        """
        if self.dev_mode:
            logger.warning("RESEND_API_KEY not set, skipping email send")
            logger.info("[Dev Mode] Login link for %s: %s", to_email, link)
            return

        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    _RESEND_API_URL,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                    json={
                        "from": self._from_address,
                        "to": [to_email],
                        "subject": _SUBJECT,
                        "html": render_login_email(
                            link, ttl_minutes=self._ttl_minutes
                        ),
                    },
                    timeout=_RESEND_TIMEOUT,
                )
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise DeliveryError("Resend email request failed") from exc

        logger.info("Login email accepted by Resend (status=%d)", resp.status_code)
