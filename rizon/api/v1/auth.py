"""Magic link authentication endpoints.

Endpoints:
- POST /auth/request: rate-limited login request; emails a magic link
- GET /auth/verify: redeem a token, return a bearer credential + user
- GET /auth/redirect: HTML hand-off page that opens the mobile app
"""

import json
import logging
from html import escape
from typing import Annotated
from urllib.parse import urlencode

from fastapi import APIRouter, Query, Request
from fastapi.responses import HTMLResponse

from rizon.api.deps import AppServices
from rizon.core.config import settings
from rizon.core.errors import LoginTokenNotFoundError, ValidationError
from rizon.core.rate_limiting import limiter
from rizon.core.responses import DataResponse
from rizon.schemas.auth import (
    LoginRequest,
    MessageResponse,
    UserResponse,
    VerifyResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_MAX_TOKEN_LENGTH = 256

# The hand-off page needs its own inline script and style; everything else
# stays blocked.
_REDIRECT_PAGE_CSP = (
    "default-src 'none'; script-src 'unsafe-inline'; "
    "style-src 'unsafe-inline'; frame-ancestors 'none'"
)


def _public_base_url(request: Request) -> str:
    """Base URL for emailed links: configured, or derived from the request."""
    if settings.public_base_url:
        return settings.public_base_url
    scheme = request.url.scheme
    if request.headers.get("x-forwarded-proto") == "https":
        scheme = "https"
    host = request.headers.get("host") or request.url.netloc
    return f"{scheme}://{host}"


# ===================================================================
# POST /auth/request
# ===================================================================


@router.post("/request")
@limiter.limit(lambda: settings.rate_limit_login_request)
async def request_login(
    request: Request,
    body: LoginRequest,
    services: AppServices,
) -> DataResponse[MessageResponse]:
    """Request a magic link login email.

    Returns 429 when the identity already requested too many links within
    the window. Email delivery is best-effort: a failed send still returns
    200 with a note, since the token was created.

    Rate limit (per IP): settings.rate_limit_login_request.
    """
    result = await services.login.request_login(
        body.email,
        base_url=_public_base_url(request),
    )

    if not result.delivered:
        return DataResponse(
            data=MessageResponse(
                message="Login link generated (email delivery may be delayed)",
                note="If the email does not arrive, request a new link later",
            )
        )

    return DataResponse(data=MessageResponse(message="Login link sent to your email"))


# ===================================================================
# GET /auth/verify
# ===================================================================


@router.get("/verify")
@limiter.limit(lambda: settings.rate_limit_verify)
async def verify_token(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    services: AppServices,
    token: Annotated[str | None, Query()] = None,
) -> DataResponse[VerifyResponse]:
    """Redeem a magic link token and issue a session credential.

    401 for unknown, expired or already-used tokens. The first successful
    redemption of an unseen email creates the user.

    Rate limit (per IP): settings.rate_limit_verify.
    """
    if not token:
        raise ValidationError("token is required")
    if len(token) > _MAX_TOKEN_LENGTH:
        # Longer than any issued token
        raise LoginTokenNotFoundError()

    verified = await services.login.verify(token)

    return DataResponse(
        data=VerifyResponse(
            token=verified.session.token,
            expires_at=verified.session.expires_at,
            user=UserResponse.model_validate(verified.user),
        )
    )


# ===================================================================
# GET /auth/redirect
# ===================================================================


def render_redirect_page(deep_link: str) -> str:
    """Render the page that forwards the browser to the app deep link."""
    href = escape(deep_link, quote=True)
    # json.dumps escapes quotes; "<" cannot appear in a URL-encoded token
    script_target = json.dumps(deep_link)
    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Opening Rizon...</title>
<style>
body {{ font-family: -apple-system, sans-serif; display: flex; justify-content: center; align-items: center; min-height: 100vh; margin: 0; background: #f5f3ff; }}
.card {{ text-align: center; padding: 40px; background: white; border-radius: 16px; box-shadow: 0 4px 24px rgba(0,0,0,0.1); max-width: 400px; }}
.btn {{ display: inline-block; background: #6366f1; color: white; padding: 14px 32px; border-radius: 10px; text-decoration: none; font-weight: 600; margin-top: 16px; }}
</style>
</head>
<body>
<div class="card">
<h1>Opening Rizon...</h1>
<p>You should be redirected to the app automatically.</p>
<p>If nothing happens, tap the button below:</p>
<a href="{href}" class="btn">Open Rizon App</a>
</div>
<script>window.location.href = {script_target};</script>
</body>
</html>
"""


@router.get("/redirect", response_class=HTMLResponse)
async def redirect_to_app(
    token: Annotated[str | None, Query(max_length=_MAX_TOKEN_LENGTH)] = None,
) -> HTMLResponse:
    """Serve the hand-off page linked from the login email.

    Mail clients strip custom URL schemes, so the email links here and this
    page opens the app's deep link. The token is not validated here.
    """
    if not token:
        raise ValidationError("token is required")

    deep_link = f"{settings.app_deep_link}?{urlencode({'token': token})}"
    response = HTMLResponse(content=render_redirect_page(deep_link))
    response.headers["Content-Security-Policy"] = _REDIRECT_PAGE_CSP
    # Prevent token leakage via Referer header
    response.headers["Referrer-Policy"] = "no-referrer"
    return response
