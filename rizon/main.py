"""FastAPI application entry point.

This module creates and configures the FastAPI application, including:
- Store client (engine + session factory) and service wiring
- Exception handlers for API errors
- Lifespan: expired-token purge worker, notification drain, engine dispose
- Health check endpoint

Run with: uvicorn rizon.main:create_app --factory
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from rizon.api.v1.router import router as v1_router
from rizon.core.config import settings
from rizon.core.container import Services, build_services
from rizon.core.database import create_engine, create_session_factory
from rizon.core.email import ResendEmailSender
from rizon.core.errors import APIError, RateLimitedError
from rizon.core.logging import configure_logging
from rizon.core.notifications import Notifier
from rizon.core.rate_limiting import limiter, rate_limit_exceeded_handler
from rizon.core.responses import error_envelope

logger = structlog.get_logger()


# Always overwritten
_FIXED_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Cache-Control": "no-store, max-age=0",
}

# Applied only when the route did not set its own (the /auth/redirect page)
_DEFAULT_HEADERS = {
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}

_HSTS = "max-age=31536000; includeSubDomains"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds security headers to every response.

    Responses carry credentials and user state, so nothing is cacheable.
    HSTS is sent in production only (TLS terminates at the proxy).
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)

        response.headers.update(_FIXED_HEADERS)
        for name, value in _DEFAULT_HEADERS.items():
            response.headers.setdefault(name, value)
        if settings.environment == "production":
            response.headers["Strict-Transport-Security"] = _HSTS

        return response


def api_error_handler(_request: Request, exc: APIError) -> JSONResponse:
    """Render an APIError as its error envelope.

    RateLimitedError additionally carries Retry-After.
    """
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)}

    if exc.status_code >= 500:
        logger.error("API error", code=exc.code, status=exc.status_code)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.code, exc.message, exc.details),
        headers=headers,
    )


def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation failures as 400 VALIDATION_ERROR.

    Each detail names the offending location, e.g. ["body", "email"].
    """
    details = [
        {"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]}
        for e in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=error_envelope(
            "VALIDATION_ERROR", "Request validation failed", details
        ),
    )


def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all: log the exception, return an opaque 500."""
    logger.exception("Unhandled exception", exc_info=exc, path=str(request.url.path))

    return JSONResponse(
        status_code=500,
        content=error_envelope("INTERNAL_ERROR", "An unexpected error occurred"),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start background workers; drain and dispose on shutdown."""
    services: Services = app.state.services

    if settings.token_purge_enabled:
        services.token_purge_worker.start()

    yield

    await services.token_purge_worker.stop()
    # Best-effort: notifications still running after the grace period are dropped
    await services.dispatcher.aclose()
    await app.state.engine.dispose()


def create_app(
    *,
    notifier: Notifier | None = None,
    email_sender: ResendEmailSender | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Builds the store client and every service up front, so key
    misconfiguration (SigningError) stops the process before it serves.

    Args:
        notifier: Override for the feedback notification sink.
        email_sender: Override for the login email sender.

    Returns:
        Configured FastAPI application instance.

    Raises:
        SigningError: If AUTH_SECRET is missing or invalid.
    """
    configure_logging(settings.log_level, json_output=settings.log_json)

    engine = create_engine(settings)
    session_factory = create_session_factory(engine)
    services = build_services(
        settings,
        session_factory,
        notifier=notifier,
        email_sender=email_sender,
    )

    app = FastAPI(
        title="Rizon API",
        version="1.0.0",
        description="Passwordless login, onboarding state and feedback for the Rizon app",
        lifespan=lifespan,
    )
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.services = services

    # Middleware order: Starlette uses LIFO, so the LAST added runs FIRST.
    # CORS must run first to handle preflight requests, so add it last.
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Authorization", "X-Request-ID"],
    )

    # Specific handlers first, then the catch-all
    app.add_exception_handler(APIError, api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, internal_error_handler)

    # Per-IP throttling on the public auth routes
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter

    app.include_router(v1_router)

    @app.get("/health")
    def health_check() -> dict:
        """Liveness probe. Does not touch the database."""
        return {"status": "healthy"}

    logger.info("Rizon API configured", environment=settings.environment)
    return app
