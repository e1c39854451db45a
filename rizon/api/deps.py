"""Shared dependencies for API endpoints.

Services are built once in create_app() and read from app.state. Auth
verifies the bearer credential from the Authorization header; it does
not touch the database.
"""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from rizon.core.auth import SessionClaims
from rizon.core.container import Services
from rizon.core.errors import UnauthorizedError

# auto_error=False so a missing header yields our 401 envelope, not FastAPI's 403
_bearer_scheme = HTTPBearer(auto_error=False)


def get_services(request: Request) -> Services:
    """Return the process-wide services attached at startup."""
    services: Services = request.app.state.services
    return services


AppServices = Annotated[Services, Depends(get_services)]


def get_current_session(
    services: AppServices,
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)
    ],
) -> SessionClaims:
    """Verify the bearer credential on the request.

    Args:
        services: Application services (injected).
        credentials: Parsed Authorization header (injected).

    Returns:
        Verified session claims.

    Raises:
        UnauthorizedError: Missing, malformed, expired or forged credential.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError()
    return services.session_issuer.verify(credentials.credentials)


# Reusable type aliases for dependency injection
CurrentSession = Annotated[SessionClaims, Depends(get_current_session)]
