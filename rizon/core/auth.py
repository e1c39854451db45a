"""Session credential signing and verification.

Issues HS256 JWT bearer credentials for resolved users and verifies
them on authenticated requests.

Claims:
- sub: user UUID
- email: user email
- iat / exp: issued-at and expiry (30 days by default)
- aud / iss: fixed audience and configured issuer

The signing key is validated once when the SessionIssuer is built, which
happens inside create_app(). A process with bad key material never
starts serving, so SigningError cannot occur per request.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt

from rizon.core.config import MIN_AUTH_SECRET_LENGTH
from rizon.core.errors import SigningError, UnauthorizedError
from rizon.models.user import User

logger = logging.getLogger(__name__)

_ALGORITHM = "HS256"
_AUDIENCE = "rizon-app"

DEFAULT_SESSION_TTL = timedelta(days=30)


@dataclass(frozen=True)
class IssuedSession:
    """A signed bearer credential.

    Attributes:
        token: Encoded JWT.
        expires_at: Expiry encoded in the exp claim.
    """

    token: str
    expires_at: datetime


@dataclass(frozen=True)
class SessionClaims:
    """Verified claims of a bearer credential."""

    user_id: uuid.UUID
    email: str
    issued_at: datetime
    expires_at: datetime


class SessionIssuer:
    """Signs and verifies session credentials with a process-wide key.

    Args:
        secret: HMAC signing secret.
        issuer: Value for the iss claim.
        ttl: Credential lifetime.

    Raises:
        SigningError: If the secret is missing, too short, or rejected
            by the JWT library.
    """

    def __init__(
        self,
        secret: str,
        *,
        issuer: str,
        ttl: timedelta = DEFAULT_SESSION_TTL,
    ) -> None:
        if not secret:
            msg = (
                "AUTH_SECRET is not set. Generate one with: "
                'python -c "import secrets; print(secrets.token_hex(32))"'
            )
            raise SigningError(msg)
        if len(secret) < MIN_AUTH_SECRET_LENGTH:
            msg = f"AUTH_SECRET must be at least {MIN_AUTH_SECRET_LENGTH} characters"
            raise SigningError(msg)

        self._secret = secret
        self._issuer = issuer
        self._ttl = ttl

        # Fail at startup, not on the first login
        try:
            jwt.encode({"startup_check": True}, secret, algorithm=_ALGORITHM)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise SigningError("AUTH_SECRET was rejected by the signer") from exc

    def issue_session(self, user: User, *, now: datetime | None = None) -> IssuedSession:
        """Sign a bearer credential for a user.

        Args:
            user: Resolved user.
            now: Issue time. Defaults to the current time.

        Returns:
            IssuedSession with the encoded JWT and its expiry.
        """
        # JWT timestamps are whole seconds
        issued_at = (now or datetime.now(UTC)).replace(microsecond=0)
        expires_at = issued_at + self._ttl
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "aud": _AUDIENCE,
            "iss": self._issuer,
            "iat": issued_at,
            "exp": expires_at,
        }
        token = jwt.encode(payload, self._secret, algorithm=_ALGORITHM)
        return IssuedSession(token=token, expires_at=expires_at)

    def verify(self, token: str) -> SessionClaims:
        """Verify a bearer credential and return its claims.

        Validation: signature (HS256), exp, aud, iss, and presence of
        sub, email and iat.

        Args:
            token: Encoded JWT from the Authorization header.

        Returns:
            SessionClaims.

        Raises:
            UnauthorizedError: For any verification failure. The reason is
                not exposed.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                audience=_AUDIENCE,
                issuer=self._issuer,
                options={"require": ["sub", "email", "iat", "exp"]},
            )
            return SessionClaims(
                user_id=uuid.UUID(payload["sub"]),
                email=payload["email"],
                issued_at=datetime.fromtimestamp(payload["iat"], UTC),
                expires_at=datetime.fromtimestamp(payload["exp"], UTC),
            )
        except (jwt.InvalidTokenError, KeyError, ValueError, TypeError) as exc:
            logger.debug("Rejected session credential: %s", type(exc).__name__)
            raise UnauthorizedError() from exc
