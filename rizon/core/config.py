"""Application configuration loaded from environment variables.

Settings for database, authentication, login tokens, email delivery and
feedback notifications. Uses pydantic-settings for validation and .env
file support.
"""

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure default password that must not be used in production
# Security: Runtime check in check_production_security() prevents use in production
_INSECURE_DEFAULT_PASSWORD = "rizon_dev_password"  # nosec B105

# Minimum length for AUTH_SECRET (256 bits = 32 bytes)
MIN_AUTH_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "rizon"
    database_user: str = "rizon_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD
    # Full SQLAlchemy URL; overrides the parts above when set
    # (e.g. "sqlite+aiosqlite:///./rizon.db" for local development)
    database_dsn: str = ""

    # API
    api_host: str = "0.0.0.0"  # nosec B104
    api_port: int = 8080
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Application
    environment: str = "development"
    log_level: str = "INFO"
    log_json: bool = False

    # Session credentials
    auth_secret: SecretStr = SecretStr("")
    auth_issuer: str = "rizon"
    session_ttl_days: int = 30

    # Login tokens
    login_token_ttl_minutes: int = 15
    login_rate_limit_max: int = 5
    login_rate_limit_window_minutes: int = 10
    token_purge_enabled: bool = True
    token_purge_interval_seconds: int = 5 * 60

    # Email (Resend)
    email_from: str = "Rizon <noreply@rizon.app>"
    resend_api_key: SecretStr = SecretStr("")

    # Base URL used in emailed links. Empty = derive from the incoming request
    # (development only; required in production).
    public_base_url: str = ""

    # Mobile app deep link that receives the token
    app_deep_link: str = "rizon://login"

    # Feedback notifications. Empty = log-only notifier.
    slack_webhook_url: SecretStr = SecretStr("")
    notification_shutdown_grace_seconds: float = 2.0

    # Per-IP request throttling (slowapi)
    # Format: "count/period" (e.g., "10/minute", "100/hour")
    rate_limit_login_request: str = "20/hour"
    rate_limit_verify: str = "10/minute"
    rate_limit_enabled: bool = True  # Disable for testing

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        if self.database_dsn:
            return self.database_dsn
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def database_url_sync(self) -> str:
        """Sync database URL for Alembic."""
        if self.database_dsn:
            return self.database_dsn.replace("+asyncpg", "").replace("+aiosqlite", "")
        return (
            f"postgresql://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate security requirements.

        Checks:
        - Login rate limit and token TTL values must be positive
        - CORS must not use wildcard origin
        - Database password must not be the default in production
        - AUTH_SECRET must be set and >= 32 chars in production
        - PUBLIC_BASE_URL and RESEND_API_KEY must be set in production
        """
        if self.login_rate_limit_max <= 0 or self.login_rate_limit_window_minutes <= 0:
            msg = (
                "LOGIN_RATE_LIMIT_MAX and LOGIN_RATE_LIMIT_WINDOW_MINUTES "
                "must be positive."
            )
            raise ValueError(msg)
        if self.login_token_ttl_minutes <= 0 or self.session_ttl_days <= 0:
            msg = "LOGIN_TOKEN_TTL_MINUTES and SESSION_TTL_DAYS must be positive."
            raise ValueError(msg)

        if "*" in self.allowed_origins:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard). "
                "List the allowed origins explicitly."
            )
            raise ValueError(msg)

        if self.environment == "production":
            if (
                not self.database_dsn
                and self.database_password == _INSECURE_DEFAULT_PASSWORD
            ):
                msg = (
                    "Cannot use default database password in production. "
                    "Set DATABASE_PASSWORD environment variable to a secure value."
                )
                raise ValueError(msg)

            if len(self.auth_secret.get_secret_value()) < MIN_AUTH_SECRET_LENGTH:
                msg = (
                    f"AUTH_SECRET must be at least {MIN_AUTH_SECRET_LENGTH} "
                    "characters in production. "
                    'Generate with: python -c "import secrets; '
                    'print(secrets.token_hex(32))"'
                )
                raise ValueError(msg)

            # Emailed links must never take their host from the request
            if not self.public_base_url:
                msg = (
                    "PUBLIC_BASE_URL must be set in production. "
                    "Emailed login links are built from it."
                )
                raise ValueError(msg)

            # Dev mode logs live login links
            if not self.resend_api_key.get_secret_value():
                msg = (
                    "RESEND_API_KEY must be set in production. "
                    "Without it login links are logged instead of emailed."
                )
                raise ValueError(msg)

        return self


settings = Settings()
