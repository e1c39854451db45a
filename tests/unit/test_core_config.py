"""Tests for application configuration.

Settings for database, authentication, login tokens and notifications.
Tests cover defaults, URL derivation, and security validation.
"""

import pytest
from pydantic import ValidationError

from rizon.core.config import _INSECURE_DEFAULT_PASSWORD, Settings

_SECURE_DB_PASSWORD = "my-secure-production-password-123!"
_TEST_AUTH_SECRET = "a" * 64
_PRODUCTION = "production"
_PUBLIC_BASE_URL = "https://api.rizon.app"
_RESEND_KEY = "re_test_key"


class TestProductionSecurityValidation:
    """Tests for production security requirements."""

    def test_allows_default_password_in_development(self):
        """Default password is allowed in development environment."""
        s = Settings(
            environment="development",
            database_password=_INSECURE_DEFAULT_PASSWORD,
        )
        assert s.database_password == _INSECURE_DEFAULT_PASSWORD

    def test_rejects_default_password_in_production(self):
        with pytest.raises(ValidationError) as exc_info:
            Settings(
                environment=_PRODUCTION,
                database_password=_INSECURE_DEFAULT_PASSWORD,
                auth_secret=_TEST_AUTH_SECRET,
            )

        assert "Cannot use default database password in production" in str(
            exc_info.value
        )

    def test_rejects_short_auth_secret_in_production(self):
        with pytest.raises(ValidationError) as exc_info:
            Settings(
                environment=_PRODUCTION,
                database_password=_SECURE_DB_PASSWORD,
                auth_secret="short",
            )

        assert "AUTH_SECRET must be at least 32" in str(exc_info.value)

    def test_accepts_secure_production_settings(self):
        s = Settings(
            environment=_PRODUCTION,
            database_password=_SECURE_DB_PASSWORD,
            auth_secret=_TEST_AUTH_SECRET,
            public_base_url=_PUBLIC_BASE_URL,
            resend_api_key=_RESEND_KEY,
        )
        assert s.environment == _PRODUCTION

    def test_rejects_missing_public_base_url_in_production(self):
        """Links would otherwise be built from the request's Host header."""
        with pytest.raises(ValidationError, match="PUBLIC_BASE_URL must be set"):
            Settings(
                environment=_PRODUCTION,
                database_password=_SECURE_DB_PASSWORD,
                auth_secret=_TEST_AUTH_SECRET,
                public_base_url="",
                resend_api_key=_RESEND_KEY,
            )

    def test_rejects_missing_resend_key_in_production(self):
        """Dev-mode email would log live login links."""
        with pytest.raises(ValidationError, match="RESEND_API_KEY must be set"):
            Settings(
                environment=_PRODUCTION,
                database_password=_SECURE_DB_PASSWORD,
                auth_secret=_TEST_AUTH_SECRET,
                public_base_url=_PUBLIC_BASE_URL,
                resend_api_key="",
            )

    def test_allows_request_derived_links_in_development(self):
        s = Settings(environment="development", public_base_url="", resend_api_key="")
        assert s.public_base_url == ""

    def test_rejects_wildcard_cors_origin(self):
        """A wildcard origin is refused in every environment."""
        with pytest.raises(ValidationError, match="wildcard"):
            Settings(allowed_origins=["*"])

    @pytest.mark.parametrize(
        "field",
        [
            "login_rate_limit_max",
            "login_rate_limit_window_minutes",
            "login_token_ttl_minutes",
            "session_ttl_days",
        ],
    )
    def test_rejects_non_positive_limits(self, field):
        with pytest.raises(ValidationError, match="must be positive"):
            Settings(**{field: 0})


class TestLoginDefaults:
    """Login token and session lifetimes."""

    def test_defaults(self):
        s = Settings(_env_file=None)
        assert s.login_token_ttl_minutes == 15
        assert s.login_rate_limit_max == 5
        assert s.login_rate_limit_window_minutes == 10
        assert s.session_ttl_days == 30
        assert s.auth_issuer == "rizon"
        assert s.app_deep_link == "rizon://login"


class TestDatabaseUrl:
    def test_built_from_parts(self):
        s = Settings(
            database_dsn="",
            database_host="db",
            database_port=5433,
            database_name="rizon",
            database_user="u",
            database_password="p",
        )
        assert s.database_url == "postgresql+asyncpg://u:p@db:5433/rizon"
        assert s.database_url_sync == "postgresql://u:p@db:5433/rizon"

    def test_dsn_overrides_parts(self):
        s = Settings(database_dsn="sqlite+aiosqlite:///./rizon.db")
        assert s.database_url == "sqlite+aiosqlite:///./rizon.db"
        assert s.database_url_sync == "sqlite:///./rizon.db"
