"""Application configuration loaded from environment variables.

Settings for the database, session signing, email delivery, Google OAuth
and the WebAuthn relying party. Uses pydantic-settings for validation and
.env file support.

Settings are built once at process start with load_settings() and passed
down explicitly. Nothing in this package reads configuration at import time.
"""

from datetime import timedelta
from typing import Literal

from pydantic import SecretStr, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from taskboard_auth.core.errors import AuthError, ErrorKind

# Minimum length for AUTH_SECRET in production (256 bits = 32 bytes)
_MIN_AUTH_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    environment: str = "development"
    log_level: str = "INFO"
    app_name: str = "Daily Tasks"
    # Public origin of the web app; used for links in emails
    app_base_url: str = "http://localhost:5173"

    # Database
    database_url: str = "sqlite+aiosqlite:///./taskboard.db"
    database_echo: bool = False

    # Sessions
    auth_secret: SecretStr = SecretStr("")
    auth_cookie_name: str = "auth_token"
    auth_cookie_secure: bool = True
    auth_cookie_samesite: Literal["lax", "strict", "none"] = "lax"
    session_ttl_days: int = 7
    session_refresh_threshold_days: int = 3

    # Token lifetimes
    verification_token_ttl_hours: int = 24
    password_reset_token_ttl_minutes: int = 60
    webauthn_challenge_ttl_minutes: int = 5
    oauth_state_ttl_minutes: int = 10

    # Password policy
    password_min_length: int = 8

    # Email
    email_from: str = "onboarding@resend.dev"
    resend_api_key: SecretStr = SecretStr("")

    # Google OAuth
    google_client_id: str = ""
    google_client_secret: SecretStr = SecretStr("")

    # WebAuthn relying party. Empty rp_id means "derive from request origin".
    webauthn_rp_id: str = ""
    webauthn_rp_name: str = "Daily Tasks"

    @property
    def session_ttl(self) -> timedelta:
        """Absolute lifetime of a freshly issued session token."""
        return timedelta(days=self.session_ttl_days)

    @property
    def session_refresh_threshold(self) -> timedelta:
        """Remaining lifetime below which get_user() issues a new token."""
        return timedelta(days=self.session_refresh_threshold_days)

    @property
    def verification_token_ttl(self) -> timedelta:
        return timedelta(hours=self.verification_token_ttl_hours)

    @property
    def password_reset_token_ttl(self) -> timedelta:
        return timedelta(minutes=self.password_reset_token_ttl_minutes)

    @property
    def webauthn_challenge_ttl(self) -> timedelta:
        return timedelta(minutes=self.webauthn_challenge_ttl_minutes)

    @property
    def oauth_state_ttl(self) -> timedelta:
        return timedelta(minutes=self.oauth_state_ttl_minutes)

    @property
    def google_oauth_configured(self) -> bool:
        """True when both Google client id and secret are present."""
        return bool(
            self.google_client_id and self.google_client_secret.get_secret_value()
        )

    @model_validator(mode="after")
    def check_security(self) -> "Settings":
        """Validate security requirements.

        Checks:
        - AUTH_SECRET must be set (all environments)
        - AUTH_SECRET must be >= 32 chars in production
        - SameSite=None requires Secure flag (browser requirement)
        - APP_BASE_URL must be https in production
        - RESEND_API_KEY must be set in production
        - Session refresh threshold must be shorter than the session lifetime
        """
        secret_value = self.auth_secret.get_secret_value()
        if not secret_value:
            msg = (
                "AUTH_SECRET must be set. Generate with: "
                'python -c "import secrets; print(secrets.token_hex(32))"'
            )
            raise ValueError(msg)

        if self.auth_cookie_samesite == "none" and not self.auth_cookie_secure:
            msg = (
                "AUTH_COOKIE_SECURE must be true when AUTH_COOKIE_SAMESITE=none. "
                "Browsers reject SameSite=None cookies without the Secure flag."
            )
            raise ValueError(msg)

        if self.session_refresh_threshold_days >= self.session_ttl_days:
            msg = (
                "SESSION_REFRESH_THRESHOLD_DAYS must be smaller than "
                f"SESSION_TTL_DAYS. Got: {self.session_refresh_threshold_days} "
                f">= {self.session_ttl_days}"
            )
            raise ValueError(msg)

        if self.environment == "production":
            if len(secret_value) < _MIN_AUTH_SECRET_LENGTH:
                msg = (
                    f"AUTH_SECRET must be at least {_MIN_AUTH_SECRET_LENGTH} "
                    "characters for adequate security."
                )
                raise ValueError(msg)
            if not self.app_base_url.startswith("https://"):
                msg = "APP_BASE_URL must use https:// in production."
                raise ValueError(msg)
            if not self.resend_api_key.get_secret_value():
                msg = (
                    "RESEND_API_KEY must be set in production. "
                    "Verification and password-reset emails cannot be sent without it."
                )
                raise ValueError(msg)

        return self


def load_settings(**overrides: object) -> Settings:
    """Build and validate settings once at process start.

    Args:
        **overrides: Explicit values that take precedence over the environment.

    Returns:
        Validated Settings.

    Raises:
        AuthError: CONFIGURATION_ERROR if any setting is missing or invalid.
    """
    try:
        return Settings(**overrides)  # type: ignore[arg-type]
    except ValidationError as exc:
        messages = "; ".join(str(err.get("msg", "")) for err in exc.errors())
        raise AuthError(ErrorKind.CONFIGURATION_ERROR, detail=messages) from exc
