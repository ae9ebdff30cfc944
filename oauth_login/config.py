from typing import Optional
from urllib.parse import urlparse

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ALLOWED_JWT_ALGORITHMS = {"HS256", "HS384", "HS512"}
_ALLOWED_SAMESITE = {"lax", "strict", "none"}
_ALLOWED_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class Settings(BaseSettings):
    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # Persistence
    database_url: str = "sqlite:///./oauth_login.db"
    database_echo: bool = False

    # Session signing
    secret_key: str = "replace-this-in-production"
    algorithm: str = "HS256"
    token_issuer: str = "oauth-login"

    # Session cookie
    session_cookie_name: str = "session_id"
    session_cookie_domain: Optional[str] = None
    session_cookie_secure: bool = True
    session_cookie_samesite: str = "none"
    session_expire_hours: int = 24

    # OAuth state cookie
    oauth_state_cookie_name: str = "oauth_state"
    oauth_state_expire_seconds: int = 300

    # GitHub provider
    github_client_id: Optional[str] = None
    github_client_secret: Optional[str] = None
    github_redirect_url: Optional[str] = None
    github_authorize_url: str = "https://github.com/login/oauth/authorize"
    github_token_url: str = "https://github.com/login/oauth/access_token"
    github_api_url: str = "https://api.github.com"
    provider_timeout_seconds: float = 10.0

    # Where the browser lands after a successful login
    client_app_url: str = "http://localhost:5173"

    # Observability
    metrics_enabled: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in _ALLOWED_LOG_LEVELS:
            allowed = ", ".join(sorted(_ALLOWED_LOG_LEVELS))
            raise ValueError(f"LOG_LEVEL must be one of: {allowed}")
        return normalized

    @field_validator("algorithm")
    @classmethod
    def validate_algorithm(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in _ALLOWED_JWT_ALGORITHMS:
            allowed = ", ".join(sorted(_ALLOWED_JWT_ALGORITHMS))
            raise ValueError(f"ALGORITHM must be one of: {allowed}")
        return normalized

    @field_validator("session_cookie_samesite")
    @classmethod
    def validate_session_cookie_samesite(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in _ALLOWED_SAMESITE:
            allowed = ", ".join(sorted(_ALLOWED_SAMESITE))
            raise ValueError(f"SESSION_COOKIE_SAMESITE must be one of: {allowed}")
        return normalized

    @field_validator("client_app_url")
    @classmethod
    def validate_client_app_url(cls, value: str) -> str:
        if not value:
            return "/"
        parsed = urlparse(value)
        if parsed.fragment:
            raise ValueError("CLIENT_APP_URL must not include a fragment")
        if parsed.scheme or parsed.netloc:
            if parsed.scheme not in {"http", "https"} or not parsed.netloc:
                raise ValueError("CLIENT_APP_URL absolute URLs must use http/https")
            return value
        if not value.startswith("/"):
            raise ValueError("CLIENT_APP_URL must be an absolute path or absolute URL")
        return value

    @field_validator("session_expire_hours", "oauth_state_expire_seconds")
    @classmethod
    def validate_positive_lifetime(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("cookie lifetimes must be positive")
        return value

    @model_validator(mode="after")
    def validate_cookie_flags(self) -> "Settings":
        if self.session_cookie_samesite == "none" and not self.session_cookie_secure:
            raise ValueError(
                "SESSION_COOKIE_SAMESITE=none requires SESSION_COOKIE_SECURE=true"
            )
        return self

    @model_validator(mode="after")
    def validate_production_secret(self) -> "Settings":
        if self.environment.lower() in {"prod", "production"}:
            insecure_secrets = {
                "",
                "replace-this-in-production",
                "test-secret-key",
                "changeme",
            }
            if self.secret_key in insecure_secrets or len(self.secret_key) < 32:
                raise ValueError(
                    "SECRET_KEY must be a high-entropy value (>=32 chars) in production"
                )
        return self
