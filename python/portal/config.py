"""Application settings loaded from environment variables.

Environment Configuration:
    PORTAL_ENV: Deployment environment (local | test | staging | prod)
    SUPABASE_URL: Supabase project URL (required)
    SUPABASE_ANON_KEY: Public anon key used by the portal client (required in staging/prod)
    SUPABASE_SERVICE_ROLE_KEY: Admin key, only read by the existence-check service

Storage Configuration:
    STORAGE_BUCKET: Bucket holding uploaded documents
    MAX_UPLOAD_BYTES: Largest accepted document upload
    SIGNED_URL_EXPIRY_S: Validity window of document view links

Session Configuration:
    PERSIST_SESSION: Keep the auth session across restarts (off by default)
    SESSION_FILE: Where the session is written when persistence is on
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class Settings(BaseSettings):
    """Application configuration.

    Settings are loaded from environment variables.
    Validation rules:
    - SUPABASE_URL is always required
    - SUPABASE_ANON_KEY is required in staging and prod
    """

    portal_env: Environment = Field(default=Environment.LOCAL, alias="PORTAL_ENV")

    # Supabase project settings
    supabase_url: str | None = Field(default=None, alias="SUPABASE_URL")
    supabase_anon_key: str | None = Field(default=None, alias="SUPABASE_ANON_KEY")
    supabase_service_role_key: str | None = Field(
        default=None, alias="SUPABASE_SERVICE_ROLE_KEY"
    )

    # Storage settings
    storage_bucket: str = Field(default="documents", alias="STORAGE_BUCKET")
    max_upload_bytes: int = Field(default=50 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")  # 50 MiB
    signed_url_expiry_s: int = Field(default=3600, alias="SIGNED_URL_EXPIRY_S")  # 1 hour

    # Transport
    http_timeout_s: float = Field(default=30.0, alias="HTTP_TIMEOUT_S")

    # Session persistence
    persist_session: bool = Field(default=False, alias="PERSIST_SESSION")
    session_file: str = Field(default=".portal-session.json", alias="SESSION_FILE")

    # Existence-check service
    cors_allow_origins: str = Field(default="*", alias="CORS_ALLOW_ORIGINS")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def validate_required_settings(self) -> "Settings":
        """Ensure required settings are set for the current environment."""
        if not self.supabase_url:
            raise ValueError(
                "Missing required Supabase settings: SUPABASE_URL. "
                "Point it at your Supabase project (or a local `supabase start`)."
            )

        if self.portal_env in (Environment.STAGING, Environment.PROD):
            if not self.supabase_anon_key:
                raise ValueError(
                    f"SUPABASE_ANON_KEY is required for PORTAL_ENV={self.portal_env.value}"
                )

        if self.max_upload_bytes < 1:
            raise ValueError("MAX_UPLOAD_BYTES must be >= 1")

        return self

    @property
    def base_url(self) -> str:
        """Return the project URL with trailing slash stripped."""
        return (self.supabase_url or "").rstrip("/")

    @property
    def functions_url(self) -> str:
        """Base URL of deployed edge functions."""
        return f"{self.base_url}/functions/v1"

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If required settings are missing or invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
