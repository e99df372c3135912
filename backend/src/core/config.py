"""Application configuration using pydantic-settings."""
from functools import lru_cache
from urllib.parse import urlparse

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Supabase project - auth, storage and realtime are all delegated to it
    supabase_url: str = Field(default="", validation_alias="SUPABASE_URL")
    supabase_anon_key: str = Field(default="", validation_alias="SUPABASE_ANON_KEY")
    bookmarks_table: str = Field(default="bookmarks", validation_alias="BOOKMARKS_TABLE")
    bookmarks_schema: str = Field(default="public", validation_alias="BOOKMARKS_SCHEMA")

    # OAuth - the provider always sends the browser back to this fixed URL
    oauth_provider: str = Field(default="google", validation_alias="OAUTH_PROVIDER")
    oauth_redirect_url: str = Field(
        default="http://localhost:8000/auth/callback",
        validation_alias="OAUTH_REDIRECT_URL",
    )

    # Routing
    login_path: str = Field(default="/login", validation_alias="LOGIN_PATH")
    post_login_path: str = Field(default="/dashboard", validation_alias="POST_LOGIN_PATH")

    # Session cookies
    session_cookie_secure: bool = Field(default=False, validation_alias="SESSION_COOKIE_SECURE")
    session_cookie_max_age: int = Field(
        default=7 * 24 * 60 * 60,
        validation_alias="SESSION_COOKIE_MAX_AGE",
    )

    # Live updates - seconds between SSE keepalive comments
    events_keepalive_seconds: float = Field(
        default=15.0, validation_alias="EVENTS_KEEPALIVE_SECONDS",
    )

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:8000",
        validation_alias="CORS_ORIGINS",
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @model_validator(mode="after")
    def validate_supabase_url(self) -> "Settings":
        """
        Require HTTPS for a remote Supabase project.

        Session tokens travel with every backend call, so plain HTTP is only
        accepted for a locally running Supabase stack.
        """
        if not self.supabase_url:
            return self

        parsed = urlparse(self.supabase_url)
        hostname = (parsed.hostname or "").lower()
        local_hosts = {"localhost", "127.0.0.1", "0.0.0.0", "::1"}
        if parsed.scheme != "https" and hostname not in local_hosts:
            raise ValueError(
                f"SUPABASE_URL must use https for non-local hosts "
                f"(got '{self.supabase_url}').",
            )
        return self

    @property
    def backend_configured(self) -> bool:
        """Whether enough Supabase settings are present to reach the backend."""
        return bool(self.supabase_url and self.supabase_anon_key)

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
