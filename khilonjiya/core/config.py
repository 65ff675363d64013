"""Application configuration with environment variable validation."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env relative to the project root (3 levels up from this file)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Supabase credentials are not fields here; see db.credentials.
    """

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Credential file consulted by the resolver
    env_file: Path = Field(default=_ENV_FILE, validation_alias="KHILONJIYA_ENV_FILE")

    # Backend initialization
    init_max_attempts: int = Field(default=3, ge=1, validation_alias="SUPABASE_INIT_MAX_ATTEMPTS")
    init_backoff_ms: int = Field(default=1000, ge=0, validation_alias="SUPABASE_INIT_BACKOFF_MS")
    connection_check_table: str = Field(
        default="user_profiles", validation_alias="SUPABASE_CONNECTION_CHECK_TABLE"
    )

    # Auth
    oauth_redirect_url: str = Field(
        default="com.khilonjiya.marketplace://login-callback",
        validation_alias="OAUTH_REDIRECT_URL",
    )
    auth_rate_limit: str = Field(default="10/minute", validation_alias="AUTH_RATE_LIMIT")

    # App
    debug: bool = Field(default=False, validation_alias="DEBUG")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    allowed_origins: list[str] = Field(
        default=["http://localhost:3000"],
        validation_alias="ALLOWED_ORIGINS",
    )

    @property
    def cors_origins(self) -> list[str]:
        """Parse ALLOWED_ORIGINS from comma-separated string or return list."""
        if isinstance(self.allowed_origins, str):
            return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
        return self.allowed_origins


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
