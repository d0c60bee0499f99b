"""
Application Configuration
=========================

Centralized configuration using Pydantic Settings for type-safe environment variables.
All config is loaded from environment variables or .env file.

Environment Setup:
------------------
For local development, create a .env file in /backend with:
    POSTGRES_SERVER=localhost
    POSTGRES_USER=postgres
    POSTGRES_PASSWORD=yourpassword
    POSTGRES_DB=specforge
    OPENAI_API_KEY=sk-...

The OpenAI key is optional at startup. Without it every AI-dependent
operation is refused with a configuration error, and /health reports
the AI backend as unconfigured, but saved specs stay browsable.

Quota Settings:
---------------
    FREE_GENERATION_LIMIT=3   billable AI calls per cycle on the free plan
    QUOTA_CYCLE_DAYS=30       length of a usage cycle, rolled over lazily
    QUOTA_MODE=reserve        "reserve" (atomic check-and-increment before
                              the AI call) or "debit" (check, call, then
                              increment)
"""

from functools import lru_cache
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Pydantic Settings provides:
    - Automatic type coercion (str -> int, etc.)
    - Validation with clear error messages
    - .env file support
    - Case-insensitive matching
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_name: str = "Spec Forge"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"

    # -------------------------------------------------------------------------
    # PostgreSQL Document Store
    # -------------------------------------------------------------------------
    database_url_override: str | None = Field(None, alias="DATABASE_URL")

    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_server: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "specforge"

    @property
    def database_url(self) -> str:
        """
        Get async PostgreSQL connection URL.

        Priority:
        1. DATABASE_URL env var
        2. Constructed from individual POSTGRES_* vars

        Hosted providers hand out 'postgres://' or 'postgresql://' URLs;
        async SQLAlchemy needs 'postgresql+asyncpg://'.
        """
        if self.database_url_override:
            url = self.database_url_override
            if url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql+asyncpg://", 1)
            elif url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            return url
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_server}:{self.postgres_port}/{self.postgres_db}"

    # -------------------------------------------------------------------------
    # OpenAI API Configuration
    # -------------------------------------------------------------------------
    openai_api_key: str | None = Field(None, description="OpenAI API key")
    openai_model: str = "gpt-4o"
    openai_timeout_seconds: float = 300.0

    @property
    def ai_configured(self) -> bool:
        return bool(self.openai_api_key and self.openai_api_key.strip())

    # -------------------------------------------------------------------------
    # Usage Metering
    # -------------------------------------------------------------------------
    free_generation_limit: int = Field(3, ge=0)
    quota_cycle_days: int = Field(30, ge=1)
    quota_mode: Literal["reserve", "debit"] = "reserve"

    # -------------------------------------------------------------------------
    # Generation Input Bounds
    # -------------------------------------------------------------------------
    idea_min_chars: int = 20
    idea_max_chars: int = 10000

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------
    # The identity provider sits in front of this service and forwards the
    # signed-in user's stable id in this header.
    auth_header: str = "X-User-Id"
    auth_timeout_seconds: float = 15.0

    # -------------------------------------------------------------------------
    # API Configuration
    # -------------------------------------------------------------------------
    api_prefix: str = "/api"

    cors_origins_str: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        alias="CORS_ORIGINS"
    )

    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Usage: from specforge.config import settings
settings = get_settings()
