"""Application settings for the tender analysis agent."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="LICITA_",
        env_file=None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Core application settings
    app_env: Literal["development", "staging", "production", "test"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False

    # CORS - use string to avoid JSON parsing issues
    cors_origins_str: str = Field(
        default="http://localhost:3000,https://localhost:3000",
        validation_alias=AliasChoices("LICITA_CORS_ORIGINS", "cors_origins"),
    )

    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from string."""
        if not self.cors_origins_str.strip():
            return ["http://localhost:3000", "https://localhost:3000"]
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    # Error reporting
    slack_error_webhook: str | None = None

    # LLM providers. The unprefixed names are the ones the deployment
    # environment already exports, so both spellings are accepted.
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("LICITA_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    openai_model: str = Field(
        default="gpt-4o",
        validation_alias=AliasChoices("LICITA_OPENAI_MODEL", "OPENAI_MODEL"),
    )
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("LICITA_GEMINI_API_KEY", "GEMINI_API_KEY"),
    )
    gemini_model: str = Field(
        default="gemini-2.5-flash",
        validation_alias=AliasChoices("LICITA_GEMINI_MODEL", "GEMINI_MODEL"),
    )
    preferred_llm_provider: Literal["openai", "gemini"] = Field(
        default="openai",
        validation_alias=AliasChoices("LICITA_PREFERRED_LLM_PROVIDER", "PREFERRED_LLM_PROVIDER"),
    )

    # Timeouts for provider calls
    request_timeout_seconds: float = Field(default=30.0, ge=1.0, le=120.0)
    health_timeout_seconds: float = Field(default=10.0, ge=1.0, le=60.0)

    @field_validator("preferred_llm_provider", mode="before")
    @classmethod
    def normalize_provider(cls, v):
        """Accept any casing for the preferred provider name."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("openai_api_key", "gemini_api_key", "slack_error_webhook", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Treat empty environment values as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
