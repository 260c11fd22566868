"""Application settings loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Deployment
    ENVIRONMENT: Literal["development", "test", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Master key for the confidentiality service (base64 of 32 bytes)
    ENCRYPTION_KEY: SecretStr | None = None

    # Secret codec
    secret_chunk_width: int = Field(default=76, gt=0)
    """Column at which chunked base64 output is wrapped."""


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
