"""Configuration settings for the ContaFlix client state layer."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class FlatSettings(BaseSettings):
    """Flat settings read from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = Field(
        default="development", validation_alias="CONTAFLIX_ENV"
    )

    # Hosted backend
    backend_url: str = Field(
        default="http://localhost:54321", validation_alias="CONTAFLIX_BACKEND_URL"
    )
    backend_anon_key: SecretStr = Field(
        default=SecretStr(""), validation_alias="CONTAFLIX_BACKEND_ANON_KEY"
    )
    backend_timeout: float = Field(default=30.0, validation_alias="CONTAFLIX_BACKEND_TIMEOUT")

    # Local persistence
    secure_storage_key: SecretStr = Field(
        default=SecretStr("contaflix_secure_key_v1"),
        validation_alias="CONTAFLIX_SECURE_STORAGE_KEY",
    )
    secure_storage_prefix: str = Field(
        default="sec_", validation_alias="CONTAFLIX_SECURE_STORAGE_PREFIX"
    )
    storage_dir: Path = Field(
        default=Path.home() / ".contaflix", validation_alias="CONTAFLIX_STORAGE_DIR"
    )

    # Onboarding / alerts
    onboarding_ttl_hours: float = Field(
        default=24.0, validation_alias="CONTAFLIX_ONBOARDING_TTL_HOURS"
    )
    notification_buffer_size: int = Field(
        default=100, validation_alias="CONTAFLIX_NOTIFICATION_BUFFER_SIZE"
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", validation_alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", validation_alias="LOG_FORMAT"
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> FlatSettings:
    """Get cached settings instance."""
    return FlatSettings()
