"""
Shared configuration management for the External User Service.
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BASE_URL = "https://reqres.in/api/"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local", validation_alias=AliasChoices("env", "USERS_ENV"))
    log_level: str = Field(default="info", validation_alias=AliasChoices("log_level", "USERS_LOG_LEVEL"))
    service_name: str = Field(default="service-users", validation_alias=AliasChoices("service_name", "USERS_SERVICE_NAME"))


class ExternalApiSettings(BaseConfig):
    """Settings for the remote user API and the local response cache."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="EXTERNAL_API_",
        case_sensitive=False,
        extra="ignore"
    )

    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: int = Field(default=30, gt=0)
    max_retry_attempts: int = Field(default=3, ge=0)
    retry_base_delay_seconds: float = Field(default=1.0, ge=0.0)
    cache_expiration_minutes: int = Field(default=10, ge=0)

    # reqres.in hands out keys; only sent when configured
    api_key: Optional[str] = None

    @property
    def cache_ttl_seconds(self) -> float:
        """Cache TTL expressed in seconds."""
        return self.cache_expiration_minutes * 60.0


def get_settings(**overrides) -> ExternalApiSettings:
    """Load settings from the environment, applying explicit overrides."""
    return ExternalApiSettings(**overrides)
