"""
Centralized configuration management using Pydantic Settings.

Configuration is loaded from environment variables with sensible defaults.
"""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ResolverConfig(BaseSettings):
    """Capability resolver configuration."""

    model_config = SettingsConfigDict(env_prefix="APPLIANCE_RESOLVER_")

    allow_unscoped: bool = Field(
        default=False,
        description="Offer operations that declare no ability namespace",
    )
    allow_extensions: bool = Field(
        default=False,
        description="Consider caller-supplied operations missing from the registry",
    )


class AggregatorConfig(BaseSettings):
    """Status aggregator configuration."""

    model_config = SettingsConfigDict(env_prefix="APPLIANCE_AGGREGATOR_")

    push_settle_seconds: float = Field(
        default=0.0,
        ge=0.0,
        le=5.0,
        description="Wait before reading the cache on push connections",
    )
    # Features the transport never pushes (power metering, sensor history)
    poll_only_features: list[str] = Field(
        default_factory=list,
        description="Feature keys always fetched, even on push connections",
    )


class Settings(BaseSettings):
    """Application-wide settings."""

    model_config = SettingsConfigDict(
        env_prefix="APPLIANCE_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # General
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    host: str = Field(default="127.0.0.1", description="Server bind address")
    port: int = Field(default=8090, description="Server port")

    # Startup behavior
    load_mock_devices: bool = Field(default=True, description="Register simulated devices on startup")

    # Nested configs
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    aggregator: AggregatorConfig = Field(default_factory=AggregatorConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize the level name and reject unknown ones."""
        level = v.upper()
        if not isinstance(getattr(logging, level, None), int):
            raise ValueError(f"Unknown log level: {v}")
        return level


# Singleton settings instance
settings = Settings()
