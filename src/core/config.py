"""Application configuration management.

This module provides configuration management using Pydantic settings
with environment variable support.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    All settings can be overridden using environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = Field(default="Same-Origin Relay", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment (development, staging, production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server settings
    host: str = Field(default="0.0.0.0", description="Host to bind to")
    port: int = Field(default=8000, description="Port to bind to")
    workers: int = Field(default=4, description="Number of worker processes")
    reload: bool = Field(default=False, description="Enable auto-reload")

    # Relay settings
    relay_path: str = Field(default="/proxy", description="Path of the relay endpoint")
    relay_initial_buffer_size: int = Field(
        default=32 * 1024,
        description="Initial capacity in bytes of the response body buffer"
    )
    relay_timeout: Optional[float] = Field(
        default=100.0,
        description="Outbound request timeout in seconds (unset disables it)"
    )
    relay_follow_redirects: bool = Field(default=True, description="Follow outbound redirects")
    relay_verify_ssl: bool = Field(default=True, description="Verify outbound TLS certificates")

    # Logging settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format (json or text)")
    log_file: Optional[str] = Field(default=None, description="Log file path")
    log_max_size: str = Field(default="10MB", description="Maximum log file size")
    log_backup_count: int = Field(default=5, description="Number of backup log files")

    # Monitoring settings
    metrics_enabled: bool = Field(default=True, description="Enable Prometheus metrics")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value."""
        allowed = ["development", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Validate log format."""
        allowed = ["json", "text"]
        if v not in allowed:
            raise ValueError(f"Log format must be one of {allowed}")
        return v

    @field_validator("relay_path")
    @classmethod
    def validate_relay_path(cls, v):
        """Relay path must be absolute and must not end with a slash."""
        if not v.startswith("/") or v == "/":
            raise ValueError("Relay path must start with '/' and name a route")
        return v.rstrip("/")

    @field_validator("relay_initial_buffer_size")
    @classmethod
    def validate_buffer_size(cls, v):
        if v < 1:
            raise ValueError("Initial buffer size must be positive")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
