"""
Centralized configuration management for the developer portal credential core.

This module provides a unified configuration system with support for:
- Environment variables
- Feature flags
- Token signing and hashing settings
- Validation using Pydantic
"""

import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from .constants import EnvironmentVariable, Limits, LogLevel

HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")


def _env_int(variable: EnvironmentVariable, default: int) -> int:
    return int(os.getenv(variable.value, str(default)))


class QueueConfig(BaseModel):
    """Queue configuration for shipping structured logs to Azure Storage Queues."""

    connection_string: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.AZURE_STORAGE_CONNECTION.value, ""),
        description="Azure Storage connection string",
    )
    logs_queue_name: str = Field(default="logs-queue", description="Logs queue name")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.LOG_LEVEL.value, LogLevel.INFO.value),
        description="Logging level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string",
    )

    @field_validator("level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {level.value for level in LogLevel}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class TokenConfig(BaseModel):
    """Session token signing configuration."""

    secret: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.JWT_SECRET.value, "default-secret-change-me"
        ),
        description="Shared HMAC signing secret for access and refresh tokens",
    )
    expiry_hours: int = Field(
        default_factory=lambda: _env_int(
            EnvironmentVariable.JWT_EXPIRY_HOURS, Limits.DEFAULT_JWT_EXPIRY_HOURS
        ),
        gt=0,
        description="Access token lifetime in hours",
    )
    algorithm: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.JWT_ALGORITHM.value, "HS256"),
        description="HMAC signing algorithm",
    )
    refresh_multiplier: int = Field(
        default=Limits.REFRESH_TOKEN_LIFETIME_MULTIPLIER,
        gt=0,
        description="Refresh token lifetime as a multiple of the access token lifetime",
    )

    @field_validator("algorithm")
    def validate_algorithm(cls, v: str) -> str:
        """Only symmetric HMAC algorithms may sign session tokens."""
        if v.upper() not in HMAC_ALGORITHMS:
            raise ValueError(f"Invalid token algorithm: {v}. Must be one of {HMAC_ALGORITHMS}")
        return v.upper()


class SecurityConfig(BaseModel):
    """Hashing and quota configuration."""

    bcrypt_rounds: int = Field(
        default_factory=lambda: _env_int(
            EnvironmentVariable.BCRYPT_ROUNDS, Limits.DEFAULT_BCRYPT_ROUNDS
        ),
        ge=4,
        le=31,
        description="bcrypt work factor for passwords and API keys",
    )
    api_key_lookup_secret: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.API_KEY_LOOKUP_SECRET.value, "default-lookup-secret-change-me"
        ),
        description="Key for the indexed API key lookup hash",
    )
    max_api_keys_per_user: int = Field(
        default_factory=lambda: _env_int(
            EnvironmentVariable.MAX_API_KEYS_PER_USER, Limits.MAX_API_KEYS_PER_USER
        ),
        gt=0,
        description="Maximum simultaneously active API keys per principal",
    )
    max_partner_credentials_per_user: int = Field(
        default_factory=lambda: _env_int(
            EnvironmentVariable.MAX_PARTNER_CREDENTIALS_PER_USER,
            Limits.MAX_PARTNER_CREDENTIALS_PER_USER,
        ),
        gt=0,
        description="Maximum simultaneously active partner credentials per principal",
    )


class FeatureFlags(BaseModel):
    """Feature flags for controlling framework behavior."""

    enable_logs_queue: bool = Field(
        default=False, description="Ship structured logs to an Azure Storage Queue"
    )
    enable_operation_context: bool = Field(
        default=True, description="Enable operation context tracking"
    )


class AppConfig(BaseModel):
    """Main application configuration."""

    environment: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.APP_ENV.value, "development"),
        description="Application environment",
    )
    debug: bool = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.DEBUG.value, "false").lower()
        == "true",
        description="Debug mode",
    )

    # Sub-configurations
    queue: QueueConfig = Field(default_factory=QueueConfig, description="Queue configuration")
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    tokens: TokenConfig = Field(default_factory=TokenConfig, description="Token configuration")
    security: SecurityConfig = Field(
        default_factory=SecurityConfig, description="Security configuration"
    )
    features: FeatureFlags = Field(default_factory=FeatureFlags, description="Feature flags")

    # Custom configuration
    custom: Dict[str, Any] = Field(default_factory=dict, description="Custom configuration values")

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create configuration from environment variables."""
        return cls()

    def get_custom(self, key: str, default: Any = None) -> Any:
        """Get a custom configuration value."""
        return self.custom.get(key, default)

    def set_custom(self, key: str, value: Any) -> None:
        """Set a custom configuration value."""
        self.custom[key] = value


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def set_config(config: AppConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None
