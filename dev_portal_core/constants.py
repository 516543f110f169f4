"""
Constants for the developer portal credential core.

This module centralizes all magic strings and constants used throughout
the package to ensure consistency and maintainability.
"""

from enum import Enum


class LogLevel(str, Enum):
    """Standard logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EnvironmentVariable(str, Enum):
    """Standard environment variable names."""

    AZURE_STORAGE_CONNECTION = "AzureWebJobsStorage"
    APP_ENV = "APP_ENV"
    LOG_LEVEL = "LOG_LEVEL"
    DEBUG = "DEBUG"
    JWT_SECRET = "JWT_SECRET"
    JWT_EXPIRY_HOURS = "JWT_EXPIRY_HOURS"
    JWT_ALGORITHM = "JWT_ALGORITHM"
    BCRYPT_ROUNDS = "BCRYPT_ROUNDS"
    API_KEY_LOOKUP_SECRET = "API_KEY_LOOKUP_SECRET"
    MAX_API_KEYS_PER_USER = "MAX_API_KEYS_PER_USER"
    MAX_PARTNER_CREDENTIALS_PER_USER = "MAX_PARTNER_CREDENTIALS_PER_USER"


class LogContextKey(str, Enum):
    """Standard keys for logging context."""

    OPERATION_ID = "operation_id"
    CORRELATION_ID = "correlation_id"
    PRINCIPAL_ID = "principal_id"
    DURATION_MS = "duration_ms"
    STATUS = "status"
    ERROR_CODE = "error_code"
    SOURCE_MODULE = "source_module"


class HeaderName(str, Enum):
    """Request headers the verification gateway reads."""

    AUTHORIZATION = "Authorization"
    API_KEY = "X-API-Key"
    CLIENT_ID = "X-Client-Id"
    CLIENT_SECRET = "X-Client-Secret"


# Secret formats
class SecretFormat:
    """Namespaces and sizes of every secret the core hands out."""

    API_KEY_NAMESPACE = "bas_"
    API_KEY_BYTES = 32
    API_KEY_PREFIX_HEX_CHARS = 8

    CLIENT_ID_BRAND = "BAS"
    CLIENT_ID_BYTES = 16
    CLIENT_ID_LENGTH = 32

    CLIENT_SECRET_BYTES = 32
    CLIENT_SECRET_PREFIX_CHARS = 8

    CHANNEL_ID_PREFIX = "CH"
    CHANNEL_ID_BYTES = 8

    ELLIPSIS = "..."


class Limits:
    """System limits and thresholds."""

    MAX_API_KEYS_PER_USER = 10
    MAX_PARTNER_CREDENTIALS_PER_USER = 5
    DEFAULT_JWT_EXPIRY_HOURS = 24
    REFRESH_TOKEN_LIFETIME_MULTIPLIER = 7
    DEFAULT_BCRYPT_ROUNDS = 12
    BCRYPT_MAX_PASSWORD_BYTES = 72
    MIN_PASSWORD_LENGTH = 8
    FINGERPRINT_DISPLAY_BYTES = 8
    PUBLIC_KEY_MASK_THRESHOLD = 100
    PUBLIC_KEY_MASK_EDGE = 20
