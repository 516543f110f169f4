"""
Enums used across the dev_portal_core package.

This module contains enum definitions that are used by multiple modules
to avoid circular import issues.
"""

import enum


class RecordStatus(str, enum.Enum):
    """Lifecycle state of principals and the credentials they own."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    DELETED = "deleted"


class TokenType(str, enum.Enum):
    """Discriminator claim carried by every session token."""

    ACCESS = "access"
    REFRESH = "refresh"


class AuthProvider(str, enum.Enum):
    """How a principal authenticates."""

    LOCAL = "local"
    GOOGLE = "google"


class CredentialEnvironment(str, enum.Enum):
    """Deployment target an API key or partner credential is scoped to."""

    SANDBOX = "sandbox"
    PRODUCTION = "production"


class CredentialKind(str, enum.Enum):
    """Kinds of machine credential subject to per-principal quotas."""

    API_KEY = "api_key"
    PARTNER_CREDENTIAL = "partner_credential"


class AuthMethod(str, enum.Enum):
    """Path through which the verification gateway authenticated a request."""

    BEARER_TOKEN = "bearer_token"
    CLIENT_CREDENTIALS = "client_credentials"
    API_KEY = "api_key"
