"""Service layer for credential lifecycle and token issuance."""

from .api_key_service import APIKeyService
from .auth_service import AuthService
from .base_service import SessionManagedService
from .credential_policy import CredentialQuotaPolicy
from .partner_credential_service import PartnerCredentialService
from .token_service import TokenService
from .user_service import UserService
from .verification_gateway import (
    APIKeyResolver,
    BearerTokenResolver,
    ClientCredentialResolver,
    CredentialPresentation,
    CredentialResolver,
    CredentialVerificationGateway,
)

__all__ = [
    "APIKeyService",
    "AuthService",
    "SessionManagedService",
    "CredentialQuotaPolicy",
    "PartnerCredentialService",
    "TokenService",
    "UserService",
    "APIKeyResolver",
    "BearerTokenResolver",
    "ClientCredentialResolver",
    "CredentialPresentation",
    "CredentialResolver",
    "CredentialVerificationGateway",
]
