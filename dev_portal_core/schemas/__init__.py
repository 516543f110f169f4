"""Pydantic schemas for the credential core."""

from .api_key_schemas import APIKeyCreate, APIKeyCreated, APIKeyRead, ValidatedAPIKey
from .partner_credential_schemas import (
    PartnerCredentialCreate,
    PartnerCredentialCreated,
    PartnerCredentialDetail,
    PartnerCredentialRead,
    PartnerCredentialUpdate,
    PublicKeyUpdate,
    ValidatedPartnerCredential,
)
from .token_schemas import AuthenticatedPrincipal, AuthResponse, TokenClaims, TokenPair
from .user_schemas import FederatedIdentity, UserCreate, UserLogin, UserRead, UserUpdate

__all__ = [
    "APIKeyCreate",
    "APIKeyCreated",
    "APIKeyRead",
    "ValidatedAPIKey",
    "PartnerCredentialCreate",
    "PartnerCredentialCreated",
    "PartnerCredentialDetail",
    "PartnerCredentialRead",
    "PartnerCredentialUpdate",
    "PublicKeyUpdate",
    "ValidatedPartnerCredential",
    "AuthenticatedPrincipal",
    "AuthResponse",
    "TokenClaims",
    "TokenPair",
    "FederatedIdentity",
    "UserCreate",
    "UserLogin",
    "UserRead",
    "UserUpdate",
]
