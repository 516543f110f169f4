"""
Credential verification gateway.

Incoming requests may present one of three kinds of credential: a bearer
session token, a partner client ID / secret pair, or an API key. Each kind is
handled by a ``CredentialResolver`` strategy; the gateway hands the presented
credentials to the first resolver that supports them and returns the
authenticated principal.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Generator, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from ..constants import HeaderName
from ..context.principal_context import principal_context
from ..enums import AuthMethod, TokenType
from ..exceptions import AuthenticationError, InvalidTokenError
from ..schemas.token_schemas import AuthenticatedPrincipal
from ..utils.logger import get_logger
from .api_key_service import APIKeyService
from .partner_credential_service import PartnerCredentialService
from .token_service import TokenService

BEARER_SCHEME = "bearer"


class CredentialPresentation(BaseModel):
    """Credentials as presented by a caller, before any verification."""

    model_config = ConfigDict(frozen=True)

    authorization: Optional[str] = None
    api_key: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "CredentialPresentation":
        """Pick credential headers out of a request header mapping (names are case-insensitive)."""
        lowered = {name.lower(): value for name, value in headers.items()}
        return cls(
            authorization=lowered.get(HeaderName.AUTHORIZATION.value.lower()),
            api_key=lowered.get(HeaderName.API_KEY.value.lower()),
            client_id=lowered.get(HeaderName.CLIENT_ID.value.lower()),
            client_secret=lowered.get(HeaderName.CLIENT_SECRET.value.lower()),
        )


class CredentialResolver(ABC):
    """Strategy that turns one kind of presented credential into a principal."""

    method: AuthMethod

    @abstractmethod
    def supports(self, presented: CredentialPresentation) -> bool:
        """Whether the presented credentials are of the kind this resolver handles."""

    @abstractmethod
    def resolve(self, presented: CredentialPresentation) -> AuthenticatedPrincipal:
        """
        Verify the presented credentials.

        Raises:
            AuthenticationError (or a not-found error) when verification fails
        """


class BearerTokenResolver(CredentialResolver):
    """``Authorization: Bearer <access token>``."""

    method = AuthMethod.BEARER_TOKEN

    def __init__(self, token_service: TokenService):
        self.token_service = token_service

    def supports(self, presented: CredentialPresentation) -> bool:
        return presented.authorization is not None

    def resolve(self, presented: CredentialPresentation) -> AuthenticatedPrincipal:
        if not presented.authorization:
            raise AuthenticationError(reason="missing_header")

        parts = presented.authorization.split(" ")
        if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME or not parts[1]:
            raise AuthenticationError(reason="malformed_header")

        try:
            claims = self.token_service.verify(parts[1], TokenType.ACCESS)
        except InvalidTokenError as e:
            raise AuthenticationError(reason=e.reason, cause=e) from e

        return AuthenticatedPrincipal(
            principal_id=claims.sub, method=self.method, email=claims.email
        )


class ClientCredentialResolver(CredentialResolver):
    """Partner client ID and secret headers."""

    method = AuthMethod.CLIENT_CREDENTIALS

    def __init__(self, partner_service: PartnerCredentialService):
        self.partner_service = partner_service

    def supports(self, presented: CredentialPresentation) -> bool:
        return presented.client_id is not None or presented.client_secret is not None

    def resolve(self, presented: CredentialPresentation) -> AuthenticatedPrincipal:
        credential = self.partner_service.validate_credential(
            presented.client_id or "", presented.client_secret or ""
        )
        return AuthenticatedPrincipal(
            principal_id=credential.user_id, method=self.method, credential_id=credential.id
        )


class APIKeyResolver(CredentialResolver):
    """``X-API-Key`` header."""

    method = AuthMethod.API_KEY

    def __init__(self, api_key_service: APIKeyService):
        self.api_key_service = api_key_service

    def supports(self, presented: CredentialPresentation) -> bool:
        return presented.api_key is not None

    def resolve(self, presented: CredentialPresentation) -> AuthenticatedPrincipal:
        key = self.api_key_service.validate_key(presented.api_key or "")
        return AuthenticatedPrincipal(
            principal_id=key.user_id, method=self.method, credential_id=key.id
        )


class CredentialVerificationGateway:
    """
    Single entry point for authenticating a request.

    Resolvers are tried in order; the first that supports the presented
    credentials decides the outcome. Presenting nothing recognisable is an
    AuthenticationError.
    """

    def __init__(self, resolvers: List[CredentialResolver]):
        self.resolvers = list(resolvers)
        self.logger = get_logger()

    def authenticate(self, presented: CredentialPresentation) -> AuthenticatedPrincipal:
        for resolver in self.resolvers:
            if resolver.supports(presented):
                principal = resolver.resolve(presented)
                self.logger.debug(
                    "Request authenticated",
                    extra={
                        "principal_id": principal.principal_id,
                        "auth_method": principal.method.value,
                    },
                )
                return principal

        raise AuthenticationError(reason="no_credentials")

    def authenticate_headers(self, headers: Mapping[str, str]) -> AuthenticatedPrincipal:
        return self.authenticate(CredentialPresentation.from_headers(headers))

    @contextmanager
    def authenticated(
        self, presented: CredentialPresentation
    ) -> Generator[AuthenticatedPrincipal, None, None]:
        """
        Authenticate and bind the principal to the current thread for the block.

        Usage:
            with gateway.authenticated(presented) as principal:
                ...  # log records carry principal.principal_id
        """
        principal = self.authenticate(presented)
        with principal_context(principal.principal_id):
            yield principal
