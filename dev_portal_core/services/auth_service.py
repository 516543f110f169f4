"""
Account registration, sign-in and session renewal.

Passwords are hashed with bcrypt; sessions are the access/refresh pairs
minted by TokenService. Login failures are uniform: an unknown email, a wrong
password and a federated-only account without a password all raise the same
InvalidCredentialsError after comparable bcrypt work.
"""

from typing import Any, Dict, Optional, Union

from sqlalchemy.orm import Session

from ..config import get_config
from ..context.operation_context import operation
from ..db.db_user_models import User
from ..enums import AuthProvider, RecordStatus, TokenType
from ..exceptions import EmailExistsError, InvalidCredentialsError, UserNotFoundError
from ..schemas.token_schemas import AuthResponse
from ..schemas.user_schemas import FederatedIdentity, UserCreate, UserLogin, UserRead
from ..utils.crud_helpers import create_record, get_record, get_record_by_id, update_record
from ..utils.hash_utils import dummy_hash, hash_secret, verify_secret
from .base_service import SessionManagedService
from .token_service import TokenService


class AuthService(SessionManagedService):
    """Registers principals and exchanges credentials for session tokens."""

    def __init__(
        self,
        session: Optional[Session] = None,
        token_service: Optional[TokenService] = None,
        bcrypt_rounds: Optional[int] = None,
    ):
        super().__init__(session=session)
        self.token_service = token_service or TokenService.from_config()
        self.bcrypt_rounds = bcrypt_rounds or get_config().security.bcrypt_rounds

    def _auth_response(self, user: User) -> AuthResponse:
        pair = self.token_service.issue_pair(user.id, user.email)
        return AuthResponse(**pair.model_dump(), user=UserRead.model_validate(user))

    @operation()
    def register(self, data: Union[UserCreate, Dict[str, Any]]) -> AuthResponse:
        """
        Create a local account and sign it in.

        Raises:
            ValidationError: If the input is invalid
            EmailExistsError: If any account, including a deleted one, holds the email
        """
        user_data = self._validate_input(UserCreate, data)

        if get_record(self.session, User, {"email": user_data.email}):
            raise EmailExistsError()

        user = create_record(
            self.session,
            User,
            {
                "email": user_data.email,
                "password_hash": hash_secret(user_data.password, rounds=self.bcrypt_rounds),
                "full_name": user_data.full_name,
                "provider": AuthProvider.LOCAL,
                "is_verified": False,
                "status": RecordStatus.ACTIVE,
            },
        )
        self.logger.info("Registered account", extra={"user_id": user.id})
        return self._auth_response(user)

    @operation()
    def login(self, data: Union[UserLogin, Dict[str, Any]]) -> AuthResponse:
        """
        Sign in with email and password.

        Raises:
            InvalidCredentialsError: For an unknown email, wrong password or password-less account
        """
        credentials = self._validate_input(UserLogin, data)

        user = get_record(
            self.session, User, {"email": credentials.email, "status": RecordStatus.ACTIVE}
        )

        if user is None or not user.password_hash:
            # Burn the same bcrypt work as a real comparison
            verify_secret(credentials.password, dummy_hash(self.bcrypt_rounds))
            raise InvalidCredentialsError(reason="unknown_account")

        if not verify_secret(credentials.password, user.password_hash):
            raise InvalidCredentialsError(reason="password_mismatch", user_id=user.id)

        self.logger.info("Account signed in", extra={"user_id": user.id})
        return self._auth_response(user)

    @operation()
    def federated_login(self, data: Union[FederatedIdentity, Dict[str, Any]]) -> AuthResponse:
        """
        Sign in with an identity asserted by an external provider.

        Looks the account up by provider ID first, then links the provider to
        an existing account with the same email, and otherwise creates a new
        verified account. The provider's own redirect flow happens elsewhere.
        """
        identity = self._validate_input(FederatedIdentity, data)

        user = get_record(
            self.session,
            User,
            {
                "provider": identity.provider,
                "provider_id": identity.provider_id,
                "status": RecordStatus.ACTIVE,
            },
        )
        if user is not None:
            return self._auth_response(user)

        existing = get_record(self.session, User, {"email": identity.email})
        if existing is not None:
            if existing.status != RecordStatus.ACTIVE:
                raise InvalidCredentialsError(reason="account_not_active", user_id=existing.id)

            profile = {
                field: getattr(identity, field)
                for field in ("full_name", "first_name", "last_name", "profile_picture")
                if not getattr(existing, field)
            }
            user = update_record(
                self.session,
                User,
                existing.id,
                {"provider": identity.provider, "provider_id": identity.provider_id, **profile},
            )
            self.logger.info(
                "Linked federated identity",
                extra={"user_id": user.id, "provider": identity.provider.value},
            )
            return self._auth_response(user)

        user = create_record(
            self.session,
            User,
            {
                "email": identity.email,
                "full_name": identity.full_name,
                "first_name": identity.first_name,
                "last_name": identity.last_name,
                "profile_picture": identity.profile_picture,
                "provider": identity.provider,
                "provider_id": identity.provider_id,
                # Provider accounts arrive pre-verified
                "is_verified": True,
                "status": RecordStatus.ACTIVE,
            },
        )
        self.logger.info(
            "Created federated account",
            extra={"user_id": user.id, "provider": identity.provider.value},
        )
        return self._auth_response(user)

    @operation()
    def refresh_tokens(self, refresh_token: str) -> AuthResponse:
        """
        Exchange a refresh token for a brand-new access + refresh pair.

        The presented refresh token is not consumed; it stays valid until its
        own expiry.

        Raises:
            InvalidTokenError: If the token fails verification or is not a refresh token
            UserNotFoundError: If the subject no longer resolves to an active account
        """
        claims = self.token_service.verify(refresh_token, TokenType.REFRESH)

        user = get_record_by_id(self.session, User, claims.sub)
        if user is None or user.status != RecordStatus.ACTIVE:
            raise UserNotFoundError(user_id=claims.sub)

        return self._auth_response(user)
