"""
Service for issuing, listing, revoking and validating API keys.

A full key is returned exactly once, at creation. At rest only its bcrypt hash
and a keyed lookup hash are kept: the lookup hash finds the candidate row by
unique index and the bcrypt hash confirms it.
"""

from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from ..constants import SecretFormat
from ..context.operation_context import operation
from ..db.db_api_key_models import APIKey
from ..db.db_base import is_expired
from ..db.db_user_models import User
from ..enums import CredentialKind, RecordStatus
from ..exceptions import APIKeyNotFoundError
from ..schemas.api_key_schemas import APIKeyCreate, APIKeyCreated, APIKeyRead, ValidatedAPIKey
from ..utils.crud_helpers import create_record, get_record, get_record_by_id, list_records
from ..utils.hash_utils import dummy_hash, hash_secret, lookup_hash, verify_secret
from ..utils.secret_utils import generate_api_key
from .base_service import SessionManagedService
from .credential_policy import CredentialQuotaPolicy

API_KEY_LENGTH = len(SecretFormat.API_KEY_NAMESPACE) + SecretFormat.API_KEY_BYTES * 2


class APIKeyService(SessionManagedService):
    """
    Service for managing a principal's API keys.

    This service provides:
    - Quota-checked key issuance (full key shown once)
    - Listing of active keys, newest first
    - Owner-checked revocation
    - Validation of a presented key back to its owner
    """

    def __init__(
        self,
        session: Optional[Session] = None,
        quota_policy: Optional[CredentialQuotaPolicy] = None,
        bcrypt_rounds: Optional[int] = None,
    ):
        super().__init__(session=session)
        self.quota_policy = quota_policy or CredentialQuotaPolicy(self.session)
        self.bcrypt_rounds = bcrypt_rounds

    @operation()
    def create_key(
        self, user_id: str, data: Union[APIKeyCreate, Dict[str, Any]]
    ) -> APIKeyCreated:
        """
        Issue a new API key.

        Raises:
            ValidationError: If name or environment are invalid
            QuotaExceededError: If the principal already holds the maximum of active keys
            SecretGenerationError: If the key cannot be generated or hashed
        """
        key_data = self._validate_input(APIKeyCreate, data)
        self.quota_policy.ensure_capacity(CredentialKind.API_KEY, user_id)

        generated = generate_api_key()
        api_key = create_record(
            self.session,
            APIKey,
            {
                "user_id": user_id,
                "name": key_data.name,
                "key_prefix": generated.prefix,
                "key_hash": hash_secret(
                    generated.full_key, rounds=self.bcrypt_rounds, field="api_key"
                ),
                "lookup_hash": lookup_hash(generated.full_key),
                "environment": key_data.environment,
                "expires_at": key_data.expires_at,
                "status": RecordStatus.ACTIVE,
            },
        )

        self.logger.info(
            "API key issued",
            extra={"user_id": user_id, "key_id": api_key.id, "key_prefix": api_key.key_prefix},
        )
        return APIKeyCreated(
            **APIKeyRead.model_validate(api_key).model_dump(), key=generated.full_key
        )

    @operation()
    def list_keys(self, user_id: str) -> List[APIKeyRead]:
        """Active keys of a principal, newest first."""
        keys = list_records(
            self.session, APIKey, {"status": RecordStatus.ACTIVE}, owner_id=user_id
        )
        return [APIKeyRead.model_validate(key) for key in keys]

    @operation()
    def revoke_key(self, key_id: str, user_id: str) -> None:
        """
        Revoke a key. The row is kept with status ``inactive``.

        Raises:
            APIKeyNotFoundError: If the key does not exist, is deleted, or belongs to someone else
        """
        key = get_record_by_id(
            self.session, APIKey, key_id, owner_id=user_id, exclude_status=[RecordStatus.DELETED]
        )
        if key is None:
            raise APIKeyNotFoundError(key_id=key_id)

        self.quota_policy.retire(CredentialKind.API_KEY, key.id, user_id, RecordStatus.INACTIVE)

    @operation()
    def validate_key(self, presented_key: str) -> ValidatedAPIKey:
        """
        Resolve a presented API key to its owner.

        Every failure (malformed, unknown, revoked, expired, hash mismatch,
        owner gone) raises the same APIKeyNotFoundError. ``last_used_at`` is
        updated best-effort on success.
        """
        if (
            not presented_key
            or len(presented_key) != API_KEY_LENGTH
            or not presented_key.startswith(SecretFormat.API_KEY_NAMESPACE)
        ):
            raise APIKeyNotFoundError(reason="malformed")

        key = get_record(
            self.session,
            APIKey,
            {"lookup_hash": lookup_hash(presented_key), "status": RecordStatus.ACTIVE},
        )
        if key is None:
            verify_secret(presented_key, dummy_hash(self.bcrypt_rounds))
            raise APIKeyNotFoundError(reason="unknown")

        if not verify_secret(presented_key, key.key_hash):
            raise APIKeyNotFoundError(reason="hash_mismatch")

        if is_expired(key.expires_at):
            raise APIKeyNotFoundError(reason="expired")

        owner = get_record_by_id(self.session, User, key.user_id)
        if owner is None or owner.status != RecordStatus.ACTIVE:
            raise APIKeyNotFoundError(reason="owner_inactive")

        result = ValidatedAPIKey.model_validate(key)
        self._record_last_used(key)
        return result
