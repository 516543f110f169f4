"""
Service for partner client credentials (client ID + client secret pairs).

Partner credentials identify an integrating organisation rather than a
person. Each carries a generated client ID, a secret shown in full only at
creation or rotation, a channel ID, and optionally a PEM public key whose
SHA-256 fingerprint is stored alongside it.
"""

from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from ..context.operation_context import operation
from ..db.db_base import is_expired, utc_now
from ..db.db_partner_credential_models import PartnerCredential
from ..enums import CredentialEnvironment, CredentialKind, RecordStatus
from ..exceptions import CredentialNotFoundError
from ..schemas.partner_credential_schemas import (
    PartnerCredentialCreate,
    PartnerCredentialCreated,
    PartnerCredentialDetail,
    PartnerCredentialRead,
    PartnerCredentialUpdate,
    PublicKeyUpdate,
    ValidatedPartnerCredential,
)
from ..utils.crud_helpers import (
    create_record,
    get_record,
    get_record_by_id,
    list_records,
    update_record,
)
from ..utils.hash_utils import constant_time_equals
from ..utils.public_key_utils import validate_public_key
from ..utils.secret_utils import (
    generate_channel_id,
    generate_client_credentials,
    generate_client_secret,
    secret_prefix,
)
from .base_service import SessionManagedService
from .credential_policy import CredentialQuotaPolicy

# Compared against on a client ID miss so both outcomes do the same work
_UNKNOWN_CLIENT_SECRET = "0" * 64


class PartnerCredentialService(SessionManagedService):
    """
    Service for managing partner client credentials.

    This service provides:
    - Quota-checked issuance with generated client ID, secret and channel ID
    - Listing, detail and metadata updates scoped to the owning principal
    - Public key registration with fingerprinting
    - Secret rotation, deactivation and soft deletion
    - Validation of a presented client ID / secret pair
    """

    def __init__(
        self,
        session: Optional[Session] = None,
        quota_policy: Optional[CredentialQuotaPolicy] = None,
    ):
        super().__init__(session=session)
        self.quota_policy = quota_policy or CredentialQuotaPolicy(self.session)

    def _get_owned(self, credential_id: str, user_id: str) -> PartnerCredential:
        credential = get_record_by_id(
            self.session,
            PartnerCredential,
            credential_id,
            owner_id=user_id,
            exclude_status=[RecordStatus.DELETED],
        )
        if credential is None:
            raise CredentialNotFoundError(credential_id=credential_id)
        return credential

    @operation()
    def create_credential(
        self, user_id: str, data: Union[PartnerCredentialCreate, Dict[str, Any]]
    ) -> PartnerCredentialCreated:
        """
        Issue a new partner credential.

        Args:
            user_id: Owning principal
            data: Partner name, environment (default sandbox), callback URL,
                IP allow-list and optional PEM public key

        Returns:
            The stored credential plus the full client secret

        Raises:
            ValidationError: If the input is invalid
            InvalidPublicKeyError: If a public key is given but cannot be parsed
            QuotaExceededError: If the principal already holds the maximum of active credentials
        """
        credential_data = self._validate_input(PartnerCredentialCreate, data)
        self.quota_policy.ensure_capacity(CredentialKind.PARTNER_CREDENTIAL, user_id)

        fingerprint = validate_public_key(credential_data.public_key)
        generated = generate_client_credentials()

        credential = create_record(
            self.session,
            PartnerCredential,
            {
                "user_id": user_id,
                "client_id": generated.client_id,
                "client_secret": generated.client_secret,
                "client_secret_prefix": generated.secret_prefix,
                "public_key": credential_data.public_key or None,
                "public_key_fingerprint": fingerprint,
                "public_key_added_at": utc_now() if fingerprint else None,
                "partner_name": credential_data.partner_name,
                "channel_id": generate_channel_id(),
                "environment": credential_data.environment or CredentialEnvironment.SANDBOX,
                "callback_url": credential_data.callback_url,
                "ip_whitelist": credential_data.ip_whitelist,
                "status": RecordStatus.ACTIVE,
            },
        )

        self.logger.info(
            "Partner credential issued",
            extra={
                "user_id": user_id,
                "credential_id": credential.id,
                "client_id": credential.client_id,
            },
        )
        return PartnerCredentialCreated.model_validate(credential)

    @operation()
    def list_credentials(self, user_id: str) -> List[PartnerCredentialRead]:
        """All non-deleted credentials of a principal, newest first."""
        credentials = list_records(
            self.session,
            PartnerCredential,
            owner_id=user_id,
            exclude_status=[RecordStatus.DELETED],
        )
        return [PartnerCredentialRead.model_validate(c) for c in credentials]

    @operation()
    def get_credential(self, credential_id: str, user_id: str) -> PartnerCredentialDetail:
        return PartnerCredentialDetail.model_validate(self._get_owned(credential_id, user_id))

    @operation()
    def update_credential(
        self,
        credential_id: str,
        user_id: str,
        data: Union[PartnerCredentialUpdate, Dict[str, Any]],
    ) -> PartnerCredentialRead:
        """
        Update credential metadata.

        Partner name and environment are changed only when given. Callback
        URL and IP allow-list are always replaced; omitting them clears them.
        """
        update_data = self._validate_input(PartnerCredentialUpdate, data)
        self._get_owned(credential_id, user_id)

        changes: Dict[str, Any] = {
            "callback_url": update_data.callback_url,
            "ip_whitelist": update_data.ip_whitelist or [],
        }
        if update_data.partner_name:
            changes["partner_name"] = update_data.partner_name
        if update_data.environment:
            changes["environment"] = update_data.environment

        credential = update_record(
            self.session, PartnerCredential, credential_id, changes, owner_id=user_id, skip_none=False
        )
        return PartnerCredentialRead.model_validate(credential)

    @operation()
    def update_public_key(
        self,
        credential_id: str,
        user_id: str,
        data: Union[PublicKeyUpdate, Dict[str, Any]],
    ) -> PartnerCredentialRead:
        """
        Register, replace or remove the partner's public key.

        An empty key clears the key, its fingerprint and the registration time.

        Raises:
            CredentialNotFoundError: If the credential is not the caller's
            InvalidPublicKeyError: If the key cannot be parsed
        """
        key_data = self._validate_input(PublicKeyUpdate, data)
        self._get_owned(credential_id, user_id)
        fingerprint = validate_public_key(key_data.public_key)

        if fingerprint is None:
            changes = {
                "public_key": None,
                "public_key_fingerprint": None,
                "public_key_added_at": None,
            }
        else:
            changes = {
                "public_key": key_data.public_key,
                "public_key_fingerprint": fingerprint,
                "public_key_added_at": utc_now(),
            }

        credential = update_record(
            self.session,
            PartnerCredential,
            credential_id,
            changes,
            owner_id=user_id,
            skip_none=False,
        )
        self.logger.info(
            "Partner public key updated" if fingerprint else "Partner public key removed",
            extra={"credential_id": credential_id, "fingerprint": fingerprint},
        )
        return PartnerCredentialRead.model_validate(credential)

    @operation()
    def regenerate_secret(self, credential_id: str, user_id: str) -> PartnerCredentialCreated:
        """
        Rotate the client secret. The client ID, channel ID and metadata are kept;
        the previous secret stops validating immediately.
        """
        self._get_owned(credential_id, user_id)
        client_secret = generate_client_secret()

        credential = self.quota_policy.rotate_secret(
            CredentialKind.PARTNER_CREDENTIAL,
            credential_id,
            user_id,
            {
                "client_secret": client_secret,
                "client_secret_prefix": secret_prefix(client_secret),
            },
        )
        return PartnerCredentialCreated.model_validate(credential)

    @operation()
    def deactivate_credential(self, credential_id: str, user_id: str) -> None:
        self._get_owned(credential_id, user_id)
        self.quota_policy.retire(
            CredentialKind.PARTNER_CREDENTIAL, credential_id, user_id, RecordStatus.INACTIVE
        )

    @operation()
    def delete_credential(self, credential_id: str, user_id: str) -> None:
        """Soft delete; the row is kept with status ``deleted``."""
        self._get_owned(credential_id, user_id)
        self.quota_policy.retire(
            CredentialKind.PARTNER_CREDENTIAL, credential_id, user_id, RecordStatus.DELETED
        )

    @operation()
    def validate_credential(self, client_id: str, client_secret: str) -> ValidatedPartnerCredential:
        """
        Resolve a presented client ID / secret pair to its credential.

        Unknown client IDs, wrong secrets, inactive and expired credentials all
        raise the same CredentialNotFoundError. ``last_used_at`` is updated
        best-effort on success.
        """
        if not client_id or not client_secret:
            raise CredentialNotFoundError(reason="malformed")

        credential = get_record(
            self.session,
            PartnerCredential,
            {"client_id": client_id, "status": RecordStatus.ACTIVE},
        )
        if credential is None:
            constant_time_equals(client_secret, _UNKNOWN_CLIENT_SECRET)
            raise CredentialNotFoundError(reason="unknown")

        if not constant_time_equals(client_secret, credential.client_secret):
            raise CredentialNotFoundError(reason="secret_mismatch")

        if is_expired(credential.expires_at):
            raise CredentialNotFoundError(reason="expired")

        result = ValidatedPartnerCredential.model_validate(credential)
        self._record_last_used(credential)
        return result
