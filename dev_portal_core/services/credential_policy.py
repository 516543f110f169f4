"""
Quota and rotation rules shared by API keys and partner credentials.

Quota checks count a principal's *active* records of a kind and refuse a new
one once the ceiling is reached. The count and the following insert are two
separate statements; concurrent creations by the same principal can race
past the ceiling. A hardened deployment should run both in one serializable
transaction or use a conditional insert.
"""

from typing import Any, Dict, Optional, Type

from sqlalchemy.orm import Session

from ..config import get_config
from ..db.db_api_key_models import APIKey
from ..db.db_partner_credential_models import PartnerCredential
from ..enums import CredentialKind, RecordStatus
from ..exceptions import QuotaExceededError
from ..utils.crud_helpers import count_records, set_record_status, update_record
from ..utils.logger import get_logger

MODEL_BY_KIND: Dict[CredentialKind, Type] = {
    CredentialKind.API_KEY: APIKey,
    CredentialKind.PARTNER_CREDENTIAL: PartnerCredential,
}

QUOTA_MESSAGES = {
    CredentialKind.API_KEY: "Maximum number of API keys reached",
    CredentialKind.PARTNER_CREDENTIAL: "Maximum number of partner credentials reached",
}


class CredentialQuotaPolicy:
    def __init__(
        self,
        session: Session,
        max_api_keys: Optional[int] = None,
        max_partner_credentials: Optional[int] = None,
    ):
        security = get_config().security
        self.session = session
        self.ceilings = {
            CredentialKind.API_KEY: (
                max_api_keys if max_api_keys is not None else security.max_api_keys_per_user
            ),
            CredentialKind.PARTNER_CREDENTIAL: (
                max_partner_credentials
                if max_partner_credentials is not None
                else security.max_partner_credentials_per_user
            ),
        }
        self.logger = get_logger()

    def ceiling(self, kind: CredentialKind) -> int:
        return self.ceilings[kind]

    def active_count(self, kind: CredentialKind, user_id: str) -> int:
        return count_records(
            self.session,
            MODEL_BY_KIND[kind],
            {"status": RecordStatus.ACTIVE},
            owner_id=user_id,
        )

    def ensure_capacity(self, kind: CredentialKind, user_id: str) -> None:
        """
        Refuse creation when the principal already holds the maximum of active records.

        Raises:
            QuotaExceededError: If the active count is at or above the ceiling
        """
        count = self.active_count(kind, user_id)
        limit = self.ceiling(kind)
        if count >= limit:
            raise QuotaExceededError(
                QUOTA_MESSAGES[kind], kind=kind.value, limit=limit, owner_id=user_id
            )

    def rotate_secret(
        self, kind: CredentialKind, record_id: str, user_id: str, secret_fields: Dict[str, Any]
    ) -> Any:
        """
        Replace the secret material of an existing record in a single committed write.

        Identity, metadata, status and the quota slot are untouched; once this
        returns, the previous secret no longer verifies.
        """
        record = update_record(
            self.session, MODEL_BY_KIND[kind], record_id, secret_fields, owner_id=user_id
        )
        self.logger.info(
            "Rotated credential secret",
            extra={"kind": kind.value, "record_id": record_id, "owner_id": user_id},
        )
        return record

    def retire(
        self, kind: CredentialKind, record_id: str, user_id: str, status: RecordStatus
    ) -> Any:
        """Revoke (inactive) or soft-delete (deleted) a record. The row is always kept."""
        record = set_record_status(
            self.session, MODEL_BY_KIND[kind], record_id, status, owner_id=user_id
        )
        self.logger.info(
            "Retired credential",
            extra={"kind": kind.value, "record_id": record_id, "status": status.value},
        )
        return record
