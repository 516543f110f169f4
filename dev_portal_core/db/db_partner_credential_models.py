"""
Partner (SNAP) client credential model.

The client secret is persisted in retrievable form. This is a known weakness:
a hardened deployment should store it hashed or encrypted at rest.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text

from ..enums import CredentialEnvironment, RecordStatus
from .db_base import JSON, TimestampMixin, UUIDMixin, str_enum_type
from .db_config import Base


class PartnerCredential(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "partner_credentials"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # Client credentials; deleted rows keep their client ID reserved
    client_id = Column(String(32), nullable=False, unique=True)
    client_secret = Column(String(64), nullable=False)
    client_secret_prefix = Column(String(16), nullable=False)

    # Optional partner public key
    public_key = Column(Text, nullable=True)
    public_key_fingerprint = Column(String(64), nullable=True)
    public_key_added_at = Column(DateTime(timezone=True), nullable=True)

    # Partner metadata
    partner_name = Column(String(255), nullable=False)
    channel_id = Column(String(20), nullable=False)
    environment = Column(
        str_enum_type(CredentialEnvironment), nullable=False, default=CredentialEnvironment.SANDBOX
    )
    callback_url = Column(String(500), nullable=True)
    ip_whitelist = Column(JSON, nullable=True)

    status = Column(str_enum_type(RecordStatus), nullable=False, default=RecordStatus.ACTIVE)

    # Lifecycle
    expires_at = Column(DateTime(timezone=True), nullable=True)
    last_used_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("ix_partner_credential_owner_status", "user_id", "status"),)
