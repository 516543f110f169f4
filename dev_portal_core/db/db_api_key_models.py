"""
API key model.

Only the bcrypt hash and a keyed lookup hash of the full key are stored; the
full key is shown to its owner once at creation.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Index, String

from ..enums import CredentialEnvironment, RecordStatus
from .db_base import TimestampMixin, UUIDMixin, str_enum_type
from .db_config import Base


class APIKey(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "api_keys"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)

    # Secret material
    key_prefix = Column(String(20), nullable=False)
    key_hash = Column(String(100), nullable=False)
    lookup_hash = Column(String(64), nullable=False, unique=True)

    environment = Column(
        str_enum_type(CredentialEnvironment), nullable=False, default=CredentialEnvironment.SANDBOX
    )
    status = Column(str_enum_type(RecordStatus), nullable=False, default=RecordStatus.ACTIVE)

    # Lifecycle
    expires_at = Column(DateTime(timezone=True), nullable=True)
    last_used_at = Column(DateTime(timezone=True), nullable=True)

    # Quota counts and listings filter on owner + status
    __table_args__ = (Index("ix_api_key_owner_status", "user_id", "status"),)
