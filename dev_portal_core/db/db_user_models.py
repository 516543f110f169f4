"""
Principal (portal account) model.

Just the data structure - account logic lives in the auth and user services.
"""

from sqlalchemy import Boolean, Column, Index, String

from ..enums import AuthProvider, RecordStatus
from .db_base import TimestampMixin, UUIDMixin, str_enum_type
from .db_config import Base


class User(Base, UUIDMixin, TimestampMixin):
    """A developer portal account. Never hard-deleted."""

    __tablename__ = "users"

    # Identity
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(100), nullable=True)  # Absent for federated-only accounts
    provider = Column(str_enum_type(AuthProvider), nullable=False, default=AuthProvider.LOCAL)
    provider_id = Column(String(255), nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)

    # Profile
    full_name = Column(String(255), nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    job_title = Column(String(100), nullable=True)
    company = Column(String(255), nullable=True)
    profile_picture = Column(String(500), nullable=True)

    status = Column(str_enum_type(RecordStatus), nullable=False, default=RecordStatus.ACTIVE)

    __table_args__ = (Index("ix_user_provider_lookup", "provider", "provider_id"),)
