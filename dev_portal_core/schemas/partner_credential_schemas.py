"""
Pydantic schemas for partner client credentials.

Three projections mirror how a credential is shown: ``PartnerCredentialRead``
for listings (display fingerprint, secret prefix only),
``PartnerCredentialCreated`` which adds the full secret once at creation or
rotation, and ``PartnerCredentialDetail`` which adds a masked public key.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..enums import CredentialEnvironment, RecordStatus
from ..utils.public_key_utils import format_fingerprint, mask_public_key


class BasePartnerCredentialSchema(BaseModel):
    """Base schema for partner credential input."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="forbid",
    )


def _check_ip_whitelist(entries):
    if entries is None:
        return entries
    cleaned = [entry.strip() for entry in entries]
    if any(not entry for entry in cleaned):
        raise ValueError("IP allow-list entries cannot be empty")
    return cleaned


class PartnerCredentialCreate(BasePartnerCredentialSchema):
    partner_name: str = Field(..., min_length=1, max_length=255, description="Partner display name")
    environment: CredentialEnvironment = Field(default=CredentialEnvironment.SANDBOX)
    callback_url: Optional[str] = Field(None, max_length=500)
    ip_whitelist: List[str] = Field(default_factory=list, description="Allowed source IPs/CIDRs")
    public_key: Optional[str] = Field(None, description="PEM encoded RSA public key")

    @field_validator("ip_whitelist")
    @classmethod
    def validate_ip_whitelist(cls, v):
        return _check_ip_whitelist(v)


class PartnerCredentialUpdate(BasePartnerCredentialSchema):
    """
    Metadata update.

    Partner name and environment change only when given; callback URL and IP
    allow-list are always replaced (None clears them).
    """

    partner_name: Optional[str] = Field(None, max_length=255)
    environment: Optional[CredentialEnvironment] = None
    callback_url: Optional[str] = Field(None, max_length=500)
    ip_whitelist: Optional[List[str]] = None

    @field_validator("ip_whitelist")
    @classmethod
    def validate_ip_whitelist(cls, v):
        return _check_ip_whitelist(v)


class PublicKeyUpdate(BasePartnerCredentialSchema):
    public_key: Optional[str] = Field(
        None, description="PEM encoded RSA public key; empty or null removes the registered key"
    )


class PartnerCredentialRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    client_id: str
    client_secret_prefix: str
    public_key_fingerprint: Optional[str] = None
    public_key_added_at: Optional[datetime] = None
    partner_name: str
    channel_id: str
    environment: CredentialEnvironment
    callback_url: Optional[str] = None
    ip_whitelist: List[str] = Field(default_factory=list)
    status: RecordStatus
    expires_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None
    created_at: datetime

    @field_validator("public_key_fingerprint")
    @classmethod
    def display_fingerprint(cls, v):
        return format_fingerprint(v) or None

    @field_validator("ip_whitelist", mode="before")
    @classmethod
    def default_ip_whitelist(cls, v):
        return v or []


class PartnerCredentialCreated(PartnerCredentialRead):
    """Returned once on creation or secret rotation; ``client_secret`` is the full secret."""

    client_secret: str


class PartnerCredentialDetail(PartnerCredentialRead):
    public_key: Optional[str] = None

    @field_validator("public_key")
    @classmethod
    def mask(cls, v):
        return mask_public_key(v) or None


class ValidatedPartnerCredential(BaseModel):
    """Outcome of a successful client ID / secret check."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    client_id: str
    partner_name: str
    channel_id: str
    environment: CredentialEnvironment
    ip_whitelist: List[str] = Field(default_factory=list)

    @field_validator("ip_whitelist", mode="before")
    @classmethod
    def default_ip_whitelist(cls, v):
        return v or []
