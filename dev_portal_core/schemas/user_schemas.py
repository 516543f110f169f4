"""
Pydantic schemas for portal accounts.

Input schemas validate registration, login, federated sign-in and profile
updates; ``UserRead`` is the non-sensitive projection returned to callers and
never carries the password hash or the federated provider ID.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import Limits
from ..enums import AuthProvider


def _check_email(value: str) -> str:
    value = value.strip()
    local, sep, domain = value.partition("@")
    if not sep or not local or "." not in domain or " " in value:
        raise ValueError("must be a valid email address")
    return value


def _check_password_window(value: str) -> str:
    if len(value.encode("utf-8")) > Limits.BCRYPT_MAX_PASSWORD_BYTES:
        raise ValueError(f"must be at most {Limits.BCRYPT_MAX_PASSWORD_BYTES} bytes")
    return value


class BaseUserSchema(BaseModel):
    """Base schema for account input."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")


class UserCreate(BaseUserSchema):
    """Local account registration."""

    email: str = Field(..., max_length=255, description="Account email, assumed normalized")
    password: str = Field(..., min_length=Limits.MIN_PASSWORD_LENGTH, description="Plaintext password")
    full_name: str = Field(..., min_length=2, max_length=255, description="Display name")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        """Reject passwords bcrypt would silently truncate."""
        return _check_password_window(v)

    @field_validator("full_name")
    @classmethod
    def strip_full_name(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("must be at least 2 characters")
        return v


class UserLogin(BaseUserSchema):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


class FederatedIdentity(BaseUserSchema):
    """Identity asserted by an external provider after its own sign-in flow."""

    provider: AuthProvider = Field(default=AuthProvider.GOOGLE)
    provider_id: str = Field(..., min_length=1, max_length=255, description="Provider subject ID")
    email: str = Field(..., max_length=255)
    full_name: Optional[str] = Field(None, max_length=255)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    profile_picture: Optional[str] = Field(None, max_length=500)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _check_email(v)

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v):
        if v == AuthProvider.LOCAL:
            raise ValueError("federated identities cannot use the local provider")
        return v


class UserUpdate(BaseUserSchema):
    """Profile update. Empty or missing fields leave the stored value unchanged."""

    full_name: Optional[str] = Field(None, max_length=255)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    job_title: Optional[str] = Field(None, max_length=100)
    company: Optional[str] = Field(None, max_length=255)
    profile_picture: Optional[str] = Field(None, max_length=500)

    def changes(self) -> dict:
        """Non-empty fields to apply."""
        return {
            key: value.strip()
            for key, value in self.model_dump().items()
            if value is not None and value.strip()
        }


class UserRead(BaseModel):
    """Non-sensitive account projection."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    job_title: Optional[str] = None
    company: Optional[str] = None
    profile_picture: Optional[str] = None
    provider: AuthProvider
    is_verified: bool
    created_at: datetime
