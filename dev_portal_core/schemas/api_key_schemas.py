"""
Pydantic schemas for API keys.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..enums import CredentialEnvironment, RecordStatus


class APIKeyCreate(BaseModel):
    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    name: str = Field(..., min_length=1, max_length=100, description="Label shown in listings")
    environment: CredentialEnvironment = Field(..., description="sandbox or production")
    expires_at: Optional[datetime] = Field(None, description="Optional hard expiry")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class APIKeyRead(BaseModel):
    """Listing projection; carries only the display prefix of the key."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    key_prefix: str
    environment: CredentialEnvironment
    status: RecordStatus
    expires_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None
    created_at: datetime


class APIKeyCreated(APIKeyRead):
    """Creation projection. ``key`` is the full key and is returned exactly once."""

    key: str


class ValidatedAPIKey(BaseModel):
    """Outcome of a successful API key check."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    name: str
    key_prefix: str
    environment: CredentialEnvironment
