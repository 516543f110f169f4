"""
Pydantic schemas for session tokens and authentication results.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..enums import AuthMethod, TokenType
from .user_schemas import UserRead


class TokenClaims(BaseModel):
    """Verified claims of an access or refresh token."""

    model_config = ConfigDict(frozen=True)

    sub: str = Field(..., description="Principal ID")
    type: TokenType
    exp: int
    iat: int
    email: Optional[str] = Field(None, description="Present on access tokens only")
    jti: Optional[str] = None


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    token_type: str = "Bearer"


class AuthResponse(TokenPair):
    """Tokens plus the account they were issued for."""

    user: UserRead


class AuthenticatedPrincipal(BaseModel):
    """Who a request was authenticated as, and through which credential."""

    model_config = ConfigDict(frozen=True)

    principal_id: str
    method: AuthMethod
    email: Optional[str] = None
    credential_id: Optional[str] = Field(
        None, description="API key or partner credential ID; None for bearer tokens"
    )
