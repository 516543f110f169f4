"""
Issuing and verifying signed session tokens.

Access and refresh tokens are compact JWS tokens signed with a shared HMAC
secret. The secret is injected at construction; nothing in this module reads
it from a global. Verification rejects any token whose header declares an
algorithm outside the HMAC family before the signature is checked.

There is no server-side revocation: a token stays valid until its ``exp``.
"""

import time
import uuid
from typing import Any, Callable, Dict, Optional

import jwt

from ..config import HMAC_ALGORITHMS, AppConfig, get_config
from ..enums import TokenType
from ..exceptions import ErrorCode, InvalidTokenError, SecretGenerationError, ServiceError
from ..schemas.token_schemas import TokenClaims, TokenPair
from ..utils.logger import get_logger

REQUIRED_CLAIMS = ["sub", "type", "exp", "iat"]


class TokenService:
    """
    Mints access/refresh token pairs and verifies presented tokens.

    Args:
        secret: Shared HMAC signing secret
        expiry_hours: Access token lifetime; refresh tokens live ``refresh_multiplier`` times longer
        algorithm: HMAC algorithm used when signing
        refresh_multiplier: Refresh lifetime multiplier
        clock: Returns the current Unix time in seconds
        leeway: Seconds of clock skew tolerated when checking expiry
    """

    def __init__(
        self,
        secret: str,
        expiry_hours: int = 24,
        algorithm: str = "HS256",
        refresh_multiplier: int = 7,
        clock: Callable[[], float] = time.time,
        leeway: int = 0,
    ):
        if not secret:
            raise ServiceError(
                "Token signing secret is not configured",
                error_code=ErrorCode.CONFIGURATION_ERROR,
                operation="token_service_init",
            )
        if algorithm not in HMAC_ALGORITHMS:
            raise ServiceError(
                f"Unsupported token algorithm: {algorithm}",
                error_code=ErrorCode.CONFIGURATION_ERROR,
                operation="token_service_init",
                algorithm=algorithm,
            )

        self._secret = secret
        self.expiry_hours = expiry_hours
        self.algorithm = algorithm
        self.refresh_multiplier = refresh_multiplier
        self.leeway = leeway
        self._clock = clock
        self.logger = get_logger()

    @classmethod
    def from_config(
        cls, config: Optional[AppConfig] = None, clock: Callable[[], float] = time.time
    ) -> "TokenService":
        tokens = (config or get_config()).tokens
        return cls(
            secret=tokens.secret,
            expiry_hours=tokens.expiry_hours,
            algorithm=tokens.algorithm,
            refresh_multiplier=tokens.refresh_multiplier,
            clock=clock,
        )

    @property
    def access_lifetime_seconds(self) -> int:
        return self.expiry_hours * 3600

    @property
    def refresh_lifetime_seconds(self) -> int:
        return self.access_lifetime_seconds * self.refresh_multiplier

    def _now(self) -> int:
        return int(self._clock())

    def _sign(self, claims: Dict[str, Any]) -> str:
        try:
            return jwt.encode(claims, self._secret, algorithm=self.algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            raise SecretGenerationError(
                "Failed to sign token", cause=e, token_type=claims.get("type")
            ) from e

    def issue_access_token(self, user_id: str, email: str) -> str:
        now = self._now()
        return self._sign(
            {
                "sub": str(user_id),
                "email": email,
                "type": TokenType.ACCESS.value,
                "iat": now,
                "exp": now + self.access_lifetime_seconds,
                "jti": str(uuid.uuid4()),
            }
        )

    def issue_refresh_token(self, user_id: str) -> str:
        now = self._now()
        return self._sign(
            {
                "sub": str(user_id),
                "type": TokenType.REFRESH.value,
                "iat": now,
                "exp": now + self.refresh_lifetime_seconds,
                "jti": str(uuid.uuid4()),
            }
        )

    def issue_pair(self, user_id: str, email: str) -> TokenPair:
        """Mint a fresh access + refresh token pair for a principal."""
        pair = TokenPair(
            access_token=self.issue_access_token(user_id, email),
            refresh_token=self.issue_refresh_token(user_id),
            expires_in=self.access_lifetime_seconds,
        )
        self.logger.info("Issued token pair", extra={"subject": str(user_id)})
        return pair

    def verify(self, token: str, expected_type: TokenType) -> TokenClaims:
        """
        Verify a token and return its claims.

        Signature and expiry are checked together; then the ``type`` claim
        must equal ``expected_type`` and ``sub`` must parse as a UUID.

        Raises:
            InvalidTokenError: For any failure. ``reason`` tells them apart in logs
                (invalid_token, algorithm_not_allowed, expired, wrong_token_type,
                invalid_subject) and is never rendered to callers.
        """
        if not token:
            raise InvalidTokenError(reason="invalid_token")

        try:
            header = jwt.get_unverified_header(token)
        except jwt.PyJWTError as e:
            raise InvalidTokenError(reason="invalid_token", cause=e) from e

        if header.get("alg") not in HMAC_ALGORITHMS:
            raise InvalidTokenError(reason="algorithm_not_allowed", algorithm=header.get("alg"))

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=list(HMAC_ALGORITHMS),
                options={
                    "require": REQUIRED_CLAIMS,
                    # Expiry is checked below against the injected clock
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.PyJWTError as e:
            raise InvalidTokenError(reason="invalid_token", cause=e) from e

        exp, iat = claims.get("exp"), claims.get("iat")
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in (exp, iat)):
            raise InvalidTokenError(reason="invalid_token")
        if exp <= self._clock() - self.leeway:
            raise InvalidTokenError(reason="expired")

        if claims.get("type") != expected_type.value:
            raise InvalidTokenError(
                reason="wrong_token_type", expected_type=expected_type.value
            )

        subject = claims.get("sub")
        try:
            uuid.UUID(str(subject))
        except ValueError as e:
            raise InvalidTokenError(reason="invalid_subject", cause=e) from e

        return TokenClaims(
            sub=str(subject),
            type=TokenType(claims["type"]),
            exp=int(exp),
            iat=int(iat),
            email=claims.get("email"),
            jti=claims.get("jti"),
        )
