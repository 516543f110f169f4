"""
Hashing utilities for passwords and credential secrets.

Passwords and API keys are stored as salted bcrypt hashes. API keys
additionally get a keyed SHA-256 lookup hash so a presented key can be found
by index before its bcrypt hash is checked.
"""

import hashlib
import hmac
from typing import Dict, Optional

import bcrypt

from ..config import get_config
from ..constants import Limits
from ..exceptions import ErrorCode, SecretGenerationError, ValidationError
from .logger import get_logger


def _encode(secret: str, field: str) -> bytes:
    if not secret:
        raise ValidationError(
            f"{field} must not be empty", field=field, error_code=ErrorCode.MISSING_REQUIRED
        )

    encoded = secret.encode("utf-8")
    if len(encoded) > Limits.BCRYPT_MAX_PASSWORD_BYTES:
        raise ValidationError(
            f"{field} must be at most {Limits.BCRYPT_MAX_PASSWORD_BYTES} bytes",
            field=field,
            error_code=ErrorCode.INVALID_FORMAT,
        )
    return encoded


def hash_secret(secret: str, rounds: Optional[int] = None, field: str = "password") -> str:
    """
    Hash a password or API key with bcrypt.

    Args:
        secret: The plaintext to hash
        rounds: bcrypt work factor (default: config.security.bcrypt_rounds)
        field: Name reported in validation errors

    Returns:
        The bcrypt hash as text

    Raises:
        ValidationError: If the secret is empty or longer than bcrypt's 72 byte window
        SecretGenerationError: If hashing fails
    """
    encoded = _encode(secret, field)
    work_factor = rounds if rounds is not None else get_config().security.bcrypt_rounds

    try:
        hashed = bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=work_factor))
    except (ValueError, TypeError) as e:
        raise SecretGenerationError(f"Failed to hash {field}", cause=e, field=field) from e

    return hashed.decode("utf-8")


def verify_secret(secret: str, hashed: Optional[str]) -> bool:
    """
    Check a plaintext against a stored bcrypt hash.

    Never raises for a mismatch: wrong secrets, over-long secrets and
    malformed stored hashes all yield False.
    """
    if not secret or not hashed:
        return False

    encoded = secret.encode("utf-8")
    if len(encoded) > Limits.BCRYPT_MAX_PASSWORD_BYTES:
        return False

    try:
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except ValueError:
        get_logger().warning("Stored bcrypt hash is malformed")
        return False


def lookup_hash(value: str, key: Optional[str] = None) -> str:
    """
    Keyed SHA-256 digest used to index API keys.

    Args:
        value: The full API key
        key: HMAC key (default: config.security.api_key_lookup_secret)

    Returns:
        64 character lowercase hex digest
    """
    lookup_key = key if key is not None else get_config().security.api_key_lookup_secret
    return hmac.new(lookup_key.encode("utf-8"), value.encode("utf-8"), hashlib.sha256).hexdigest()


def constant_time_equals(presented: str, stored: str) -> bool:
    """Compare two secrets without leaking the position of the first difference."""
    return hmac.compare_digest(presented.encode("utf-8"), stored.encode("utf-8"))


# bcrypt hashes of a throwaway value, keyed by work factor
_dummy_hashes: Dict[int, str] = {}


def dummy_hash(rounds: Optional[int] = None) -> str:
    """
    A valid bcrypt hash to verify against when no stored hash exists.

    Lets lookup misses spend the same bcrypt work as real comparisons.
    """
    work_factor = rounds if rounds is not None else get_config().security.bcrypt_rounds
    if work_factor not in _dummy_hashes:
        _dummy_hashes[work_factor] = hash_secret(
            "timing-equalizer-never-a-real-secret", rounds=work_factor, field="dummy"
        )
    return _dummy_hashes[work_factor]
