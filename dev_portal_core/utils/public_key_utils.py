"""
Validation and fingerprinting of partner RSA public keys.

A partner may register a PEM-encoded public key alongside its client
credentials. The key is parsed with ``cryptography``; its fingerprint is the
SHA-256 digest of the decoded DER body, rendered as lowercase hex.
"""

import base64
import binascii
import hashlib
import re
from typing import Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.serialization import load_der_public_key

from ..constants import Limits, SecretFormat
from ..exceptions import ErrorCode, InvalidPublicKeyError
from .logger import get_logger

ACCEPTED_BLOCK_TYPES = ("PUBLIC KEY", "RSA PUBLIC KEY")

_PEM_BLOCK = re.compile(
    r"-----BEGIN (?P<label>[A-Z0-9 ]+)-----\s*(?P<body>[A-Za-z0-9+/=\s]*?)\s*-----END (?P=label)-----"
)


def _decode_pem_block(pem: str):
    blocks = list(_PEM_BLOCK.finditer(pem))
    if len(blocks) != 1:
        raise InvalidPublicKeyError("invalid PEM format: expected exactly one PEM block")

    block = blocks[0]
    label = block.group("label")
    if label not in ACCEPTED_BLOCK_TYPES:
        raise InvalidPublicKeyError(
            "invalid PEM format: expected PUBLIC KEY or RSA PUBLIC KEY", block_type=label
        )

    try:
        der = base64.b64decode("".join(block.group("body").split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidPublicKeyError("invalid PEM format: body is not valid base64", cause=e)

    if not der:
        raise InvalidPublicKeyError("invalid PEM format: empty PEM block")

    return label, der


def validate_public_key(public_key: Optional[str]) -> Optional[str]:
    """
    Validate a PEM public key and compute its fingerprint.

    An empty value means "no key configured" and is accepted.

    Args:
        public_key: PEM text holding a single PUBLIC KEY or RSA PUBLIC KEY block

    Returns:
        64 character lowercase hex SHA-256 fingerprint of the DER body, or None for empty input

    Raises:
        InvalidPublicKeyError: INVALID_FORMAT for a bad PEM envelope or block type,
            INVALID_KEY when the body is neither SubjectPublicKeyInfo nor PKCS#1
    """
    if not public_key or not public_key.strip():
        return None

    label, der = _decode_pem_block(public_key)

    # load_der_public_key accepts X.509 SubjectPublicKeyInfo and falls back to PKCS#1 RSAPublicKey
    try:
        load_der_public_key(der)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise InvalidPublicKeyError(
            "invalid public key: unable to parse",
            error_code=ErrorCode.INVALID_KEY,
            cause=e,
            block_type=label,
        )

    fingerprint = hashlib.sha256(der).hexdigest()
    get_logger().debug(
        "Validated partner public key", extra={"block_type": label, "fingerprint": fingerprint}
    )
    return fingerprint


def format_fingerprint(fingerprint: Optional[str]) -> str:
    """
    Render a fingerprint for display: the first 8 bytes as colon-separated pairs plus ``...``.

    Display only. The stored fingerprint is always the full hex digest.
    """
    if not fingerprint:
        return ""

    hex_chars = Limits.FINGERPRINT_DISPLAY_BYTES * 2
    if len(fingerprint) < hex_chars:
        return fingerprint

    pairs = [fingerprint[i : i + 2] for i in range(0, hex_chars, 2)]
    return ":".join(pairs) + SecretFormat.ELLIPSIS


def mask_public_key(public_key: Optional[str]) -> str:
    """Shorten a stored public key for detail views."""
    if not public_key:
        return ""
    if len(public_key) < Limits.PUBLIC_KEY_MASK_THRESHOLD:
        return public_key

    encoded = base64.b64encode(public_key.encode("utf-8")).decode("ascii")
    edge = Limits.PUBLIC_KEY_MASK_EDGE
    if len(encoded) > edge * 2:
        return encoded[:edge] + SecretFormat.ELLIPSIS + encoded[-edge:]
    return encoded
