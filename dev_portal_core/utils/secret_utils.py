"""
Generation of API keys, partner client credentials and channel IDs.

All randomness comes from the operating system CSPRNG via ``secrets``. If the
entropy source fails, a SecretGenerationError is raised; an empty or partial
secret is never returned.
"""

import secrets
from typing import NamedTuple

from ..constants import SecretFormat
from ..exceptions import SecretGenerationError
from .logger import get_logger


class GeneratedAPIKey(NamedTuple):
    """A freshly minted API key. ``full_key`` is shown to its owner once."""

    full_key: str
    prefix: str


class GeneratedClientCredentials(NamedTuple):
    """A freshly minted partner client ID / secret pair."""

    client_id: str
    client_secret: str
    secret_prefix: str


def _random_hex(nbytes: int, purpose: str) -> str:
    try:
        value = secrets.token_hex(nbytes)
    except (OSError, NotImplementedError) as e:
        raise SecretGenerationError(
            f"Failed to generate {purpose}", cause=e, purpose=purpose
        ) from e

    if len(value) != nbytes * 2:
        raise SecretGenerationError(
            f"Failed to generate {purpose}: short read from entropy source", purpose=purpose
        )
    return value


def generate_api_key() -> GeneratedAPIKey:
    """
    Generate an API key of the form ``bas_<64 hex>``.

    Returns:
        The full key and its display prefix (``bas_`` plus the first 8 hex characters)
    """
    full_key = SecretFormat.API_KEY_NAMESPACE + _random_hex(SecretFormat.API_KEY_BYTES, "API key")
    prefix = full_key[: len(SecretFormat.API_KEY_NAMESPACE) + SecretFormat.API_KEY_PREFIX_HEX_CHARS]

    get_logger().debug("Generated API key", extra={"key_prefix": prefix})
    return GeneratedAPIKey(full_key=full_key, prefix=prefix)


def generate_client_id() -> str:
    """Generate a 32 character client ID: ``BAS`` followed by 29 hex characters."""
    hex_chars = SecretFormat.CLIENT_ID_LENGTH - len(SecretFormat.CLIENT_ID_BRAND)
    return SecretFormat.CLIENT_ID_BRAND + _random_hex(SecretFormat.CLIENT_ID_BYTES, "client ID")[
        :hex_chars
    ]


def generate_client_secret() -> str:
    """Generate a 64 character hex client secret."""
    return _random_hex(SecretFormat.CLIENT_SECRET_BYTES, "client secret")


def secret_prefix(client_secret: str) -> str:
    """Display form of a client secret: its first 8 characters followed by ``...``."""
    return client_secret[: SecretFormat.CLIENT_SECRET_PREFIX_CHARS] + SecretFormat.ELLIPSIS


def generate_client_credentials() -> GeneratedClientCredentials:
    """Generate a partner client ID, client secret and the secret's display prefix."""
    client_id = generate_client_id()
    client_secret = generate_client_secret()

    get_logger().debug("Generated partner client credentials", extra={"client_id": client_id})
    return GeneratedClientCredentials(
        client_id=client_id,
        client_secret=client_secret,
        secret_prefix=secret_prefix(client_secret),
    )


def generate_channel_id() -> str:
    """Generate a channel ID: ``CH`` followed by 16 hex characters."""
    return SecretFormat.CHANNEL_ID_PREFIX + _random_hex(SecretFormat.CHANNEL_ID_BYTES, "channel ID")
