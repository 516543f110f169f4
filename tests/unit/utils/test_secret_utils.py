"""
Unit tests for secret generation.

Covers the formats of API keys, client IDs, client secrets and channel IDs,
uniqueness across many draws, and failure of the entropy source.
"""

import re
from unittest.mock import patch

import pytest

from dev_portal_core.exceptions import SecretGenerationError
from dev_portal_core.utils.secret_utils import (
    generate_api_key,
    generate_channel_id,
    generate_client_credentials,
    generate_client_id,
    generate_client_secret,
    secret_prefix,
)

HEX = "[0-9a-f]"


class TestAPIKeyGeneration:
    def test_format(self):
        generated = generate_api_key()

        assert re.fullmatch(f"bas_{HEX}{{64}}", generated.full_key)
        assert len(generated.full_key) == 68

    def test_prefix_is_namespace_plus_eight_hex(self):
        generated = generate_api_key()

        assert generated.prefix == generated.full_key[:12]
        assert re.fullmatch(f"bas_{HEX}{{8}}", generated.prefix)

    def test_keys_do_not_collide(self):
        keys = {generate_api_key().full_key for _ in range(10_000)}

        assert len(keys) == 10_000


class TestClientCredentialGeneration:
    def test_client_id_format(self):
        client_id = generate_client_id()

        assert re.fullmatch(f"BAS{HEX}{{29}}", client_id)
        assert len(client_id) == 32

    def test_client_secret_format(self):
        assert re.fullmatch(f"{HEX}{{64}}", generate_client_secret())

    def test_secret_prefix(self):
        assert secret_prefix("0123456789abcdef" * 4) == "01234567..."

    def test_generate_client_credentials(self):
        generated = generate_client_credentials()

        assert generated.client_id.startswith("BAS")
        assert generated.secret_prefix == generated.client_secret[:8] + "..."

    def test_client_ids_do_not_collide(self):
        ids = {generate_client_id() for _ in range(10_000)}

        assert len(ids) == 10_000

    def test_client_secrets_do_not_collide(self):
        secrets = {generate_client_secret() for _ in range(10_000)}

        assert len(secrets) == 10_000


class TestChannelIdGeneration:
    def test_format(self):
        assert re.fullmatch(f"CH{HEX}{{16}}", generate_channel_id())

    def test_channel_ids_do_not_collide(self):
        ids = {generate_channel_id() for _ in range(10_000)}

        assert len(ids) == 10_000


class TestEntropyFailure:
    @patch("dev_portal_core.utils.secret_utils.secrets.token_hex", side_effect=OSError("no entropy"))
    def test_os_error_raises_generation_error(self, _mock_token_hex):
        with pytest.raises(SecretGenerationError) as exc_info:
            generate_api_key()

        assert exc_info.value.status_code == 500
        assert isinstance(exc_info.value.cause, OSError)

    @patch("dev_portal_core.utils.secret_utils.secrets.token_hex", return_value="abc")
    def test_short_read_raises_generation_error(self, _mock_token_hex):
        with pytest.raises(SecretGenerationError):
            generate_client_secret()

    @patch("dev_portal_core.utils.secret_utils.secrets.token_hex", side_effect=OSError("no entropy"))
    def test_partial_credentials_are_never_returned(self, _mock_token_hex):
        with pytest.raises(SecretGenerationError):
            generate_client_credentials()
