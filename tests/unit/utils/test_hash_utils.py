"""
Unit tests for password and secret hashing.
"""

import pytest

from dev_portal_core.exceptions import ErrorCode, ValidationError
from dev_portal_core.utils.hash_utils import (
    constant_time_equals,
    dummy_hash,
    hash_secret,
    lookup_hash,
    verify_secret,
)


class TestHashSecret:
    def test_hash_and_verify(self):
        hashed = hash_secret("s3cret-password", rounds=4)

        assert hashed.startswith("$2")
        assert verify_secret("s3cret-password", hashed)
        assert not verify_secret("s3cret-passwore", hashed)

    def test_hashes_are_salted(self):
        assert hash_secret("same-password", rounds=4) != hash_secret("same-password", rounds=4)

    def test_rounds_default_to_config(self):
        assert hash_secret("configured-rounds").startswith("$2b$04$")

    def test_empty_secret_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            hash_secret("", rounds=4)

        assert exc_info.value.error_code == ErrorCode.MISSING_REQUIRED

    def test_secret_longer_than_72_bytes_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            hash_secret("x" * 73, rounds=4, field="api_key")

        assert exc_info.value.context["field"] == "api_key"

    def test_multibyte_length_counts_bytes(self):
        with pytest.raises(ValidationError):
            hash_secret("é" * 37, rounds=4)


class TestVerifySecret:
    def test_empty_inputs_are_false(self):
        hashed = hash_secret("something", rounds=4)

        assert verify_secret("", hashed) is False
        assert verify_secret("something", None) is False
        assert verify_secret("something", "") is False

    def test_over_long_secret_is_false(self):
        hashed = hash_secret("x" * 72, rounds=4)

        assert verify_secret("x" * 73, hashed) is False

    def test_malformed_stored_hash_is_false(self):
        assert verify_secret("something", "not-a-bcrypt-hash") is False


class TestLookupHash:
    def test_deterministic_hex(self):
        digest = lookup_hash("bas_" + "ab" * 32)

        assert digest == lookup_hash("bas_" + "ab" * 32)
        assert len(digest) == 64
        assert int(digest, 16) >= 0

    def test_keyed(self):
        value = "bas_" + "cd" * 32

        assert lookup_hash(value, key="one-key") != lookup_hash(value, key="another-key")

    def test_default_key_from_config(self, app_config):
        value = "bas_" + "ef" * 32

        assert lookup_hash(value) == lookup_hash(
            value, key=app_config.security.api_key_lookup_secret
        )


class TestHelpers:
    def test_constant_time_equals(self):
        assert constant_time_equals("abc", "abc")
        assert not constant_time_equals("abc", "abd")
        assert not constant_time_equals("abc", "abcd")

    def test_dummy_hash_is_cached_and_never_matches_real_input(self):
        first = dummy_hash(4)

        assert dummy_hash(4) is first
        assert verify_secret("correct-horse-battery", first) is False
