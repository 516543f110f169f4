"""
Unit tests for PartnerCredentialService.
"""

import re
from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from dev_portal_core.db import PartnerCredential, utc_now
from dev_portal_core.enums import CredentialEnvironment, RecordStatus
from dev_portal_core.exceptions import (
    CredentialNotFoundError,
    ErrorCode,
    InvalidPublicKeyError,
    QuotaExceededError,
    ValidationError,
)
from tests.fixtures.factories import PartnerCredentialFactory


def _create(service, user_id, **overrides):
    data = {"partner_name": "Acme Payments", **overrides}
    return service.create_credential(user_id, data)


class TestCreateCredential:
    def test_generated_identifiers(self, partner_service, user):
        created = _create(partner_service, user.id)

        assert re.fullmatch("BAS[0-9a-f]{29}", created.client_id)
        assert re.fullmatch("[0-9a-f]{64}", created.client_secret)
        assert created.client_secret_prefix == created.client_secret[:8] + "..."
        assert re.fullmatch("CH[0-9a-f]{16}", created.channel_id)
        assert created.environment == CredentialEnvironment.SANDBOX
        assert created.status == RecordStatus.ACTIVE
        assert created.ip_whitelist == []
        assert created.public_key_fingerprint is None

    def test_with_public_key(self, partner_service, db_session, user, spki_pem):
        created = _create(partner_service, user.id, public_key=spki_pem)

        stored = db_session.get(PartnerCredential, created.id)
        assert len(stored.public_key_fingerprint) == 64
        assert stored.public_key_added_at is not None
        assert created.public_key_fingerprint.endswith("...")
        assert created.public_key_fingerprint.count(":") == 7

    def test_invalid_public_key_creates_nothing(self, partner_service, db_session, user):
        with pytest.raises(InvalidPublicKeyError):
            _create(partner_service, user.id, public_key="not a pem")

        assert db_session.query(PartnerCredential).count() == 0

    def test_metadata(self, partner_service, user):
        created = _create(
            partner_service,
            user.id,
            environment="production",
            callback_url="https://acme.example/callback",
            ip_whitelist=[" 10.0.0.1 ", "192.168.0.0/24"],
        )

        assert created.environment == CredentialEnvironment.PRODUCTION
        assert created.callback_url == "https://acme.example/callback"
        assert created.ip_whitelist == ["10.0.0.1", "192.168.0.0/24"]

    def test_partner_name_required(self, partner_service, user):
        with pytest.raises(ValidationError):
            partner_service.create_credential(user.id, {})

    def test_sixth_active_credential_refused(self, partner_service, user):
        for i in range(5):
            _create(partner_service, user.id, partner_name=f"Partner {i}")

        with pytest.raises(QuotaExceededError):
            _create(partner_service, user.id)

    def test_creation_after_deactivation(self, partner_service, user):
        created = [_create(partner_service, user.id) for _ in range(5)]
        partner_service.deactivate_credential(created[0].id, user.id)

        assert _create(partner_service, user.id).status == RecordStatus.ACTIVE


class TestReadCredentials:
    def test_list_excludes_deleted(self, partner_service, user, other_user):
        now = utc_now()
        older = PartnerCredentialFactory.create(user_id=user.id, created_at=now - timedelta(hours=1))
        inactive = PartnerCredentialFactory.create(
            user_id=user.id, status=RecordStatus.INACTIVE, created_at=now
        )
        PartnerCredentialFactory.create(user_id=user.id, status=RecordStatus.DELETED)
        PartnerCredentialFactory.create(user_id=other_user.id)

        listed = partner_service.list_credentials(user.id)

        assert [c.id for c in listed] == [inactive.id, older.id]
        assert all("client_secret" not in c.model_dump() for c in listed)

    def test_get_masks_public_key(self, partner_service, user, spki_pem):
        created = _create(partner_service, user.id, public_key=spki_pem)

        detail = partner_service.get_credential(created.id, user.id)

        assert detail.public_key != spki_pem
        assert "..." in detail.public_key
        assert "client_secret" not in detail.model_dump()

    def test_get_other_owner(self, partner_service, user, other_user):
        credential = PartnerCredentialFactory.create(user_id=user.id)

        with pytest.raises(CredentialNotFoundError):
            partner_service.get_credential(credential.id, other_user.id)

    def test_get_deleted(self, partner_service, user):
        credential = PartnerCredentialFactory.create(user_id=user.id, status=RecordStatus.DELETED)

        with pytest.raises(CredentialNotFoundError):
            partner_service.get_credential(credential.id, user.id)


class TestUpdateCredential:
    def test_name_and_environment_only_when_given(self, partner_service, user):
        credential = PartnerCredentialFactory.create(
            user_id=user.id,
            partner_name="Original",
            environment=CredentialEnvironment.PRODUCTION,
            callback_url="https://old.example/cb",
            ip_whitelist=["10.0.0.1"],
        )

        updated = partner_service.update_credential(credential.id, user.id, {})

        assert updated.partner_name == "Original"
        assert updated.environment == CredentialEnvironment.PRODUCTION
        # Callback URL and allow-list are always overwritten
        assert updated.callback_url is None
        assert updated.ip_whitelist == []

    def test_full_update(self, partner_service, user):
        credential = PartnerCredentialFactory.create(user_id=user.id)

        updated = partner_service.update_credential(
            credential.id,
            user.id,
            {
                "partner_name": "Renamed",
                "environment": "production",
                "callback_url": "https://new.example/cb",
                "ip_whitelist": ["172.16.0.0/12"],
            },
        )

        assert updated.partner_name == "Renamed"
        assert updated.environment == CredentialEnvironment.PRODUCTION
        assert updated.callback_url == "https://new.example/cb"
        assert updated.ip_whitelist == ["172.16.0.0/12"]

    def test_update_other_owner(self, partner_service, user, other_user):
        credential = PartnerCredentialFactory.create(user_id=user.id)

        with pytest.raises(CredentialNotFoundError):
            partner_service.update_credential(credential.id, other_user.id, {"partner_name": "x"})

    def test_update_public_key(self, partner_service, db_session, user, spki_pem, pkcs1_pem):
        created = _create(partner_service, user.id, public_key=spki_pem)
        before = db_session.get(PartnerCredential, created.id).public_key_fingerprint

        partner_service.update_public_key(created.id, user.id, {"public_key": pkcs1_pem})

        stored = db_session.get(PartnerCredential, created.id)
        assert stored.public_key == pkcs1_pem
        assert stored.public_key_fingerprint != before

    def test_update_public_key_rejects_invalid(self, partner_service, db_session, user, spki_pem):
        created = _create(partner_service, user.id, public_key=spki_pem)

        with pytest.raises(InvalidPublicKeyError) as exc_info:
            partner_service.update_public_key(created.id, user.id, {"public_key": spki_pem * 2})

        assert exc_info.value.error_code == ErrorCode.INVALID_FORMAT
        assert db_session.get(PartnerCredential, created.id).public_key == spki_pem

    @pytest.mark.parametrize("cleared", ["", "   ", None])
    def test_update_public_key_empty_clears_key(
        self, partner_service, db_session, user, spki_pem, cleared
    ):
        created = _create(partner_service, user.id, public_key=spki_pem)
        assert db_session.get(PartnerCredential, created.id).public_key_added_at is not None

        result = partner_service.update_public_key(created.id, user.id, {"public_key": cleared})

        stored = db_session.get(PartnerCredential, created.id)
        assert stored.public_key is None
        assert stored.public_key_fingerprint is None
        assert stored.public_key_added_at is None
        assert result.public_key_fingerprint is None


class TestLifecycle:
    def test_regenerate_secret(self, partner_service, user):
        created = _create(partner_service, user.id)

        rotated = partner_service.regenerate_secret(created.id, user.id)

        assert rotated.client_id == created.client_id
        assert rotated.channel_id == created.channel_id
        assert rotated.client_secret != created.client_secret
        assert rotated.client_secret_prefix == rotated.client_secret[:8] + "..."

    def test_rotation_invalidates_old_secret(self, partner_service, user):
        created = _create(partner_service, user.id)
        rotated = partner_service.regenerate_secret(created.id, user.id)

        with pytest.raises(CredentialNotFoundError):
            partner_service.validate_credential(created.client_id, created.client_secret)

        assert partner_service.validate_credential(rotated.client_id, rotated.client_secret).id == (
            created.id
        )

    def test_regenerate_other_owner(self, partner_service, user, other_user):
        credential = PartnerCredentialFactory.create(user_id=user.id)

        with pytest.raises(CredentialNotFoundError):
            partner_service.regenerate_secret(credential.id, other_user.id)

    def test_deactivate(self, partner_service, db_session, user):
        created = _create(partner_service, user.id)

        partner_service.deactivate_credential(created.id, user.id)

        assert db_session.get(PartnerCredential, created.id).status == RecordStatus.INACTIVE
        with pytest.raises(CredentialNotFoundError):
            partner_service.validate_credential(created.client_id, created.client_secret)

    def test_delete_is_soft_and_reserves_client_id(self, partner_service, db_session, user):
        created = _create(partner_service, user.id)

        partner_service.delete_credential(created.id, user.id)

        stored = db_session.get(PartnerCredential, created.id)
        assert stored.status == RecordStatus.DELETED
        assert stored.client_id == created.client_id
        with pytest.raises(CredentialNotFoundError):
            partner_service.delete_credential(created.id, user.id)


class TestValidateCredential:
    def test_valid_pair(self, partner_service, db_session, user):
        created = _create(partner_service, user.id, ip_whitelist=["10.0.0.1"])

        validated = partner_service.validate_credential(created.client_id, created.client_secret)

        assert validated.user_id == user.id
        assert validated.channel_id == created.channel_id
        assert validated.ip_whitelist == ["10.0.0.1"]
        assert db_session.get(PartnerCredential, created.id).last_used_at is not None

    def test_miss_and_mismatch_are_indistinguishable(self, partner_service, user):
        created = _create(partner_service, user.id)

        rendered = []
        for client_id, secret in [
            (created.client_id, "0" * 64),
            ("BAS" + "0" * 29, created.client_secret),
            ("", ""),
        ]:
            with pytest.raises(CredentialNotFoundError) as exc_info:
                partner_service.validate_credential(client_id, secret)
            error = exc_info.value.to_dict()["error"]
            rendered.append((error["code"], error["message"], tuple(error["context"])))

        assert len(set(rendered)) == 1
        assert created.client_id not in str(rendered)

    def test_expired_credential(self, partner_service, user):
        credential = PartnerCredentialFactory.create(
            user_id=user.id, expires_at=utc_now() - timedelta(minutes=1)
        )

        with pytest.raises(CredentialNotFoundError) as exc_info:
            partner_service.validate_credential(credential.client_id, credential.client_secret)

        assert exc_info.value.context["reason"] == "expired"

    def test_last_used_failure_does_not_fail_validation(self, partner_service, db_session, user):
        credential = PartnerCredentialFactory.create(user_id=user.id)

        with patch.object(
            db_session, "commit", side_effect=OperationalError("UPDATE", {}, Exception("locked"))
        ):
            validated = partner_service.validate_credential(
                credential.client_id, credential.client_secret
            )

        assert validated.id == credential.id
