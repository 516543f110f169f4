"""
Unit test conftest.py - Component-specific fixtures.

This module provides fixtures specific to unit testing:
- Service fixtures bound to the test session
- Principals and an RSA key pair for credential tests
"""

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from dev_portal_core.services.api_key_service import APIKeyService
from dev_portal_core.services.auth_service import AuthService
from dev_portal_core.services.credential_policy import CredentialQuotaPolicy
from dev_portal_core.services.partner_credential_service import PartnerCredentialService
from dev_portal_core.services.user_service import UserService
from tests.fixtures.factories import UserFactory

# ==================== SERVICE FIXTURES ====================


@pytest.fixture(scope="function")
def auth_service(db_session, token_service):
    """Auth service with test session and controllable clock."""
    return AuthService(session=db_session, token_service=token_service)


@pytest.fixture(scope="function")
def user_service(db_session):
    return UserService(session=db_session)


@pytest.fixture(scope="function")
def quota_policy(db_session):
    return CredentialQuotaPolicy(db_session)


@pytest.fixture(scope="function")
def api_key_service(db_session):
    return APIKeyService(session=db_session)


@pytest.fixture(scope="function")
def partner_service(db_session):
    return PartnerCredentialService(session=db_session)


# ==================== DATA FIXTURES ====================


@pytest.fixture
def user(db_session):
    """An active local account."""
    return UserFactory.create()


@pytest.fixture
def other_user(db_session):
    return UserFactory.create()


@pytest.fixture(scope="session")
def rsa_private_key():
    """A 2048-bit RSA key pair shared by all tests (generation is slow)."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def spki_pem(rsa_private_key) -> str:
    """Public key as an X.509 SubjectPublicKeyInfo ``PUBLIC KEY`` block."""
    return (
        rsa_private_key.public_key()
        .public_bytes(serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo)
        .decode("ascii")
    )


@pytest.fixture(scope="session")
def pkcs1_pem(rsa_private_key) -> str:
    """Public key as a PKCS#1 ``RSA PUBLIC KEY`` block."""
    return (
        rsa_private_key.public_key()
        .public_bytes(serialization.Encoding.PEM, serialization.PublicFormat.PKCS1)
        .decode("ascii")
    )
