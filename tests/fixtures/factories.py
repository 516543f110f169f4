"""
Factory Boy factories for generating consistent test data.

These factories create realistic principals, API keys and partner
credentials directly in the database, bypassing the services so tests can
arrange states (expired, revoked, deleted) the services would not produce.
"""

import factory

from dev_portal_core.db import APIKey, PartnerCredential, User
from dev_portal_core.enums import AuthProvider, CredentialEnvironment, RecordStatus
from dev_portal_core.utils.hash_utils import hash_secret, lookup_hash
from dev_portal_core.utils.secret_utils import (
    generate_api_key,
    generate_channel_id,
    generate_client_id,
    generate_client_secret,
    secret_prefix,
)

DEFAULT_PASSWORD = "correct-horse-battery"

# ==================== BASE FACTORIES ====================


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Base factory with common patterns."""

    class Meta:
        abstract = True
        sqlalchemy_session_persistence = "commit"


# ==================== PRINCIPAL FACTORIES ====================


class UserFactory(BaseFactory):
    """Local account with a known password."""

    class Meta:
        model = User

    id = factory.Faker("uuid4")
    email = factory.Sequence(lambda n: f"developer{n}@example.com")
    password_hash = factory.LazyFunction(lambda: hash_secret(DEFAULT_PASSWORD, rounds=4))
    provider = AuthProvider.LOCAL
    provider_id = None
    is_verified = False
    full_name = factory.Faker("name")
    status = RecordStatus.ACTIVE


class FederatedUserFactory(UserFactory):
    """Account created through an external identity provider."""

    password_hash = None
    provider = AuthProvider.GOOGLE
    provider_id = factory.Sequence(lambda n: f"google-subject-{n}")
    is_verified = True


# ==================== CREDENTIAL FACTORIES ====================


class APIKeyFactory(BaseFactory):
    """
    API key row. The plaintext key is available as the ``raw_key`` parameter:

        key = APIKeyFactory(raw_key="bas_" + "ab" * 32)
    """

    class Meta:
        model = APIKey

    class Params:
        raw_key = factory.LazyFunction(lambda: generate_api_key().full_key)

    id = factory.Faker("uuid4")
    user_id = factory.LazyFunction(lambda: UserFactory.create().id)
    name = factory.Sequence(lambda n: f"key {n}")
    key_prefix = factory.LazyAttribute(lambda o: o.raw_key[:12])
    key_hash = factory.LazyAttribute(lambda o: hash_secret(o.raw_key, rounds=4, field="api_key"))
    lookup_hash = factory.LazyAttribute(lambda o: lookup_hash(o.raw_key))
    environment = CredentialEnvironment.SANDBOX
    status = RecordStatus.ACTIVE
    expires_at = None


class PartnerCredentialFactory(BaseFactory):
    """Partner client credential without a public key."""

    class Meta:
        model = PartnerCredential

    id = factory.Faker("uuid4")
    user_id = factory.LazyFunction(lambda: UserFactory.create().id)
    client_id = factory.LazyFunction(generate_client_id)
    client_secret = factory.LazyFunction(generate_client_secret)
    client_secret_prefix = factory.LazyAttribute(lambda o: secret_prefix(o.client_secret))
    partner_name = factory.Faker("company")
    channel_id = factory.LazyFunction(generate_channel_id)
    environment = CredentialEnvironment.SANDBOX
    ip_whitelist = factory.LazyFunction(list)
    status = RecordStatus.ACTIVE
    expires_at = None


# ==================== FACTORY CONFIGURATION ====================


def configure_factories(session):
    """Configure all factories to use the provided session."""
    factories = [
        UserFactory,
        FederatedUserFactory,
        APIKeyFactory,
        PartnerCredentialFactory,
    ]

    for factory_class in factories:
        factory_class._meta.sqlalchemy_session = session
