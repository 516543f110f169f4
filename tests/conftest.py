"""
Test fixtures for the credential core.

This module provides shared test fixtures including configuration,
database setup, model factories and common test utilities.
"""

import pytest
from sqlalchemy.orm import Session

from dev_portal_core.config import AppConfig, SecurityConfig, TokenConfig, reset_config, set_config
from dev_portal_core.context.principal_context import PrincipalContext
from dev_portal_core.db import DatabaseConfig, DatabaseManager, import_all_models
from dev_portal_core.db.db_config import Base, initialize_db
from dev_portal_core.exceptions import clear_correlation_id
from dev_portal_core.services.token_service import TokenService
from dev_portal_core.utils.logger import reset_logging
from tests.fixtures.factories import configure_factories

TEST_JWT_SECRET = "test-signing-secret-0123456789abcdef0123456789"
TEST_LOOKUP_SECRET = "test-lookup-secret-0123456789abcdef"


class FakeClock:
    """Controllable Unix clock for token expiry tests."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def app_config():
    """Install a fast, deterministic configuration for every test."""
    config = AppConfig(
        environment="test",
        tokens=TokenConfig(secret=TEST_JWT_SECRET, expiry_hours=1, algorithm="HS256"),
        security=SecurityConfig(
            bcrypt_rounds=4,
            api_key_lookup_secret=TEST_LOOKUP_SECRET,
            max_api_keys_per_user=10,
            max_partner_credentials_per_user=5,
        ),
    )
    set_config(config)

    yield config

    reset_config()
    reset_logging()
    PrincipalContext.clear_current_principal()
    clear_correlation_id()


@pytest.fixture(scope="session")
def db_config() -> DatabaseConfig:
    """SQLite in-memory database configuration for testing."""
    return DatabaseConfig(
        db_type="sqlite",
        database=":memory:",
        echo=False,
    )


@pytest.fixture(scope="session")
def db_manager(db_config: DatabaseConfig) -> DatabaseManager:
    """Create and initialize the database manager with all models registered."""
    import_all_models()
    return initialize_db(db_config)


@pytest.fixture(scope="function")
def db_session(db_manager: DatabaseManager) -> Session:
    """
    Fresh database session for each test.

    Tables are created before and dropped after every test so tests never
    see each other's rows.
    """
    Base.metadata.create_all(db_manager.engine)
    session = db_manager.get_session()
    configure_factories(session)

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(db_manager.engine)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token_service(clock: FakeClock) -> TokenService:
    """Token service signing with the test secret and a controllable clock."""
    return TokenService(secret=TEST_JWT_SECRET, expiry_hours=1, clock=clock)
