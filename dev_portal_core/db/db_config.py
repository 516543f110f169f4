"""
Database configuration and the process-wide session manager.

Account and credential rows live in SQLite during development and tests and
in PostgreSQL in production. ``DatabaseConfig.from_env`` reads the ``DB_*``
environment variables; tests build a config directly.
"""

import os
from typing import Any, Optional

from pydantic import BaseModel, Field
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, scoped_session, sessionmaker

from ..exceptions import ErrorCode, ServiceError, ValidationError
from ..utils import get_logger

# Base class for all SQLAlchemy models
Base: Any = declarative_base()

SUPPORTED_DB_TYPES = ("postgres", "sqlite")


class DatabaseConfig(BaseModel):
    """Connection settings for the credential store."""

    db_type: str = "postgres"
    database: str
    host: Optional[str] = None
    port: int = 5432
    username: Optional[str] = None
    password: Optional[str] = Field(None, repr=False)
    pool_size: int = Field(5, gt=0)
    max_overflow: int = Field(10, ge=0)
    pool_timeout: int = Field(30, gt=0)
    echo: bool = False

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """
        Build a config from ``DB_TYPE`` (default postgres), ``DB_NAME``, ``DB_HOST``,
        ``DB_PORT``, ``DB_USER``, ``DB_PASSWORD``, ``DB_POOL_SIZE``,
        ``DB_MAX_OVERFLOW``, ``DB_POOL_TIMEOUT`` and ``DB_ECHO``.
        """
        env = os.environ.get
        return cls(
            db_type=env("DB_TYPE", "postgres"),
            database=env("DB_NAME", "dev_portal"),
            host=env("DB_HOST", "localhost"),
            port=int(env("DB_PORT", "5432")),
            username=env("DB_USER", "postgres"),
            password=env("DB_PASSWORD"),
            pool_size=int(env("DB_POOL_SIZE", "5")),
            max_overflow=int(env("DB_MAX_OVERFLOW", "10")),
            pool_timeout=int(env("DB_POOL_TIMEOUT", "30")),
            echo=env("DB_ECHO", "false").lower() == "true",
        )

    @property
    def is_sqlite(self) -> bool:
        return self.db_type.lower() == "sqlite"

    def get_connection_string(self) -> str:
        """
        Raises:
            ValidationError: For an unknown database type or incomplete Postgres settings
        """
        db_type = self.db_type.lower()
        if db_type not in SUPPORTED_DB_TYPES:
            raise ValidationError(
                f"Unsupported database type: {self.db_type}",
                error_code=ErrorCode.INVALID_FORMAT,
                field="db_type",
            )

        if self.is_sqlite:
            return f"sqlite:///{self.database}"

        missing = [
            name for name in ("host", "database", "username", "password") if not getattr(self, name)
        ]
        if missing:
            raise ValidationError(
                "Missing required Postgres configuration parameters",
                error_code=ErrorCode.MISSING_REQUIRED,
                field="database_config",
                missing=missing,
            )
        return (
            f"postgresql://{self.username}:{self.password}@"
            f"{self.host}:{self.port}/{self.database}"
        )


class DatabaseManager:
    """Owns the engine and a thread-scoped session registry for one database."""

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.engine = self._create_engine()
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        self.scoped_session = scoped_session(self.session_factory)

    def _create_engine(self):
        connection_string = self.config.get_connection_string()
        if self.config.is_sqlite:
            # One in-memory database shared across threads
            return create_engine(
                connection_string,
                echo=self.config.echo,
                connect_args={"check_same_thread": False},
            )
        return create_engine(
            connection_string,
            echo=self.config.echo,
            pool_size=self.config.pool_size,
            max_overflow=self.config.max_overflow,
            pool_timeout=self.config.pool_timeout,
        )

    def create_tables(self) -> None:
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        return self.scoped_session()

    def close(self) -> None:
        self.scoped_session.remove()
        self.engine.dispose()


def import_all_models():
    """Import all models so they are registered with the SQLAlchemy metadata."""
    from sqlalchemy.orm import configure_mappers

    from .db_api_key_models import APIKey  # noqa
    from .db_partner_credential_models import PartnerCredential  # noqa
    from .db_user_models import User  # noqa

    configure_mappers()


_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """
    Raises:
        ServiceError: If ``initialize_db`` has not been called
    """
    if _db_manager is None:
        raise ServiceError(
            "Database manager not initialized. Call initialize_db() first.",
            error_code=ErrorCode.CONFIGURATION_ERROR,
            operation="get_db_manager",
        )
    return _db_manager


def set_db_manager(manager: Optional[DatabaseManager]) -> None:
    global _db_manager
    _db_manager = manager


def initialize_db(config: Optional[DatabaseConfig] = None) -> DatabaseManager:
    """
    Create the global database manager and its tables.

    Args:
        config: Connection settings; read from the environment when omitted
    """
    config = config or DatabaseConfig.from_env()
    get_logger().info("Initializing database", extra={"db_type": config.db_type})

    manager = DatabaseManager(config)
    import_all_models()
    manager.create_tables()

    set_db_manager(manager)
    return manager


def close_db() -> None:
    """Dispose of the global manager's engine and forget it."""
    global _db_manager
    if _db_manager is not None:
        _db_manager.close()
        _db_manager = None
