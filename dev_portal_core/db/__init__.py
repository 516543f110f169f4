"""
SQLAlchemy models and database management for the credential core.
"""

# Import base definitions
from .db_base import JSON, TimestampMixin, UUIDMixin, as_utc, is_expired, str_enum_type, utc_now

# Import configuration
from .db_config import (
    Base,
    DatabaseConfig,
    DatabaseManager,
    close_db,
    get_db_manager,
    import_all_models,
    initialize_db,
    set_db_manager,
)

# Import models
from .db_api_key_models import APIKey
from .db_partner_credential_models import PartnerCredential
from .db_user_models import User

__all__ = [
    # Base definitions
    "Base",
    "JSON",
    "TimestampMixin",
    "UUIDMixin",
    "as_utc",
    "is_expired",
    "str_enum_type",
    "utc_now",
    # Configuration
    "DatabaseConfig",
    "DatabaseManager",
    "close_db",
    "get_db_manager",
    "import_all_models",
    "initialize_db",
    "set_db_manager",
    # Models
    "User",
    "APIKey",
    "PartnerCredential",
]
