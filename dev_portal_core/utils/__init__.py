"""Utility modules for the developer portal credential core."""

# Generic CRUD helpers
from .crud_helpers import (
    count_records,
    create_record,
    get_record,
    get_record_by_id,
    list_records,
    record_exists,
    set_record_status,
    update_record,
)

# Hash utilities
from .hash_utils import constant_time_equals, dummy_hash, hash_secret, lookup_hash, verify_secret

# Logging utilities
from .logger import (
    AzureQueueHandler,
    ContextAwareLogger,
    PrincipalContextFilter,
    configure_logging,
    get_logger,
    reset_logging,
)

# Public key utilities
from .public_key_utils import format_fingerprint, mask_public_key, validate_public_key

# Secret generation
from .secret_utils import (
    GeneratedAPIKey,
    GeneratedClientCredentials,
    generate_api_key,
    generate_channel_id,
    generate_client_credentials,
    generate_client_id,
    generate_client_secret,
    secret_prefix,
)

__all__ = [
    # Generic CRUD helpers
    "create_record",
    "get_record",
    "get_record_by_id",
    "update_record",
    "set_record_status",
    "list_records",
    "count_records",
    "record_exists",
    # Hash utilities
    "hash_secret",
    "verify_secret",
    "lookup_hash",
    "constant_time_equals",
    "dummy_hash",
    # Logging utilities
    "ContextAwareLogger",
    "PrincipalContextFilter",
    "AzureQueueHandler",
    "configure_logging",
    "get_logger",
    "reset_logging",
    # Public key utilities
    "validate_public_key",
    "format_fingerprint",
    "mask_public_key",
    # Secret generation
    "GeneratedAPIKey",
    "GeneratedClientCredentials",
    "generate_api_key",
    "generate_client_id",
    "generate_client_secret",
    "generate_client_credentials",
    "generate_channel_id",
    "secret_prefix",
]
