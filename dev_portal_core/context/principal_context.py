"""
Principal context management for the credential core.

Once the verification gateway has resolved a request to a principal, the
principal ID is bound here so that log records and operation context can
carry it without threading it through every call.
"""

import threading
from contextlib import contextmanager
from typing import Generator, Optional

from ..exceptions import ErrorCode, ValidationError
from ..utils.logger import get_logger


class PrincipalContext:
    """
    Tracks the authenticated principal for the current thread.

    This class provides utilities for getting and setting the current
    principal ID using thread-local storage.
    """

    _thread_local = threading.local()

    @classmethod
    def set_current_principal(cls, principal_id: str) -> None:
        """
        Set the current principal ID for the execution context.

        Raises:
            ValidationError: If principal_id is empty
        """
        if not principal_id or not isinstance(principal_id, str) or not principal_id.strip():
            raise ValidationError(
                "principal_id must be a non-empty string",
                error_code=ErrorCode.MISSING_REQUIRED,
                field="principal_id",
            )

        cls._thread_local.principal_id = principal_id.strip()
        get_logger().debug("Current principal set", extra={"principal": principal_id})

    @classmethod
    def get_current_principal_id(cls) -> Optional[str]:
        """Get the current principal ID, or None if no principal is bound."""
        return getattr(cls._thread_local, "principal_id", None)

    @classmethod
    def clear_current_principal(cls) -> None:
        if hasattr(cls._thread_local, "principal_id"):
            delattr(cls._thread_local, "principal_id")


@contextmanager
def principal_context(principal_id: str) -> Generator[None, None, None]:
    """
    Bind a principal for the duration of the block and restore the previous one afterward.

    Args:
        principal_id: ID of the authenticated principal
    """
    previous_principal = PrincipalContext.get_current_principal_id()
    PrincipalContext.set_current_principal(principal_id)
    try:
        yield
    finally:
        if previous_principal:
            PrincipalContext.set_current_principal(previous_principal)
        else:
            PrincipalContext.clear_current_principal()
