"""
Operation context for handling cross-cutting concerns.

This module provides context management for service operations: ENTER/EXIT
logging with duration, correlation ID propagation and error enrichment.
Operation arguments are never logged because they routinely carry passwords,
API keys, client secrets and tokens.
"""

import time
import uuid
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Iterator, Optional, TypeVar, Union, cast

from ..config import get_config
from ..constants import LogContextKey
from ..exceptions import BaseError, get_correlation_id, set_correlation_id
from ..utils.logger import ContextAwareLogger, get_logger
from .principal_context import PrincipalContext


class OperationContext:
    """Context for a specific operation."""

    def __init__(self, operation_name: str, correlation_id: Optional[str] = None, **context):
        self.operation_name = operation_name
        self.operation_id = str(uuid.uuid4())

        # Reuse the caller's correlation ID so nested operations share it
        self.correlation_id = correlation_id or get_correlation_id() or str(uuid.uuid4())
        set_correlation_id(self.correlation_id)

        self.context = context
        self.context[LogContextKey.OPERATION_ID.value] = self.operation_id
        self.context[LogContextKey.CORRELATION_ID.value] = self.correlation_id

        self.start_time = time.time()

    @property
    def duration_ms(self) -> float:
        """Get the operation duration in milliseconds."""
        return (time.time() - self.start_time) * 1000

    def add_context(self, **kwargs) -> None:
        self.context.update(kwargs)


class OperationHandler:
    """Handles operation logging and error enrichment."""

    def __init__(self, logger: Optional[ContextAwareLogger] = None):
        self.logger = logger if logger is not None else get_logger()

    @contextmanager
    def operation(self, name: str, **context) -> Iterator[OperationContext]:
        """Context manager for operations."""
        principal_id = PrincipalContext.get_current_principal_id()
        if principal_id and LogContextKey.PRINCIPAL_ID.value not in context:
            context[LogContextKey.PRINCIPAL_ID.value] = principal_id

        op_ctx = OperationContext(name, **context)
        ids = {
            LogContextKey.OPERATION_ID.value: op_ctx.operation_id,
            LogContextKey.CORRELATION_ID.value: op_ctx.correlation_id,
        }

        self.logger.info(f"ENTER: {name}", extra={**context, **ids})

        try:
            yield op_ctx
        except BaseError as e:
            e.add_context(
                operation_name=name,
                operation_id=op_ctx.operation_id,
                operation_duration_ms=op_ctx.duration_ms,
            )
            # BaseError already logged itself; record the operation outcome
            log = self.logger.error if e.status_code >= 500 else self.logger.warning
            log(
                f"ERROR: {name} -> {e.error_code.value}: {e.message}",
                extra={
                    **context,
                    **ids,
                    LogContextKey.DURATION_MS.value: op_ctx.duration_ms,
                    "error_id": e.error_id,
                    LogContextKey.ERROR_CODE.value: e.error_code.value,
                    LogContextKey.STATUS.value: "error",
                },
            )
            raise
        except Exception as e:
            self.logger.exception(
                f"ERROR: {name} -> {type(e).__name__}",
                extra={
                    **context,
                    **ids,
                    LogContextKey.DURATION_MS.value: op_ctx.duration_ms,
                    "error_type": type(e).__name__,
                    LogContextKey.STATUS.value: "error",
                },
            )
            raise
        else:
            self.logger.info(
                f"EXIT: {name}",
                extra={
                    **context,
                    **ids,
                    LogContextKey.DURATION_MS.value: op_ctx.duration_ms,
                    LogContextKey.STATUS.value: "success",
                },
            )


F = TypeVar("F", bound=Callable[..., Any])


def operation(name: Union[Optional[str], Callable] = None):
    """
    Decorator for service operations.

    Args:
        name: Optional operation name. If not provided, one is built from the
             module, class and function names.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            if not get_config().features.enable_operation_context:
                return func(*args, **kwargs)

            context = {LogContextKey.SOURCE_MODULE.value: func.__module__}

            if name is not None:
                op_name = name
            else:
                op_name = func.__name__
                if args and hasattr(args[0], "__class__"):
                    op_name = f"{args[0].__class__.__name__}.{op_name}"
                op_name = f"{func.__module__.split('.')[-1]}.{op_name}"

            with OperationHandler().operation(op_name, **context):
                return func(*args, **kwargs)

        return cast(F, wrapper)

    # Used without parentheses
    if callable(name):
        func, name = name, None
        return decorator(func)

    return decorator
