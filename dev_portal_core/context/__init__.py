"""Execution context (authenticated principal, operation tracking) for the credential core."""

from .operation_context import OperationContext, OperationHandler, operation
from .principal_context import PrincipalContext, principal_context

__all__ = [
    "OperationContext",
    "OperationHandler",
    "operation",
    "PrincipalContext",
    "principal_context",
]
