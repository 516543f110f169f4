"""
Base service implementation with common functionality for all services.

Each service owns (or is handed) a SQLAlchemy session. Pydantic input errors
are translated into the core's ValidationError without echoing the input.
"""

from contextlib import contextmanager
from typing import Any, Dict, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db.db_base import utc_now
from ..exceptions import ValidationError
from ..utils.logger import ContextAwareLogger, get_logger

TSchema = TypeVar("TSchema", bound=BaseModel)


class SessionManagedService:
    """
    Service that owns and manages its own database session.

    A session passed in by the caller is used as-is and left open; otherwise
    one is taken from the global DatabaseManager and closed with the service.
    """

    def __init__(self, session: Optional[Session] = None, logger: Optional[ContextAwareLogger] = None):
        """
        Args:
            session: Optional existing session (for testing or coordination)
            logger: Optional logger instance
        """
        if session is not None:
            self.session = session
            self._owns_session = False
        else:
            self.session = self._create_session()
            self._owns_session = True

        self.logger = logger or get_logger()

    def _create_session(self) -> Session:
        from ..db.db_config import get_db_manager

        return get_db_manager().get_session()

    def _validate_input(
        self, schema_class: Type[TSchema], data: Union[TSchema, Dict[str, Any]]
    ) -> TSchema:
        """Coerce raw input into a schema, reporting failures without echoing input values."""
        if isinstance(data, schema_class):
            return data
        try:
            return schema_class.model_validate(data)
        except PydanticValidationError as e:
            errors = e.errors(include_url=False, include_context=False, include_input=False)
            fields = [".".join(str(part) for part in error["loc"]) for error in errors]
            raise ValidationError(
                f"Invalid {schema_class.__name__}: " + "; ".join(
                    f"{field}: {error['msg']}" for field, error in zip(fields, errors)
                ),
                field=fields[0] if fields else None,
                validation_errors=errors,
            ) from e

    def _record_last_used(self, record: Any) -> None:
        """
        Stamp ``last_used_at`` on a credential as a best-effort side effect.

        A failed write is rolled back and logged; it never fails the caller.
        """
        try:
            record.last_used_at = utc_now()
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            self.logger.warning(
                "Failed to record credential use",
                extra={
                    "model": type(record).__name__,
                    "record_id": getattr(record, "id", None),
                    "error_type": type(e).__name__,
                },
            )

    @contextmanager
    def transaction(self):
        """
        Context manager for transactional operations.

        Usage:
            with service.transaction():
                ...  # commits on success, rolls back on exception
        """
        try:
            yield self.session
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def commit(self):
        if self._owns_session:
            self.session.commit()

    def rollback(self):
        if self._owns_session:
            self.session.rollback()

    def close(self):
        """Close the session if we own it."""
        if self._owns_session and self.session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.rollback()
        else:
            self.commit()
        self.close()
