"""
Generic CRUD helpers shared by the credential services.

These functions work with any of the core's SQLAlchemy models. Records owned
by a principal can be scoped with ``owner_id`` (matched against the model's
``user_id`` column), and logically deleted rows can be hidden with
``exclude_status``. Field values are never logged since several columns hold
secret material.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..exceptions import ErrorCode, RepositoryError, not_found
from ..utils.logger import get_logger

T = TypeVar("T")


def _scoped_query(
    session: Session,
    model_class: Type[T],
    filters: Optional[Dict[str, Any]] = None,
    owner_id: Optional[str] = None,
    exclude_status: Optional[Iterable[Any]] = None,
) -> Query:
    query = session.query(model_class)

    if owner_id and hasattr(model_class, "user_id"):
        query = query.filter(model_class.user_id == owner_id)  # type: ignore[attr-defined]

    if filters:
        for key, value in filters.items():
            if hasattr(model_class, key) and value is not None:
                query = query.filter(getattr(model_class, key) == value)

    if exclude_status and hasattr(model_class, "status"):
        query = query.filter(
            model_class.status.notin_(list(exclude_status))  # type: ignore[attr-defined]
        )

    return query


def create_record(session: Session, model_class: Type[T], data: Dict[str, Any]) -> T:
    """
    Generic create operation for any model.

    Args:
        session: Database session
        model_class: SQLAlchemy model class
        data: Column values for the new row

    Returns:
        Created record instance

    Raises:
        RepositoryError: If the insert fails
    """
    logger = get_logger()

    now = datetime.now(timezone.utc)
    if hasattr(model_class, "created_at"):
        data.setdefault("created_at", now)
    if hasattr(model_class, "updated_at"):
        data.setdefault("updated_at", now)

    try:
        record = model_class(**data)
        session.add(record)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise RepositoryError(
            f"Failed to create {model_class.__name__}",
            error_code=ErrorCode.DATABASE_ERROR,
            cause=e,
            model=model_class.__name__,
        )

    logger.info(
        f"Created {model_class.__name__}",
        extra={
            "model": model_class.__name__,
            "record_id": getattr(record, "id", None),
            "owner_id": data.get("user_id"),
        },
    )
    return record


def get_record(
    session: Session,
    model_class: Type[T],
    filters: Dict[str, Any],
    owner_id: Optional[str] = None,
    exclude_status: Optional[Iterable[Any]] = None,
) -> Optional[T]:
    """
    Generic get operation for any model.

    Filters whose value is None are ignored, so callers must always pass the
    identifying key.
    """
    return _scoped_query(session, model_class, filters, owner_id, exclude_status).first()


def get_record_by_id(
    session: Session,
    model_class: Type[T],
    record_id: str,
    owner_id: Optional[str] = None,
    exclude_status: Optional[Iterable[Any]] = None,
) -> Optional[T]:
    return get_record(session, model_class, {"id": record_id}, owner_id, exclude_status)


def update_record(
    session: Session,
    model_class: Type[T],
    record_id: str,
    data: Dict[str, Any],
    owner_id: Optional[str] = None,
    skip_none: bool = True,
) -> T:
    """
    Generic update operation for any model, committed as a single write.

    Args:
        session: Database session
        model_class: SQLAlchemy model class
        record_id: Record ID to update
        data: Column values to apply
        owner_id: Optional owner scope
        skip_none: Leave columns untouched when the new value is None

    Returns:
        Updated record instance

    Raises:
        RepositoryError: 404 if the record does not exist, 500 if the write fails
    """
    logger = get_logger()

    record = get_record_by_id(session, model_class, record_id, owner_id)
    if not record:
        raise not_found(model_class.__name__, record_id=record_id)

    try:
        for key, value in data.items():
            if hasattr(record, key) and (value is not None or not skip_none):
                setattr(record, key, value)

        if hasattr(record, "updated_at"):
            record.updated_at = datetime.now(timezone.utc)

        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise RepositoryError(
            f"Failed to update {model_class.__name__}",
            error_code=ErrorCode.DATABASE_ERROR,
            cause=e,
            model=model_class.__name__,
            record_id=record_id,
        )

    logger.info(
        f"Updated {model_class.__name__}",
        extra={
            "model": model_class.__name__,
            "record_id": record_id,
            "fields": ",".join(sorted(data)),
        },
    )
    return record


def set_record_status(
    session: Session,
    model_class: Type[T],
    record_id: str,
    status: Any,
    owner_id: Optional[str] = None,
) -> T:
    """Flip the lifecycle status of a record. Rows are never physically removed."""
    return update_record(session, model_class, record_id, {"status": status}, owner_id)


def list_records(
    session: Session,
    model_class: Type[T],
    filters: Optional[Dict[str, Any]] = None,
    owner_id: Optional[str] = None,
    exclude_status: Optional[Iterable[Any]] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    order_by: Optional[str] = None,
) -> List[T]:
    """
    Generic list operation for any model.

    Without ``order_by`` the newest records come first.
    """
    query = _scoped_query(session, model_class, filters, owner_id, exclude_status)

    if order_by and hasattr(model_class, order_by):
        query = query.order_by(getattr(model_class, order_by))
    elif hasattr(model_class, "created_at"):
        query = query.order_by(model_class.created_at.desc())  # type: ignore[attr-defined]

    if offset:
        query = query.offset(offset)
    if limit:
        query = query.limit(limit)

    return query.all()


def count_records(
    session: Session,
    model_class: Type[T],
    filters: Optional[Dict[str, Any]] = None,
    owner_id: Optional[str] = None,
    exclude_status: Optional[Iterable[Any]] = None,
) -> int:
    return _scoped_query(session, model_class, filters, owner_id, exclude_status).count()


def record_exists(
    session: Session,
    model_class: Type[T],
    filters: Dict[str, Any],
    owner_id: Optional[str] = None,
) -> bool:
    return get_record(session, model_class, filters, owner_id) is not None
