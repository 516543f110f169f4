"""
Profile management for portal accounts.
"""

from typing import Any, Dict, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..context.operation_context import operation
from ..db.db_api_key_models import APIKey
from ..db.db_partner_credential_models import PartnerCredential
from ..db.db_user_models import User
from ..enums import RecordStatus
from ..exceptions import ErrorCode, RepositoryError, UserNotFoundError
from ..schemas.user_schemas import UserRead, UserUpdate
from ..utils.crud_helpers import get_record_by_id, update_record
from .base_service import SessionManagedService


class UserService(SessionManagedService):
    def __init__(self, session: Optional[Session] = None):
        super().__init__(session=session)

    def _get_active_user(self, user_id: str) -> User:
        user = get_record_by_id(self.session, User, user_id)
        if user is None or user.status != RecordStatus.ACTIVE:
            raise UserNotFoundError(user_id=user_id)
        return user

    @operation()
    def get_profile(self, user_id: str) -> UserRead:
        """
        Get the non-sensitive projection of an active account.

        Raises:
            UserNotFoundError: If the account is missing, inactive or deleted
        """
        return UserRead.model_validate(self._get_active_user(user_id))

    @operation()
    def update_profile(self, user_id: str, data: Union[UserUpdate, Dict[str, Any]]) -> UserRead:
        """Apply the non-empty profile fields of ``data``; empty ones are ignored."""
        changes = self._validate_input(UserUpdate, data).changes()
        user = self._get_active_user(user_id)

        if changes:
            user = update_record(self.session, User, user.id, changes)

        return UserRead.model_validate(user)

    @operation()
    def delete_account(self, user_id: str) -> None:
        """
        Logically delete an account.

        The row is kept with status ``deleted`` so its email stays reserved;
        the account's active API keys and partner credentials are revoked in
        the same transaction.
        """
        user = self._get_active_user(user_id)

        try:
            for model_class in (APIKey, PartnerCredential):
                self.session.query(model_class).filter(
                    model_class.user_id == user.id,
                    model_class.status == RecordStatus.ACTIVE,
                ).update({"status": RecordStatus.INACTIVE}, synchronize_session="fetch")
            user.status = RecordStatus.DELETED
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise RepositoryError(
                "Failed to delete account",
                error_code=ErrorCode.DATABASE_ERROR,
                cause=e,
                user_id=user_id,
            )

        self.logger.info("Deleted account", extra={"user_id": user_id})
