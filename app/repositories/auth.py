import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.errors import AlreadyExistsError
from app.models.models import User, ValidationToken, utcnow

logger = logging.getLogger(__name__)


class AuthRepository:
    def __init__(self, db: Session):
        self.db = db

    def create_user(self, user: User) -> User:
        try:
            with transaction(self.db):
                self.db.add(user)
                self.db.flush()
        except IntegrityError as e:
            raise AlreadyExistsError("user with email already exists") from e
        self.db.refresh(user)
        logger.info(f"Created user id={user.id}")
        return user

    def get_user_by_email(self, email: str) -> Optional[User]:
        return (
            self.db.query(User)
            .filter(User.email == email, User.deleted_at.is_(None))
            .first()
        )

    def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        return (
            self.db.query(User)
            .filter(User.id == user_id, User.deleted_at.is_(None))
            .first()
        )

    def update_password(self, user_id: UUID, password_hash: str) -> int:
        """Set a live user's password hash; returns the number of rows changed."""
        return (
            self.db.query(User)
            .filter(User.id == user_id, User.deleted_at.is_(None))
            .update({"password": password_hash, "updated_at": utcnow()}, synchronize_session=False)
        )

    def create_token(self, token: ValidationToken) -> ValidationToken:
        with transaction(self.db):
            self.db.add(token)
        return token

    def get_token(self, token: str) -> Optional[ValidationToken]:
        return self.db.query(ValidationToken).filter(ValidationToken.token == token).first()

    def invalidate_token(self, token: ValidationToken) -> None:
        """Flip ``valid`` off; nothing else on the row changes."""
        self.db.query(ValidationToken).filter(ValidationToken.token == token.token).update(
            {"valid": False}, synchronize_session=False
        )

    def consume_token(self, token: str, now: datetime) -> bool:
        """Invalidate a token only if it is still valid and unexpired.

        The check and the write are one UPDATE, so of two concurrent
        consumers exactly one sees True.
        """
        matched = (
            self.db.query(ValidationToken)
            .filter(
                ValidationToken.token == token,
                ValidationToken.valid.is_(True),
                ValidationToken.expires_at > now,
            )
            .update({"valid": False}, synchronize_session=False)
        )
        return matched == 1
