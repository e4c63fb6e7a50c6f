"""Sign-up, sign-in, password reset and the request authentication gate."""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from app.core import security, validation
from app.core.config import Settings
from app.core.database import transaction
from app.core.email import EmailSender
from app.core.errors import AlreadyExistsError, AuthenticationError, BadRequestError, EmailDeliveryError
from app.models.models import User, ValidationToken, utcnow
from app.repositories.auth import AuthRepository

logger = logging.getLogger(__name__)

PASSWORD_RESET = "password_reset"
INVALID_CREDENTIALS = "invalid email or password"
INVALID_TOKEN = "invalid or expired token"


class AuthService:
    def __init__(self, db: Session, settings: Settings, mailer: Optional[EmailSender] = None):
        self.db = db
        self.settings = settings
        self.mailer = mailer
        self.repo = AuthRepository(db)

    def sign_up(self, email: str, password: str) -> uuid.UUID:
        validation.validate({"email": email, "password": password}, validation.SIGN_UP_RULES)
        if self.repo.get_user_by_email(email) is not None:
            raise AlreadyExistsError("user with email already exists")
        user = User(id=security.generate_id(), email=email, password=security.hash_password(password))
        self.repo.create_user(user)
        return user.id

    def sign_in(self, email: str, password: str) -> str:
        """Check credentials and return a signed access token."""
        validation.validate({"email": email, "password": password}, validation.SIGN_IN_RULES)
        user = self.repo.get_user_by_email(email)
        if user is None or not security.verify_password(password, user.password):
            logger.info("Sign-in rejected: bad credentials")
            raise AuthenticationError(INVALID_CREDENTIALS)
        return security.create_access_token(
            str(user.id),
            self.settings.jwt_secret,
            timedelta(hours=self.settings.jwt_expires_hours),
        )

    def authenticate(self, token: Optional[str]) -> User:
        """Resolve the user behind an access token or raise AuthenticationError.

        Goes through, in order: token present, signature and algorithm,
        expiry, subject parses as a UUID, subject is a live user. Every
        rejection looks the same to the caller.
        """
        if not token:
            logger.info("Auth rejected: no credential")
            raise AuthenticationError()
        try:
            claims = security.decode_access_token(token, self.settings.jwt_secret)
        except security.TokenError as e:
            logger.info(f"Auth rejected: {e}")
            raise AuthenticationError() from e
        try:
            user_id = uuid.UUID(str(claims["sub"]))
        except ValueError as e:
            logger.info("Auth rejected: subject is not a UUID")
            raise AuthenticationError() from e
        user = self.repo.get_user_by_id(user_id)
        if user is None:
            logger.info("Auth rejected: unknown user")
            raise AuthenticationError()
        return user

    def forgot_password(self, email: str) -> None:
        """Mail a reset link when the address is known; silent otherwise."""
        validation.validate({"email": email}, validation.FORGOT_PASSWORD_RULES)
        user = self.repo.get_user_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return

        token = ValidationToken(
            token=security.generate_secure_token(),
            type=PASSWORD_RESET,
            valid=True,
            user_id=user.id,
            expires_at=utcnow() + timedelta(minutes=self.settings.reset_token_ttl_minutes),
        )
        validation.validate({"token": token.token, "type": token.type}, validation.VALIDATION_TOKEN_RULES)
        self.repo.create_token(token)

        reset_url = f"{self.settings.app_url}/reset-password/{token.token}"
        try:
            self.mailer.send(
                [user.email],
                "Reset Password",
                f"Click the link to reset your password: <a href='{reset_url}' target='_blank'>Reset Password</a>",
            )
        except EmailDeliveryError:
            # answer as for an unknown address; the undelivered token is dropped
            logger.exception(f"Password reset mail for user {user.id} not delivered")
            with transaction(self.db):
                self.repo.invalidate_token(token)
            return
        logger.info(f"Password reset token issued for user {user.id}")

    def reset_password(self, token: str, password: str, now: Optional[datetime] = None) -> None:
        validation.validate({"password": password}, validation.RESET_PASSWORD_RULES)
        now = now or utcnow()
        record = self.repo.get_token(token)
        if record is None or record.type != PASSWORD_RESET:
            raise BadRequestError(INVALID_TOKEN)

        if not record.is_usable(now):
            with transaction(self.db):
                self.repo.invalidate_token(record)
            raise BadRequestError(INVALID_TOKEN)

        password_hash = security.hash_password(password)
        with transaction(self.db):
            if not self.repo.consume_token(record.token, now):
                raise BadRequestError(INVALID_TOKEN)
            if self.repo.update_password(record.user_id, password_hash) == 0:
                raise BadRequestError(INVALID_TOKEN)
        logger.info(f"Password reset for user {record.user_id}")
