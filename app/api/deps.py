from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.config import AUTH_COOKIE_NAME, Settings
from app.core.database import get_db
from app.core.email import EmailSender
from app.models.models import User
from app.services.auth import AuthService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_mailer(request: Request) -> EmailSender:
    return request.app.state.mailer


def get_auth_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    mailer: EmailSender = Depends(get_mailer),
) -> AuthService:
    return AuthService(db, settings, mailer)


def credential_from_request(request: Request) -> Optional[str]:
    """The auth cookie, falling back to an ``Authorization: Bearer`` header."""
    token = request.cookies.get(AUTH_COOKIE_NAME)
    if token:
        return token
    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def get_current_user(request: Request, auth: AuthService = Depends(get_auth_service)) -> User:
    return auth.authenticate(credential_from_request(request))
