import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient

from app.core import security
from app.core.config import AUTH_COOKIE_NAME
from app.core.errors import BadRequestError
from app.main import create_app
from app.models.models import User, ValidationToken, utcnow
from app.repositories.auth import AuthRepository
from app.services.auth import AuthService
from conftest import TEST_SECRET, RecordingMailer, login, sign_up


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def signin(client, email, password="secret"):
    return client.post("/v1/auth/signin/credentials", json={"email": email, "password": password})


def test_signup_rejects_invalid_payloads(client):
    r = client.post("/v1/auth/signup/credentials", json={"email": "not-an-email", "password": "secret"})
    assert r.status_code == 422
    assert r.json() == {"message": "email is an invalid email"}

    r = client.post("/v1/auth/signup/credentials", json={"email": "a@b.com"})
    assert r.status_code == 422
    assert r.json() == {"message": "password is required"}

    r = client.post("/v1/auth/signup/credentials", content="{not json",
                    headers={"Content-Type": "application/json"})
    assert r.status_code == 400


def test_signup_duplicate_email(client):
    sign_up(client, "dup@mybooks.io")
    r = client.post("/v1/auth/signup/credentials", json={"email": "dup@mybooks.io", "password": "other"})
    assert r.status_code == 409
    assert r.json()["message"] == "user with email already exists"


def test_signin_unknown_email_looks_like_bad_password(client):
    r = signin(client, "nobody@mybooks.io")
    assert r.status_code == 401
    assert r.json()["message"] == "invalid email or password"
    assert AUTH_COOKIE_NAME not in r.cookies


def test_signin_sets_http_only_cookie(client, settings):
    sign_up(client, "cookie@mybooks.io")
    r = signin(client, "cookie@mybooks.io")
    header = r.headers["set-cookie"].lower()
    assert "httponly" in header
    assert "samesite=lax" in header
    assert f"max-age={settings.jwt_expires_hours * 3600}" in header


def test_signout_clears_cookie(client):
    sign_up(client, "leaving@mybooks.io")
    signin(client, "leaving@mybooks.io")
    assert client.get("/v1/auth/validate-token").status_code == 200

    r = client.post("/v1/auth/signout")
    assert r.status_code == 200
    assert r.json()["message"] == "signed out successfully"
    assert client.get("/v1/auth/validate-token").status_code == 401


def test_gate_rejects_missing_or_bad_credentials(client):
    user_id = sign_up(client, "gate@mybooks.io")
    exp = datetime.now(timezone.utc) + timedelta(hours=1)
    bad_tokens = [
        "garbage",
        security.create_access_token(user_id, TEST_SECRET, timedelta(seconds=-5)),
        security.create_access_token(user_id, "another-secret", timedelta(hours=1)),
        jwt.encode({"sub": user_id, "exp": exp}, TEST_SECRET, algorithm="HS512"),
        jwt.encode({"sub": user_id}, TEST_SECRET, algorithm="HS256"),
        security.create_access_token("not-a-uuid", TEST_SECRET, timedelta(hours=1)),
        security.create_access_token(str(uuid.uuid4()), TEST_SECRET, timedelta(hours=1)),
    ]

    r = client.get("/v1/auth/validate-token")
    assert r.status_code == 401
    assert r.json() == {"message": "unauthorized"}

    for token in bad_tokens:
        r = client.get("/v1/books", headers=bearer(token))
        assert r.status_code == 401, token
        assert r.json() == {"message": "unauthorized"}

    good = security.create_access_token(user_id, TEST_SECRET, timedelta(hours=1))
    assert client.get("/v1/books", headers=bearer(good)).status_code == 200


def test_gate_rejects_soft_deleted_user(client, db):
    headers = login(client, "gone@mybooks.io")
    assert client.get("/v1/auth/validate-token", headers=headers).status_code == 200

    user = db.query(User).filter(User.email == "gone@mybooks.io").one()
    user.deleted_at = utcnow()
    db.commit()

    assert client.get("/v1/auth/validate-token", headers=headers).status_code == 401


def test_cookie_wins_over_header(client):
    sign_up(client, "first@mybooks.io")
    other_headers = login(client, "second@mybooks.io")
    signin(client, "first@mybooks.io")

    r = client.get("/v1/auth/validate-token", headers=other_headers)
    assert r.json()["user"]["email"] == "first@mybooks.io"


def test_forgot_and_reset_password(client, mailer):
    sign_up(client, "forgetful@mybooks.io", "old-password")

    r = client.post("/v1/auth/forgot-password", json={"email": "forgetful@mybooks.io"})
    assert r.status_code == 200
    assert len(mailer.sent) == 1
    assert mailer.sent[0]["to"] == ["forgetful@mybooks.io"]
    assert "http://books.test/reset-password/" in mailer.sent[0]["html"]
    token = mailer.last_reset_token()

    r = client.post(f"/v1/auth/reset-password/{token}", json={"password": "new-password"})
    assert r.status_code == 200
    assert r.json()["message"] == "password reset successful"

    assert signin(client, "forgetful@mybooks.io", "old-password").status_code == 401
    assert signin(client, "forgetful@mybooks.io", "new-password").status_code == 200

    # single use
    r = client.post(f"/v1/auth/reset-password/{token}", json={"password": "third-password"})
    assert r.status_code == 400
    assert r.json()["message"] == "invalid or expired token"


def test_forgot_password_unknown_email_sends_nothing(client, mailer):
    sign_up(client, "known@mybooks.io")
    known = client.post("/v1/auth/forgot-password", json={"email": "known@mybooks.io"})
    unknown = client.post("/v1/auth/forgot-password", json={"email": "unknown@mybooks.io"})
    assert unknown.status_code == known.status_code == 200
    assert unknown.json() == known.json()
    assert len(mailer.sent) == 1


def test_forgot_password_validates_email(client, mailer):
    r = client.post("/v1/auth/forgot-password", json={"email": "nope"})
    assert r.status_code == 422
    assert r.json()["message"] == "email is an invalid email"
    assert mailer.sent == []


def test_forgot_password_mail_failure_looks_like_unknown_email(settings):
    app = create_app(settings, RecordingMailer(fail=True))
    with TestClient(app) as client:
        sign_up(client, "unlucky@mybooks.io")
        known = client.post("/v1/auth/forgot-password", json={"email": "unlucky@mybooks.io"})
        unknown = client.post("/v1/auth/forgot-password", json={"email": "stranger@mybooks.io"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()

        session = app.state.db.SessionLocal()
        try:
            tokens = session.query(ValidationToken).all()
            assert len(tokens) == 1
            assert tokens[0].valid is False
        finally:
            session.close()


def test_reset_for_soft_deleted_user_is_refused(client, mailer, db):
    sign_up(client, "removed@mybooks.io", "old-password")
    client.post("/v1/auth/forgot-password", json={"email": "removed@mybooks.io"})
    token = mailer.last_reset_token()

    user = db.query(User).filter(User.email == "removed@mybooks.io").one()
    old_hash = user.password
    user.deleted_at = utcnow()
    db.commit()

    r = client.post(f"/v1/auth/reset-password/{token}", json={"password": "new-password"})
    assert r.status_code == 400
    assert r.json()["message"] == "invalid or expired token"

    db.expire_all()
    assert db.get(User, user.id).password == old_hash


def test_reset_token_is_consumed_once_across_sessions(app, db, user, settings):
    value = "c" * 64
    AuthRepository(db).create_token(ValidationToken(token=value, type="password_reset", valid=True,
                                                    user_id=user.id, expires_at=utcnow() + timedelta(hours=1)))
    first = AuthService(db, settings)
    other_session = app.state.db.SessionLocal()
    try:
        # the first request has already loaded the token while it was valid
        assert first.repo.get_token(value).valid is True

        AuthService(other_session, settings).reset_password(value, "password-b")

        with pytest.raises(BadRequestError, match="invalid or expired token"):
            first.reset_password(value, "password-a")
    finally:
        other_session.close()

    db.expire_all()
    stored = db.get(User, user.id).password
    assert security.verify_password("password-b", stored)
    assert not security.verify_password("password-a", stored)


def test_reset_with_unknown_token(client):
    r = client.post(f"/v1/auth/reset-password/{'0' * 64}", json={"password": "whatever"})
    assert r.status_code == 400
    assert r.json()["message"] == "invalid or expired token"


def test_reset_with_expired_token_invalidates_it(client, mailer, db):
    sign_up(client, "late@mybooks.io", "old-password")
    client.post("/v1/auth/forgot-password", json={"email": "late@mybooks.io"})
    token = mailer.last_reset_token()

    record = db.get(ValidationToken, token)
    record.expires_at = utcnow() - timedelta(minutes=1)
    db.commit()

    r = client.post(f"/v1/auth/reset-password/{token}", json={"password": "new-password"})
    assert r.status_code == 400
    assert r.json()["message"] == "invalid or expired token"

    db.expire_all()
    assert db.get(ValidationToken, token).valid is False
    assert signin(client, "late@mybooks.io", "old-password").status_code == 200


def test_reset_requires_password(client, mailer):
    sign_up(client, "blank@mybooks.io")
    client.post("/v1/auth/forgot-password", json={"email": "blank@mybooks.io"})
    token = mailer.last_reset_token()

    r = client.post(f"/v1/auth/reset-password/{token}", json={"password": ""})
    assert r.status_code == 422
    assert r.json()["message"] == "password is required"
