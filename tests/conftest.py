import re

import pytest
from fastapi.testclient import TestClient

from app.core import security
from app.core.config import AUTH_COOKIE_NAME, Settings
from app.core.errors import EmailDeliveryError
from app.main import create_app
from app.models.models import User

TEST_SECRET = "test-secret"
RESET_LINK = re.compile(r"/reset-password/([0-9a-f]{64})")


class RecordingMailer:
    """Stands in for EmailSender and keeps what would have been sent."""

    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def send(self, to, subject, html):
        if self.fail:
            raise EmailDeliveryError()
        self.sent.append({"to": to, "subject": subject, "html": html})
        return f"msg-{len(self.sent)}"

    def last_reset_token(self):
        return RESET_LINK.search(self.sent[-1]["html"]).group(1)


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", jwt_secret=TEST_SECRET, app_url="http://books.test")


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def app(settings, mailer):
    return create_app(settings, mailer)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(app):
    app.state.db.create_all()
    session = app.state.db.SessionLocal()
    yield session
    session.close()


@pytest.fixture
def user(db):
    u = User(id=security.generate_id(), email="owner@mybooks.io", password=security.hash_password("secret"))
    db.add(u)
    db.commit()
    return u


@pytest.fixture
def other_user(db):
    u = User(id=security.generate_id(), email="other@mybooks.io", password=security.hash_password("secret"))
    db.add(u)
    db.commit()
    return u


def sign_up(client, email, password="secret"):
    r = client.post("/v1/auth/signup/credentials", json={"email": email, "password": password})
    assert r.status_code == 201, r.text
    return r.json()["id"]


def login(client, email, password="secret"):
    """Sign up and in, returning bearer headers; the cookie jar is left empty."""
    sign_up(client, email, password)
    r = client.post("/v1/auth/signin/credentials", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    token = r.cookies[AUTH_COOKIE_NAME]
    client.cookies.clear()
    return {"Authorization": f"Bearer {token}"}


def create_book(client, headers, **fields):
    body = {"title": "Dune", "author": "Frank Herbert"}
    body.update(fields)
    r = client.post("/v1/books", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["id"]


def create_library(client, headers, name="Sci-Fi"):
    r = client.post("/v1/libraries", json={"name": name}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["id"]
