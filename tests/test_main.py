import uuid

from sqlalchemy import func, select

from app.models.models import book_library
from conftest import create_book, create_library, login


def test_health(client):
    response = client.get("/v1/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["database"] == "ok"


def test_signup_signin_and_validate_token(client):
    r = client.post("/v1/auth/signup/credentials", json={"email": "a@b.com", "password": "secret"})
    assert r.status_code == 201
    user_id = r.json()["id"]
    assert uuid.UUID(user_id).version == 4

    r = client.post("/v1/auth/signin/credentials", json={"email": "a@b.com", "password": "secret"})
    assert r.status_code == 200
    assert "access_token" in r.cookies

    # cookie jar carries the token
    r = client.get("/v1/auth/validate-token")
    assert r.status_code == 200
    user = r.json()["user"]
    assert user["email"] == "a@b.com"
    assert user["id"] == user_id
    assert "created_at" in user and "updated_at" in user

    r = client.post("/v1/auth/signin/credentials", json={"email": "a@b.com", "password": "wrong"})
    assert r.status_code == 401
    assert r.json()["message"] == "invalid email or password"


def test_library_delete_removes_join_rows(client, app):
    headers = login(client, "reader@mybooks.io")
    library_id = create_library(client, headers, "Sci-Fi")
    book_id = create_book(client, headers, title="Dune")

    r = client.post(f"/v1/libraries/{library_id}/books/{book_id}", headers=headers)
    assert r.status_code == 200

    r = client.get(f"/v1/libraries/{library_id}", headers=headers)
    assert [b["title"] for b in r.json()["books"]] == ["Dune"]

    r = client.delete(f"/v1/libraries/{library_id}", headers=headers)
    assert r.status_code == 200

    with app.state.db.engine.connect() as conn:
        remaining = conn.execute(select(func.count()).select_from(book_library)).scalar()
    assert remaining == 0

    new_library_id = create_library(client, headers, "Classics")
    r = client.post(f"/v1/libraries/{new_library_id}/books/{book_id}", headers=headers)
    assert r.status_code == 200


def test_borrow_return_and_borrow_again(client):
    headers = login(client, "lender@mybooks.io")
    book_id = create_book(client, headers)
    loan = {"book_id": book_id, "borrower_name": "Paul", "loan_date": "2024-05-01"}

    r = client.post("/v1/loans", json=loan, headers=headers)
    assert r.status_code == 201
    loan_id = r.json()["id"]

    r = client.post("/v1/loans", json=loan, headers=headers)
    assert r.status_code == 409
    assert r.json()["message"] == "book already borrowed"

    r = client.put(f"/v1/loans/{loan_id}/return", headers=headers)
    assert r.status_code == 200
    assert r.json()["is_returned"] is True

    r = client.post("/v1/loans", json=loan, headers=headers)
    assert r.status_code == 201
