from http import HTTPStatus
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from movie_catalog import auth, models
from movie_catalog.errors import AuthError, ConflictError, InternalError, ValidationError


def test_signup_returns_token_and_public_user(client, db_session, signup_payload):
    response = client.post("/api/signup", json=signup_payload)
    assert response.status_code == HTTPStatus.CREATED

    body = response.json()
    assert body["success"] is True
    assert body["message"] == "User created successfully"
    assert body["token"]
    assert set(body["user"]) == {"id", "fullName", "email"}
    assert body["user"]["email"] == "ada@example.com"
    assert body["user"]["fullName"] == "Ada Lovelace"

    user = db_session.query(models.User).filter_by(email="ada@example.com").first()
    assert user is not None
    assert user.password_hash != signup_payload["password"]
    assert auth.verify_password("secret1", user.password_hash)


def test_signup_token_claims(client, signup_payload):
    body = client.post("/api/signup", json=signup_payload).json()

    claims = auth.decode_token(body["token"])
    assert claims["userId"] == body["user"]["id"]
    assert claims["email"] == "ada@example.com"
    assert claims["exp"] - claims["iat"] == 24 * 60 * 60


@pytest.mark.parametrize(
    "missing", ["fullName", "email", "password", "confirmPassword"]
)
def test_signup_requires_all_fields(client, signup_payload, missing):
    signup_payload.pop(missing)
    response = client.post("/api/signup", json=signup_payload)
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.json() == {"success": False, "message": "All fields are required"}


def test_signup_without_body_requires_all_fields(client):
    response = client.post("/api/signup")
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.json() == {"success": False, "message": "All fields are required"}


def test_signup_password_mismatch(client, signup_payload):
    signup_payload["confirmPassword"] = "different1"
    response = client.post("/api/signup", json=signup_payload)
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.json()["message"] == "Password and confirm password do not match"


def test_signup_mismatch_wins_over_short_password(client, signup_payload):
    signup_payload["password"] = "abc"
    signup_payload["confirmPassword"] = "abd"
    response = client.post("/api/signup", json=signup_payload)
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.json()["message"] == "Password and confirm password do not match"


@pytest.mark.parametrize("password, ok", [("12345", False), ("123456", True)])
def test_signup_minimum_password_length(client, signup_payload, password, ok):
    signup_payload["password"] = password
    signup_payload["confirmPassword"] = password
    response = client.post("/api/signup", json=signup_payload)
    if ok:
        assert response.status_code == HTTPStatus.CREATED
    else:
        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.json()["message"] == "Password must be at least 6 characters long"


def test_duplicate_signup_conflicts(client, db_session, signup_payload):
    assert client.post("/api/signup", json=signup_payload).status_code == HTTPStatus.CREATED

    response = client.post("/api/signup", json=signup_payload)
    assert response.status_code == HTTPStatus.CONFLICT
    assert response.json()["message"] == "User with this email already exists"
    assert db_session.query(models.User).count() == 1


def test_unique_constraint_maps_to_conflict(db_session, monkeypatch):
    auth.signup(db_session, "First", "dup@example.com", "secret1", "secret1")

    # Pretend the lookup raced with a concurrent insert.
    monkeypatch.setattr(auth.crud, "get_user_by_email", lambda db, email: None)
    with pytest.raises(ConflictError):
        auth.signup(db_session, "Second", "dup@example.com", "secret1", "secret1")
    assert db_session.query(models.User).count() == 1


def test_login_success(client, signup_payload):
    client.post("/api/signup", json=signup_payload)

    response = client.post(
        "/api/login", json={"email": "ada@example.com", "password": "secret1"}
    )
    assert response.status_code == HTTPStatus.OK
    body = response.json()
    assert body["message"] == "Login successful"
    assert set(body["user"]) == {"id", "fullName", "email"}
    assert auth.decode_token(body["token"])["email"] == "ada@example.com"


def test_login_does_not_reveal_which_field_is_wrong(client, signup_payload):
    client.post("/api/signup", json=signup_payload)

    wrong_password = client.post(
        "/api/login", json={"email": "ada@example.com", "password": "nope123"}
    )
    unknown_email = client.post(
        "/api/login", json={"email": "bob@example.com", "password": "secret1"}
    )
    assert wrong_password.status_code == unknown_email.status_code == HTTPStatus.UNAUTHORIZED
    assert wrong_password.json() == unknown_email.json() == {
        "success": False,
        "message": "Invalid email or password",
    }


@pytest.mark.parametrize(
    "kwargs",
    [
        {"json": {"password": "secret1"}},
        {"json": {"email": "ada@example.com"}},
        {"json": {}},
        {},
    ],
)
def test_login_requires_both_fields(client, kwargs):
    response = client.post("/api/login", **kwargs)
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.json()["message"] == "Email and password are required"


def test_email_lookup_is_case_sensitive(db_session):
    auth.signup(db_session, "Ada", "ada@example.com", "secret1", "secret1")
    with pytest.raises(AuthError):
        auth.login(db_session, "ADA@example.com", "secret1")


def test_signup_validation_raises_typed_errors(db_session):
    with pytest.raises(ValidationError):
        auth.signup(db_session, "", "a@example.com", "secret1", "secret1")


def test_decode_token_rejects_tampered_token(db_session):
    token, _ = auth.signup(db_session, "Ada", "ada@example.com", "secret1", "secret1")
    with pytest.raises(AuthError):
        auth.decode_token(token + "x")


def test_store_failure_on_signup_is_internal_error(db_session, monkeypatch):
    def failing_commit():
        raise OperationalError("INSERT INTO users", {}, Exception("disk I/O error"))

    rollback = MagicMock()
    monkeypatch.setattr(db_session, "commit", failing_commit)
    monkeypatch.setattr(db_session, "rollback", rollback)

    with pytest.raises(InternalError):
        auth.signup(db_session, "Ada", "ada@example.com", "secret1", "secret1")
    assert rollback.called
