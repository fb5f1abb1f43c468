"""
Tests for account creation: /api/auth/signup (wizard flow) and
/api/auth/register (one-shot profile).
"""
from fastapi.testclient import TestClient

from app.main import app
from app.services.document_store import MAIL, REGISTRATION_PROGRESS


def _mail_templates(documents):
    return [doc["template"]["name"] for doc in documents.where(MAIL)]


def test_signup_success(client, documents):
    """Signup creates the account, opens a session and starts the wizard."""
    response = client.post(
        "/api/auth/signup",
        json={"email": "Jane.Doe@Example.com", "password": "testpass123"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "jane.doe@example.com"
    assert data["registration"]["step"] == 1
    assert data["registration"]["lastStep"] == 0
    assert data["registration"]["completed"] is False
    assert "session" in client.cookies

    assert documents.get(REGISTRATION_PROGRESS, data["uid"]) is not None
    assert sorted(_mail_templates(documents)) == ["verify_email", "welcome"]


def test_signup_duplicate_email(client):
    """Signing up twice with the same email returns 409."""
    payload = {"email": "dup@example.com", "password": "testpass123"}
    assert client.post("/api/auth/signup", json=payload).status_code == 201

    response = client.post("/api/auth/signup", json=payload)

    assert response.status_code == 409
    assert response.json()["code"] == "auth/email-already-in-use"


def test_signup_short_password(client):
    response = client.post("/api/auth/signup", json={"email": "a@example.com", "password": "short"})

    assert response.status_code == 400
    assert response.json()["detail"] == "password: Password must be at least 8 characters"


def test_signup_invalid_email(client):
    response = client.post("/api/auth/signup", json={"email": "not-an-email", "password": "testpass123"})

    assert response.status_code == 400
    assert response.json()["detail"].startswith("email:")


def test_verify_email(client, identity, documents):
    """The token mailed at signup marks the identity's email as verified."""
    uid = client.post(
        "/api/auth/signup",
        json={"email": "verify@example.com", "password": "testpass123"},
    ).json()["uid"]
    mail = next(doc for doc in documents.where(MAIL) if doc["template"]["name"] == "verify_email")

    response = client.post("/api/auth/verify-email", json={"token": mail["template"]["data"]["token"]})

    assert response.status_code == 200
    assert identity.get_user(uid).email_verified is True


def test_verify_email_rejects_session_token(client):
    """A session token is not accepted as a verification link."""
    client.post("/api/auth/signup", json={"email": "verify@example.com", "password": "testpass123"})

    response = client.post("/api/auth/verify-email", json={"token": client.cookies["session"]})

    assert response.status_code == 400


def test_register_success(client, register_user):
    """One-shot registration stores the profile with sequential ids."""
    first = register_user(client, "employer", email="boss@example.com", company="Acme Corp")
    second = register_user(client, "candidate", email="dev@example.com")

    assert first["id"] == 1
    assert second["id"] == 2
    assert first["role"] == "employer"
    assert first["firstName"] == "Test"
    assert first["communicationPreference"] == "email"
    assert first["mfaEnabled"] is False
    assert "password" not in first

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["email"] == "dev@example.com"


def test_register_duplicate_email(client, register_user):
    register_user(client, "candidate", email="dup@example.com")

    response = client.post("/api/auth/register", json={
        "email": "dup@example.com",
        "password": "testpass123",
        "role": "candidate",
        "firstName": "Other",
        "lastName": "Person",
    })

    assert response.status_code == 409


def test_register_validation_errors(client):
    """Missing names and malformed phone numbers are rejected with 400."""
    response = client.post("/api/auth/register", json={
        "email": "bad@example.com",
        "password": "testpass123",
        "role": "candidate",
        "firstName": "   ",
        "lastName": "Person",
        "phoneNumber": "12345",
    })

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert "firstName: First name is required" in detail
    assert "phoneNumber" in detail


def test_register_unknown_role(client):
    response = client.post("/api/auth/register", json={
        "email": "bad@example.com",
        "password": "testpass123",
        "role": "admin",
        "firstName": "Ad",
        "lastName": "Min",
    })

    assert response.status_code == 400


def test_register_failure_removes_account(client, storage, identity, monkeypatch):
    """If the profile cannot be stored, the email can be registered again."""
    payload = {
        "email": "retry@example.com",
        "password": "testpass123",
        "role": "candidate",
        "firstName": "Re",
        "lastName": "Try",
    }

    def broken_create_user(user):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(storage, "create_user", broken_create_user)
    failed = TestClient(app, raise_server_exceptions=False).post("/api/auth/register", json=payload)
    assert failed.status_code == 500
    assert identity.users == {}

    monkeypatch.undo()
    response = client.post("/api/auth/register", json=payload)

    assert response.status_code == 201
    assert response.json()["email"] == "retry@example.com"
