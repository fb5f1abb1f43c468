"""
Shared fixtures: every test gets fresh in-memory storage, identity provider
and document store wired into the app through dependency overrides.
"""
import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.core.auth_dependency import get_storage, get_identity_provider, get_document_store
from app.core.rate_limit import rate_limit_store
from app.db.storage import MemStorage
from app.services.document_store import DocumentStore
from app.services.identity_provider import IdentityProvider, SmsSender
from app.services.triggers import register_triggers


class RecordingSmsSender(SmsSender):
    """Keeps sent codes so tests can type them back in."""

    def __init__(self):
        self.sent = []

    def send_code(self, phone_number: str, code: str) -> None:
        self.sent.append((phone_number, code))

    @property
    def last_code(self) -> str:
        return self.sent[-1][1]


@pytest.fixture
def sms():
    return RecordingSmsSender()


@pytest.fixture
def storage():
    return MemStorage()


@pytest.fixture
def identity(sms):
    return IdentityProvider(sms_sender=sms)


@pytest.fixture
def documents(identity):
    documents = DocumentStore()
    register_triggers(identity, documents)
    return documents


@pytest.fixture
def client(storage, identity, documents):
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_identity_provider] = lambda: identity
    app.dependency_overrides[get_document_store] = lambda: documents
    rate_limit_store.clear()
    yield TestClient(app)
    app.dependency_overrides.clear()
    rate_limit_store.clear()


def _register_user(client, role="candidate", email=None, **profile):
    payload = {
        "email": email or f"{role}@example.com",
        "password": "testpass123",
        "role": role,
        "firstName": "Test",
        "lastName": role.title(),
        **profile,
    }
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def register_user():
    """Create an account with a full profile in one call; leaves the session open."""
    return _register_user


@pytest.fixture
def employer_client(client):
    _register_user(client, "employer", company="Acme Corp")
    return client


@pytest.fixture
def candidate_client(client):
    _register_user(
        client,
        "candidate",
        bio="Backend engineer working with Python, FastAPI and PostgreSQL",
    )
    return client


@pytest.fixture
def job_payload():
    return {
        "title": "Senior Python Engineer",
        "company": "Acme Corp",
        "description": "Build the hiring platform.",
        "requirements": "Python, FastAPI, PostgreSQL, Kubernetes",
        "location": "Remote",
    }
