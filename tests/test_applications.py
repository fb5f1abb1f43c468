"""
Tests for /api/applications.
"""
from fastapi.testclient import TestClient

from app.main import app


def _post_job(client, register_user, job_payload):
    employer = TestClient(app)
    register_user(employer, "employer", email="boss@example.com", company="Acme Corp")
    return employer.post("/api/jobs", json=job_payload).json()


def test_apply_requires_session(client):
    response = client.post("/api/applications", json={"jobId": 1})

    assert response.status_code == 401


def test_apply_success(client, register_user, job_payload):
    """New applications start pending and carry a match score."""
    job = _post_job(client, register_user, job_payload)
    register_user(client, "candidate", email="dev@example.com", bio="I build Python and FastAPI services")

    response = client.post("/api/applications", json={"jobId": job["id"]})

    assert response.status_code == 201
    application = response.json()
    assert application["id"] == 1
    assert application["jobId"] == job["id"]
    assert application["candidateId"] == 2
    assert application["status"] == "pending"
    assert 0 <= application["aiMatchScore"] <= 100
    assert application["aiInsights"]


def test_apply_unknown_job(candidate_client):
    response = candidate_client.post("/api/applications", json={"jobId": 999})

    assert response.status_code == 404


def test_apply_invalid_job_id(candidate_client):
    response = candidate_client.post("/api/applications", json={"jobId": "abc"})

    assert response.status_code == 400


def test_employer_cannot_apply(client, register_user, job_payload):
    job = _post_job(client, register_user, job_payload)
    register_user(client, "employer", email="other@example.com", company="Other")

    response = client.post("/api/applications", json={"jobId": job["id"]})

    assert response.status_code == 403


def test_list_my_applications(client, register_user, job_payload):
    job = _post_job(client, register_user, job_payload)
    register_user(client, "candidate", email="dev@example.com")
    client.post("/api/applications", json={"jobId": job["id"]})
    client.post("/api/applications", json={"jobId": job["id"]})

    response = client.get("/api/applications")

    assert response.status_code == 200
    assert [a["id"] for a in response.json()] == [1, 2]
