"""
Tests for /api/companies.
"""
from fastapi.testclient import TestClient

from app.main import app


def test_create_company(employer_client):
    response = employer_client.post("/api/companies", json={
        "name": "Acme Corp",
        "website": "https://acme.example.com",
        "industry": "Software",
        "size": "11-50",
    })

    assert response.status_code == 201
    company = response.json()
    assert company["id"] == 1
    assert company["userId"] == 1
    assert company["website"] == "https://acme.example.com"


def test_create_company_twice(employer_client):
    employer_client.post("/api/companies", json={"name": "Acme Corp"})

    response = employer_client.post("/api/companies", json={"name": "Acme Again"})

    assert response.status_code == 409


def test_create_company_validation(employer_client):
    response = employer_client.post("/api/companies", json={"name": " ", "website": "not a url"})

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert "name: Company name is required" in detail
    assert "website: Invalid website URL" in detail


def test_candidate_cannot_create_company(candidate_client):
    response = candidate_client.post("/api/companies", json={"name": "Acme Corp"})

    assert response.status_code == 403


def test_get_my_company(employer_client):
    assert employer_client.get("/api/companies/me").status_code == 404
    employer_client.post("/api/companies", json={"name": "Acme Corp"})

    response = employer_client.get("/api/companies/me")

    assert response.status_code == 200
    assert response.json()["name"] == "Acme Corp"


def test_get_company_public(employer_client):
    company_id = employer_client.post("/api/companies", json={"name": "Acme Corp"}).json()["id"]

    assert TestClient(app).get(f"/api/companies/{company_id}").status_code == 200
    assert TestClient(app).get("/api/companies/999").status_code == 404
