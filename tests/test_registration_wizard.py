"""
Tests for the registration wizard (/api/registration/*): ordered steps,
resumable progress, MFA enrollment and completion.
"""
import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.services.document_store import ANALYTICS, MAIL, REGISTRATION_PROGRESS

PHONE = "+14155552671"

PROFILE = {"role": "employer", "firstName": "Jane", "lastName": "Doe", "jobTitle": "HR Director"}
COMPANY = {"company": "Acme Corp", "bio": "Hiring backend engineers", "companyIndustry": "Software"}
SECURITY = {"communicationPreference": "email", "enableMfa": False}
SECURITY_MFA = {"communicationPreference": "sms", "enableMfa": True, "phoneNumber": PHONE}


@pytest.fixture
def wizard(client):
    """Client with a fresh account and an open session, on step 1."""
    response = client.post("/api/auth/signup", json={"email": "jane@example.com", "password": "testpass123"})
    assert response.status_code == 201
    return client


def _submit(client, step, payload):
    return client.post(f"/api/registration/steps/{step}", json=payload)


def _fill_steps(client, security=SECURITY):
    for step, payload in ((1, PROFILE), (2, COMPANY), (3, security)):
        response = _submit(client, step, payload)
        assert response.status_code == 200, response.text
    return response.json()


def test_wizard_requires_session(client):
    assert client.get("/api/registration/progress").status_code == 401
    assert _submit(client, 1, PROFILE).status_code == 401


def test_progress_after_signup(wizard):
    response = wizard.get("/api/registration/progress")

    assert response.status_code == 200
    progress = response.json()
    assert progress["email"] == "jane@example.com"
    assert progress["step"] == 1
    assert progress["lastStep"] == 0
    assert progress["ready"] is False


def test_start_is_idempotent(wizard):
    _submit(wizard, 1, PROFILE)

    response = wizard.post("/api/registration/start")

    assert response.status_code == 200
    assert response.json()["step"] == 2


def test_submit_profile_step(wizard):
    response = _submit(wizard, 1, PROFILE)

    assert response.status_code == 200
    progress = response.json()
    assert progress["step"] == 2
    assert progress["lastStep"] == 1
    assert progress["data"]["firstName"] == "Jane"
    assert progress["data"]["role"] == "employer"


def test_cannot_skip_ahead(wizard):
    response = _submit(wizard, 3, SECURITY)

    assert response.status_code == 409
    assert response.json()["detail"] == "Complete step 1 first"


def test_unknown_step(wizard):
    assert _submit(wizard, 7, {}).status_code == 409


def test_mfa_step_not_submittable_as_form(wizard):
    assert _submit(wizard, 4, {}).status_code == 409


def test_profile_step_validation(wizard):
    response = _submit(wizard, 1, {**PROFILE, "firstName": " ", "linkedinUrl": "linkedin"})

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert "firstName: First name is required" in detail
    assert "linkedinUrl: Invalid LinkedIn URL" in detail
    assert wizard.get("/api/registration/progress").json()["step"] == 1


def test_employer_needs_company(wizard):
    _submit(wizard, 1, PROFILE)

    response = _submit(wizard, 2, {"company": "  ", "bio": "Hiring"})

    assert response.status_code == 400
    assert response.json()["detail"] == "company: Company name is required for employers"


def test_candidate_company_optional(wizard):
    _submit(wizard, 1, {**PROFILE, "role": "candidate"})

    response = _submit(wizard, 2, {"bio": "Python developer"})

    assert response.status_code == 200
    assert response.json()["step"] == 3


def test_security_step_needs_phone_for_mfa(wizard):
    _submit(wizard, 1, PROFILE)
    _submit(wizard, 2, COMPANY)

    response = _submit(wizard, 3, {"enableMfa": True})

    assert response.status_code == 400
    assert "Phone number is required for SMS contact or MFA" in response.json()["detail"]


def test_back_moves_one_step(wizard):
    _submit(wizard, 1, PROFILE)
    _submit(wizard, 2, COMPANY)

    response = wizard.post("/api/registration/back")

    assert response.status_code == 200
    assert response.json()["step"] == 2
    assert response.json()["lastStep"] == 2


def test_role_change_requires_later_steps_again(wizard):
    _submit(wizard, 1, {**PROFILE, "role": "candidate"})
    _submit(wizard, 2, {"bio": "Python developer"})

    response = _submit(wizard, 1, PROFILE)

    assert response.json()["lastStep"] == 1
    assert response.json()["step"] == 2


def test_progress_resumes_in_new_session(wizard):
    """Leaving and signing in again resumes at the saved step."""
    _submit(wizard, 1, PROFILE)
    _submit(wizard, 2, COMPANY)
    fresh = TestClient(app)

    login = fresh.post("/api/auth/login", json={"email": "jane@example.com", "password": "testpass123"})
    progress = fresh.get("/api/registration/progress").json()

    assert login.json()["registrationCompleted"] is False
    assert progress["step"] == 3
    assert progress["data"]["company"] == "Acme Corp"


def test_complete_without_mfa(wizard, storage, documents):
    """Completion stores the user and the employer's company."""
    progress = _fill_steps(wizard)
    assert progress["ready"] is True
    assert progress["step"] == 3

    response = wizard.post("/api/registration/complete")

    assert response.status_code == 201
    user = response.json()
    assert user["id"] == 1
    assert user["role"] == "employer"
    assert user["email"] == "jane@example.com"
    assert user["company"] == "Acme Corp"
    assert user["mfaEnabled"] is False

    company = storage.get_company_by_user_id(1)
    assert company.name == "Acme Corp"
    assert company.industry == "Software"

    assert wizard.get("/api/auth/me").status_code == 200
    stored = documents.get(REGISTRATION_PROGRESS, user["identityUid"])
    assert stored["completed"] is True
    assert stored["cleanupAfter"] > stored["completedAt"]

    events = documents.where(ANALYTICS, event="registration_completed")
    assert len(events) == 1
    assert events[0]["data"]["steps"] == 3
    assert events[0]["data"]["mfaEnabled"] is False
    assert "registration_complete" in [doc["template"]["name"] for doc in documents.where(MAIL)]


def test_complete_twice(wizard):
    _fill_steps(wizard)
    wizard.post("/api/registration/complete")

    response = wizard.post("/api/registration/complete")

    assert response.status_code == 409
    assert _submit(wizard, 1, PROFILE).status_code == 409


def test_complete_with_missing_steps(wizard):
    _submit(wizard, 1, PROFILE)

    response = wizard.post("/api/registration/complete")

    assert response.status_code == 409
    assert response.json()["detail"] == "Registration steps are incomplete"


def test_mfa_enrollment_flow(wizard, sms, identity, documents):
    """With MFA requested, completion waits for a confirmed phone code."""
    progress = _fill_steps(wizard, SECURITY_MFA)
    assert progress["step"] == 4
    assert progress["ready"] is False

    blocked = wizard.post("/api/registration/complete")
    assert blocked.status_code == 409
    assert blocked.json()["detail"] == "Confirm the verification code sent to your phone first"

    started = wizard.post("/api/registration/mfa/start")
    assert started.status_code == 200
    assert started.json()["phoneHint"] == "+*********71"
    assert sms.sent[-1][0] == PHONE

    confirmed = wizard.post(
        "/api/registration/mfa/confirm",
        json={"verificationId": started.json()["verificationId"], "code": sms.last_code},
    )
    assert confirmed.status_code == 200
    assert confirmed.json()["mfaEnrolled"] is True
    assert confirmed.json()["ready"] is True

    response = wizard.post("/api/registration/complete")

    assert response.status_code == 201
    assert response.json()["mfaEnabled"] is True
    assert identity.get_user_by_email("jane@example.com").mfa_enrolled is True
    mfa_events = documents.where(ANALYTICS, event="mfa_enabled")
    assert mfa_events[0]["data"] == {"method": "phone", "success": True}


def test_mfa_confirm_wrong_code(wizard, sms):
    _fill_steps(wizard, SECURITY_MFA)
    verification_id = wizard.post("/api/registration/mfa/start").json()["verificationId"]
    wrong = "000000" if sms.last_code != "000000" else "111111"

    response = wizard.post(
        "/api/registration/mfa/confirm",
        json={"verificationId": verification_id, "code": wrong},
    )

    assert response.status_code == 400
    assert response.json()["code"] == "auth/invalid-verification-code"
    assert wizard.get("/api/registration/progress").json()["mfaEnrolled"] is False


def test_mfa_start_without_opt_in(wizard):
    _fill_steps(wizard)

    response = wizard.post("/api/registration/mfa/start")

    assert response.status_code == 409


def test_back_never_goes_below_first_step(wizard):
    response = wizard.post("/api/registration/back")

    assert response.status_code == 200
    assert response.json()["step"] == 1


def test_mfa_restart_invalidates_earlier_code(wizard, sms, identity):
    """Only the code sent to the latest phone number can enroll a factor."""
    _fill_steps(wizard, SECURITY_MFA)
    first = wizard.post("/api/registration/mfa/start").json()
    first_code = sms.last_code
    second = wizard.post("/api/registration/mfa/start", json={"phoneNumber": "+14155550000"}).json()

    stale = wizard.post(
        "/api/registration/mfa/confirm",
        json={"verificationId": first["verificationId"], "code": first_code},
    )
    assert stale.status_code == 400
    assert stale.json()["code"] == "auth/invalid-verification-id"

    confirmed = wizard.post(
        "/api/registration/mfa/confirm",
        json={"verificationId": second["verificationId"], "code": sms.last_code},
    )
    assert confirmed.status_code == 200

    user = wizard.post("/api/registration/complete").json()
    factors = identity.get_user_by_email("jane@example.com").enrolled_factors
    assert user["phoneNumber"] == "+14155550000"
    assert [f.phone_number for f in factors] == ["+14155550000"]
