"""
Tests for log redaction.
"""
from app.core.logging_config import REDACTED, sanitize_log_data


def test_sanitize_redacts_credentials_and_codes():
    data = {
        "email": "jane@example.com",
        "password": "testpass123",
        "verificationId": "abc",
        "verification_id": "abc",
        "phoneNumber": "+14155552671",
        "code": "123456",
        "template": "welcome",
    }

    sanitized = sanitize_log_data(data)

    assert sanitized["email"] == "jane@example.com"
    assert sanitized["template"] == "welcome"
    for key in ("password", "verificationId", "verification_id", "phoneNumber", "code"):
        assert sanitized[key] == REDACTED
    assert data["password"] == "testpass123"


def test_sanitize_nested_values():
    sanitized = sanitize_log_data({"template": {"name": "verify_email", "data": {"token": "jwt"}}, "items": [{"secret": 1}]})

    assert sanitized["template"]["name"] == "verify_email"
    assert sanitized["template"]["data"]["token"] == REDACTED
    assert sanitized["items"] == [{"secret": REDACTED}]
