"""
Unit tests for lifecycle triggers and registration cleanup.
"""
from datetime import datetime, timedelta, timezone

from app.services.document_store import DocumentStore, ANALYTICS, MAIL, REGISTRATION_PROGRESS
from app.services.triggers import purge_completed_registrations


def _templates(documents):
    return [doc["template"]["name"] for doc in documents.where(MAIL)]


def test_welcome_email_on_account_creation(identity, documents):
    user = identity.create_user("new@example.com", "testpass123", display_name="New User")

    mail = documents.where(MAIL)
    assert len(mail) == 1
    assert mail[0]["to"] == "new@example.com"
    assert mail[0]["template"] == {"name": "welcome", "data": {"name": "New User"}}
    assert documents.where(ANALYTICS, event="welcome_email_sent")[0]["userId"] == user.uid


def test_mfa_enrollment_tracked_once(identity, documents, sms):
    user = identity.create_user("mfa@example.com", "testpass123")
    for phone in ("+14155552671", "+14155552672"):
        verification_id = identity.start_phone_verification(user.uid, phone)
        identity.confirm_phone_enrollment(verification_id, sms.last_code)

    assert len(identity.get_user(user.uid).enrolled_factors) == 2
    assert len(documents.where(ANALYTICS, event="mfa_enabled")) == 1
    assert _templates(documents).count("mfa_enabled") == 1


def test_profile_update_without_factor_is_ignored(identity, documents):
    user = identity.create_user("plain@example.com", "testpass123")

    identity.update_user(user.uid, display_name="Plain User")

    assert documents.where(ANALYTICS, event="mfa_enabled") == []


def test_registration_completion_fires_once(identity, documents):
    user = identity.create_user("done@example.com", "testpass123")
    started = datetime.now(timezone.utc) - timedelta(minutes=5)
    progress = {"uid": user.uid, "lastStep": 3, "enableMfa": False, "completed": False, "startedAt": started}
    documents.set(REGISTRATION_PROGRESS, user.uid, progress)

    completed = {**progress, "completed": True, "completedAt": started + timedelta(minutes=5)}
    documents.set(REGISTRATION_PROGRESS, user.uid, completed)
    documents.set(REGISTRATION_PROGRESS, user.uid, completed, merge=True)

    events = documents.where(ANALYTICS, event="registration_completed")
    assert len(events) == 1
    assert events[0]["data"]["timeToComplete"] == 300
    assert _templates(documents).count("registration_complete") == 1
    stored = documents.get(REGISTRATION_PROGRESS, user.uid)
    assert stored["cleanupAfter"] == completed["completedAt"] + timedelta(hours=24)


def test_failing_listener_does_not_break_write(documents):
    def broken(doc_id, before, after):
        raise RuntimeError("boom")

    documents.on_write(REGISTRATION_PROGRESS, broken)
    documents.set(REGISTRATION_PROGRESS, "abc", {"uid": "abc", "completed": False})

    assert documents.get(REGISTRATION_PROGRESS, "abc")["uid"] == "abc"


def test_purge_completed_registrations():
    documents = DocumentStore()
    now = datetime.now(timezone.utc)
    documents.set(REGISTRATION_PROGRESS, "old", {"completed": True, "cleanupAfter": now - timedelta(hours=1)})
    documents.set(REGISTRATION_PROGRESS, "recent", {"completed": True, "cleanupAfter": now + timedelta(hours=1)})
    documents.set(REGISTRATION_PROGRESS, "open", {"completed": False})

    purged = purge_completed_registrations(documents, now=now)

    assert purged == 1
    assert documents.get(REGISTRATION_PROGRESS, "old") is None
    assert documents.get(REGISTRATION_PROGRESS, "recent") is not None
    assert documents.get(REGISTRATION_PROGRESS, "open") is not None
