"""
Event triggers for account and registration lifecycle.

Handlers react to identity-provider events and registration-progress
writes. Their only side effects are documents queued in ``mail`` (picked up
by the mail delivery worker) and ``analytics``.
"""
import logging
from datetime import datetime, timedelta, timezone
from functools import partial
from typing import Optional

from app.core.config import REGISTRATION_CLEANUP_HOURS
from app.core.logging_config import sanitize_log_data
from app.services.document_store import DocumentStore, MAIL, ANALYTICS, REGISTRATION_PROGRESS
from app.services.identity_provider import (
    IdentityProvider,
    IdentityUser,
    IdentityError,
    USER_CREATED,
    USER_UPDATED,
    USER_SIGNED_IN,
)

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def queue_mail(documents: DocumentStore, to: str, template: str, **data) -> str:
    doc_id = documents.add(MAIL, {
        "to": to,
        "template": {"name": template, "data": data},
        "createdAt": _now(),
    })
    logger.debug(f"Mail queued: id={doc_id}, template={template}, data={sanitize_log_data(data)}")
    return doc_id


def record_event(documents: DocumentStore, event: str, user_id: str, data: Optional[dict] = None) -> str:
    doc = {"event": event, "userId": user_id, "timestamp": _now()}
    if data is not None:
        doc["data"] = data
    return documents.add(ANALYTICS, doc)


def send_welcome_email(documents: DocumentStore, user: IdentityUser) -> None:
    """On account creation: queue the welcome mail."""
    if not user.email:
        return
    queue_mail(documents, user.email, "welcome", name=user.display_name or "there")
    record_event(documents, "welcome_email_sent", user.uid)
    logger.info(f"Welcome email queued: uid={user.uid}")


def track_mfa_enrollment(documents: DocumentStore, before: IdentityUser, after: IdentityUser) -> None:
    """On account update: detect the first enrolled factor."""
    if not after.enrolled_factors or before.enrolled_factors:
        return
    try:
        record_event(documents, "mfa_enabled", after.uid, {
            "method": after.enrolled_factors[0].factor_id,
            "success": True,
        })
        queue_mail(documents, after.email, "mfa_enabled", name=after.display_name or "there")
        logger.info(f"MFA enrollment tracked: uid={after.uid}")
    except Exception as e:
        logger.error(f"Error tracking MFA enrollment: {e}", exc_info=True)
        record_event(documents, "mfa_enabled", after.uid, {"success": False, "error": str(e)})


def record_sign_in(documents: DocumentStore, user: IdentityUser, mfa: bool) -> None:
    """On sign-in: note whether the second factor was used."""
    record_event(documents, "sign_in", user.uid, {"mfa": mfa, "mfaEnrolled": user.mfa_enrolled})


def on_registration_progress_write(
    documents: DocumentStore,
    identity: IdentityProvider,
    doc_id: str,
    before: Optional[dict],
    after: Optional[dict],
) -> None:
    """
    On registrationProgress/{uid} write: track completion.

    Fires once, when ``completed`` flips to true. Queues the confirmation
    mail and schedules the progress document for cleanup.
    """
    if not after:
        return
    if not after.get("completed") or (before and before.get("completed")):
        return

    completed_at = after.get("completedAt") or _now()
    started_at = after.get("startedAt") or completed_at
    record_event(documents, "registration_completed", doc_id, {
        "steps": after.get("lastStep"),
        "mfaEnabled": after.get("enableMfa", False),
        "timeToComplete": (completed_at - started_at).total_seconds(),
    })

    try:
        user = identity.get_user(doc_id)
        queue_mail(
            documents,
            user.email,
            "registration_complete",
            name=user.display_name or "there",
            mfaEnabled=after.get("enableMfa", False),
        )
    except IdentityError:
        logger.warning(f"Registration completed for unknown identity: uid={doc_id}")

    documents.set(
        REGISTRATION_PROGRESS,
        doc_id,
        {"cleanupAfter": completed_at + timedelta(hours=REGISTRATION_CLEANUP_HOURS)},
        merge=True,
    )
    logger.info(f"Registration completion tracked: uid={doc_id}")


def purge_completed_registrations(documents: DocumentStore, now: Optional[datetime] = None) -> int:
    """
    Delete completed progress documents whose cleanup time has passed.

    Returns:
        Number of documents deleted
    """
    now = now or _now()
    expired = [
        doc["id"]
        for doc in documents.where(REGISTRATION_PROGRESS, completed=True)
        if doc.get("cleanupAfter") and doc["cleanupAfter"] <= now
    ]
    for doc_id in expired:
        documents.delete(REGISTRATION_PROGRESS, doc_id)
    if expired:
        logger.info(f"Purged {len(expired)} completed registration progress documents")
    return len(expired)


def register_triggers(identity: IdentityProvider, documents: DocumentStore) -> None:
    """Subscribe every trigger to its event source."""
    identity.on(USER_CREATED, partial(send_welcome_email, documents))
    identity.on(USER_UPDATED, partial(track_mfa_enrollment, documents))
    identity.on(USER_SIGNED_IN, partial(record_sign_in, documents))
    documents.on_write(REGISTRATION_PROGRESS, partial(on_registration_progress_write, documents, identity))
