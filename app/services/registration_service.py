"""
Registration wizard service.

The wizard is a linear sequence of steps:

1. PROFILE  - name, role, job title
2. COMPANY  - company and hiring needs (company required for employers)
3. SECURITY - contact preference, MFA opt-in, phone number
4. MFA      - only when MFA was requested; a phone code must be confirmed

``step`` is the step the user is on and ``lastStep`` the highest one
completed. Progress is written to ``registrationProgress/{uid}`` after every
transition, so a user can leave and resume where they stopped. Completing
the wizard creates the stored User (and Company for employers).
"""
import logging
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict, Optional

from app.db.storage import Storage, DuplicateRecordError
from app.schemas.company import CompanyCreate
from app.schemas.registration import (
    ProfileStep,
    CompanyStep,
    SecurityStep,
    RegistrationProgressResponse,
)
from app.schemas.user import Role, UserCreate, UserResponse
from app.services.document_store import DocumentStore, REGISTRATION_PROGRESS
from app.services.identity_provider import IdentityProvider, PURPOSE_ENROLL, mask_phone

logger = logging.getLogger(__name__)


class Step(IntEnum):
    PROFILE = 1
    COMPANY = 2
    SECURITY = 3
    MFA = 4


STEP_MODELS = {
    Step.PROFILE: ProfileStep,
    Step.COMPANY: CompanyStep,
    Step.SECURITY: SecurityStep,
}


class WizardError(Exception):
    """Request is out of order for the wizard's current state (HTTP 409)."""
    pass


class StepValidationError(Exception):
    """Step payload is valid on its own but not with earlier answers (HTTP 400)."""
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


def final_step(progress: Dict[str, Any]) -> Step:
    return Step.MFA if progress.get("enableMfa") else Step.SECURITY


def is_ready(progress: Dict[str, Any]) -> bool:
    """Every required step is done and, if MFA was requested, a factor is enrolled."""
    if progress.get("lastStep", 0) < Step.SECURITY:
        return False
    return not progress.get("enableMfa") or progress.get("mfaEnrolled", False)


class RegistrationService:
    def __init__(self, documents: DocumentStore, identity: IdentityProvider, storage: Storage):
        self.documents = documents
        self.identity = identity
        self.storage = storage

    # Persistence
    def _load(self, uid: str) -> Dict[str, Any]:
        progress = self.documents.get(REGISTRATION_PROGRESS, uid)
        if progress is None:
            progress = self.start(uid)
        return progress

    def _save(self, progress: Dict[str, Any]) -> Dict[str, Any]:
        progress["timestamp"] = _now()
        self.documents.set(REGISTRATION_PROGRESS, progress["uid"], progress)
        return progress

    def describe(self, progress: Dict[str, Any]) -> RegistrationProgressResponse:
        return RegistrationProgressResponse.model_validate({**progress, "ready": is_ready(progress)})

    # Operations
    def start(self, uid: str) -> Dict[str, Any]:
        """Create progress for an identity, or return the existing progress unchanged."""
        existing = self.documents.get(REGISTRATION_PROGRESS, uid)
        if existing is not None:
            return existing
        identity_user = self.identity.get_user(uid)
        now = _now()
        progress = {
            "uid": uid,
            "email": identity_user.email,
            "step": int(Step.PROFILE),
            "lastStep": 0,
            "data": {},
            "enableMfa": False,
            "mfaEnrolled": identity_user.mfa_enrolled,
            "completed": False,
            "startedAt": now,
            "completedAt": None,
        }
        logger.info(f"Registration started: uid={uid}")
        return self._save(progress)

    def get_progress(self, uid: str) -> Dict[str, Any]:
        return self._load(uid)

    def submit_step(self, uid: str, step: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate one step's answers, store them and move forward.

        Raises:
            pydantic.ValidationError: payload fails the step's schema
            StepValidationError: payload conflicts with earlier answers
            WizardError: step is unknown, skipped ahead, or wizard is done
        """
        progress = self._load(uid)
        self._ensure_open(progress)

        if step == Step.MFA:
            raise WizardError("The MFA step is completed through mfa/start and mfa/confirm")
        if step not in STEP_MODELS:
            raise WizardError(f"Unknown registration step: {step}")
        if step > progress["step"]:
            raise WizardError(f"Complete step {progress['step']} first")

        values = STEP_MODELS[Step(step)].model_validate(payload).model_dump(by_alias=True)
        data = progress["data"]

        role_changed = step == Step.PROFILE and data.get("role") not in (None, values["role"])
        if step == Step.COMPANY and data.get("role") == Role.EMPLOYER.value and not values.get("company"):
            raise StepValidationError("company: Company name is required for employers")

        data.update(values)
        if step == Step.SECURITY:
            progress["enableMfa"] = values["enableMfa"]

        if role_changed:
            # Role decides what step 2 requires, so later answers must be redone
            progress["lastStep"] = int(Step.PROFILE)
        else:
            progress["lastStep"] = max(progress["lastStep"], step)
        progress["step"] = int(min(Step(step + 1), final_step(progress)))
        logger.info(f"Registration step saved: uid={uid}, step={step}, next={progress['step']}")
        return self._save(progress)

    def back(self, uid: str) -> Dict[str, Any]:
        progress = self._load(uid)
        self._ensure_open(progress)
        progress["step"] = max(int(Step.PROFILE), progress["step"] - 1)
        return self._save(progress)

    def start_mfa(self, uid: str, phone_number: Optional[str] = None) -> Dict[str, str]:
        """Send an enrollment code to the phone from step 3 (or an override)."""
        progress = self._load(uid)
        self._ensure_open(progress)
        if not progress.get("enableMfa"):
            raise WizardError("MFA was not requested in the security step")
        if progress["lastStep"] < Step.SECURITY:
            raise WizardError(f"Complete step {int(Step.SECURITY)} first")

        phone = phone_number or progress["data"].get("phoneNumber")
        if not phone:
            raise StepValidationError("phoneNumber: Phone number is required for MFA")
        if phone != progress["data"].get("phoneNumber"):
            progress["data"]["phoneNumber"] = phone
            self._save(progress)

        verification_id = self.identity.start_phone_verification(uid, phone, PURPOSE_ENROLL)
        return {"verification_id": verification_id, "phone_hint": mask_phone(phone)}

    def confirm_mfa(self, uid: str, verification_id: str, code: str) -> Dict[str, Any]:
        """Confirm the enrollment code; unblocks completion."""
        progress = self._load(uid)
        self._ensure_open(progress)
        if not progress.get("enableMfa"):
            raise WizardError("MFA was not requested in the security step")

        display_name = self._display_name(progress["data"])
        self.identity.confirm_phone_enrollment(verification_id, code, uid=uid, display_name=display_name)

        progress["mfaEnrolled"] = True
        progress["lastStep"] = int(Step.MFA)
        progress["step"] = int(Step.MFA)
        logger.info(f"Registration MFA confirmed: uid={uid}")
        return self._save(progress)

    def complete(self, uid: str) -> UserResponse:
        """
        Turn the collected answers into a stored User and close the wizard.

        Raises:
            WizardError: steps missing, MFA unconfirmed, or already completed
        """
        progress = self._load(uid)
        self._ensure_open(progress)
        if not is_ready(progress):
            if progress.get("enableMfa") and progress["lastStep"] >= Step.SECURITY:
                raise WizardError("Confirm the verification code sent to your phone first")
            raise WizardError("Registration steps are incomplete")

        identity_user = self.identity.get_user(uid)
        data = progress["data"]
        user_create = UserCreate.model_validate({
            **data,
            "identityUid": uid,
            "email": identity_user.email,
            "mfaEnabled": identity_user.mfa_enrolled,
        })
        try:
            user = self.storage.create_user(user_create)
        except DuplicateRecordError as e:
            raise WizardError(str(e)) from e

        if user.role == Role.EMPLOYER.value and data.get("company") and not self.storage.get_company_by_user_id(user.id):
            self.storage.create_company(CompanyCreate(
                name=data["company"],
                description=data.get("companyDescription"),
                website=data.get("companyWebsite"),
                industry=data.get("companyIndustry"),
                size=data.get("companySize"),
                location=data.get("companyLocation"),
            ), user.id)

        self.identity.update_user(uid, display_name=self._display_name(data))

        progress["completed"] = True
        progress["completedAt"] = _now()
        self._save(progress)
        logger.info(f"Registration completed: uid={uid}, user_id={user.id}, role={user.role}")
        return user

    @staticmethod
    def _ensure_open(progress: Dict[str, Any]) -> None:
        if progress.get("completed"):
            raise WizardError("Registration already completed")

    @staticmethod
    def _display_name(data: Dict[str, Any]) -> Optional[str]:
        name = " ".join(filter(None, [data.get("firstName"), data.get("lastName")]))
        return name or None
