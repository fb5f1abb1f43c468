"""
Registration wizard endpoints.

Every call needs a session (opened by /api/auth/signup); progress is keyed
by the session's identity uid, so the wizard resumes where it stopped.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import ValidationError

from app.core.auth_dependency import get_current_uid, get_registration_service
from app.core.errors import format_validation_errors
from app.core.rate_limit import rate_limited
from app.schemas.registration import (
    MfaStartRequest,
    MfaStartResponse,
    MfaConfirmRequest,
    RegistrationProgressResponse,
)
from app.schemas.user import UserResponse
from app.services.registration_service import (
    RegistrationService,
    WizardError,
    StepValidationError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/registration", tags=["Registration"])


def _run(action, *args):
    """Call a wizard operation and translate its errors to HTTP."""
    try:
        return action(*args)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=format_validation_errors(e.errors()))
    except StepValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except WizardError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/start", response_model=RegistrationProgressResponse)
def start_registration(
    uid: str = Depends(get_current_uid),
    wizard: RegistrationService = Depends(get_registration_service),
):
    return wizard.describe(_run(wizard.start, uid))


@router.get("/progress", response_model=RegistrationProgressResponse)
def get_progress(
    uid: str = Depends(get_current_uid),
    wizard: RegistrationService = Depends(get_registration_service),
):
    return wizard.describe(_run(wizard.get_progress, uid))


@router.post("/steps/{step}", response_model=RegistrationProgressResponse)
def submit_step(
    step: int,
    payload: Dict[str, Any] = Body(...),
    uid: str = Depends(get_current_uid),
    wizard: RegistrationService = Depends(get_registration_service),
):
    """Validate and save one step; the step's schema is chosen by its number."""
    return wizard.describe(_run(wizard.submit_step, uid, step, payload))


@router.post("/back", response_model=RegistrationProgressResponse)
def go_back(
    uid: str = Depends(get_current_uid),
    wizard: RegistrationService = Depends(get_registration_service),
):
    return wizard.describe(_run(wizard.back, uid))


@router.post(
    "/mfa/start",
    response_model=MfaStartResponse,
    dependencies=[Depends(rate_limited("mfa"))],
)
def start_mfa(
    payload: Optional[MfaStartRequest] = None,
    uid: str = Depends(get_current_uid),
    wizard: RegistrationService = Depends(get_registration_service),
):
    phone_number = payload.phone_number if payload else None
    return MfaStartResponse(**_run(wizard.start_mfa, uid, phone_number))


@router.post(
    "/mfa/confirm",
    response_model=RegistrationProgressResponse,
    dependencies=[Depends(rate_limited("mfa"))],
)
def confirm_mfa(
    payload: MfaConfirmRequest,
    uid: str = Depends(get_current_uid),
    wizard: RegistrationService = Depends(get_registration_service),
):
    return wizard.describe(_run(wizard.confirm_mfa, uid, payload.verification_id, payload.code))


@router.post("/complete", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
def complete_registration(
    uid: str = Depends(get_current_uid),
    wizard: RegistrationService = Depends(get_registration_service),
):
    return _run(wizard.complete, uid)
