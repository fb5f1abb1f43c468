import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status

from app.core.auth_dependency import get_storage, get_current_user, require_role
from app.db.storage import Storage
from app.schemas.application import ApplicationCreate, ApplicationResponse
from app.schemas.user import Role, UserResponse
from app.services.match_service import score_application

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/applications", tags=["Applications"])


# ✅ APPLY TO A JOB
@router.post("", status_code=status.HTTP_201_CREATED, response_model=ApplicationResponse)
def create_application(
    payload: ApplicationCreate,
    candidate: UserResponse = Depends(require_role(Role.CANDIDATE)),
    storage: Storage = Depends(get_storage),
):
    job = storage.get_job(payload.job_id)
    if not job:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")

    match = score_application(job, candidate)
    application = storage.create_application(
        payload,
        candidate_id=candidate.id,
        ai_match_score=match.score,
        ai_insights=match.insights,
    )

    logger.info(f"Application created: application_id={application.id}, job_id={job.id}, candidate_id={candidate.id}")
    return application


# ✅ GET ALL USER APPLICATIONS
@router.get("", response_model=List[ApplicationResponse])
def list_my_applications(
    user: UserResponse = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return storage.get_applications_by_candidate(user.id)
