"""
Job endpoints for the job board.

Anyone can browse jobs; posting requires an employer session. Jobs are
created as drafts.
"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query

from app.core.auth_dependency import get_storage, get_current_user, require_role
from app.db.storage import Storage
from app.schemas.application import ApplicationResponse
from app.schemas.job import JobCreate, JobResponse, JOB_STATUS_PATTERN
from app.schemas.user import Role, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["Jobs"])


@router.get("", response_model=List[JobResponse])
def list_jobs(
    job_status: Optional[str] = Query(None, alias="status", pattern=JOB_STATUS_PATTERN, description="Filter by status"),
    storage: Storage = Depends(get_storage),
):
    """List all jobs, optionally filtered by status."""
    return storage.get_jobs(status=job_status)


@router.get("/posted", response_model=List[JobResponse])
def list_posted_jobs(
    user: UserResponse = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Jobs posted by the authenticated user."""
    return storage.get_jobs_by_employer(user.id)


@router.get("/{job_id}", response_model=JobResponse)
def get_job(job_id: int, storage: Storage = Depends(get_storage)):
    job = storage.get_job(job_id)
    if not job:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return job


@router.post("", status_code=status.HTTP_201_CREATED, response_model=JobResponse)
def create_job(
    job_data: JobCreate,
    employer: UserResponse = Depends(require_role(Role.EMPLOYER)),
    storage: Storage = Depends(get_storage),
):
    """
    Create a job posting.

    The authenticated employer becomes the author. A linked companyId must
    belong to that employer.
    """
    if job_data.company_id is not None:
        company = storage.get_company(job_data.company_id)
        if not company or company.user_id != employer.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="companyId: Company not found for this employer"
            )

    try:
        job = storage.create_job(job_data, employer_id=employer.id)
    except Exception as e:
        logger.error(f"Failed to create job: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create job"
        )

    logger.info(f"Job created: job_id={job.id}, employer_id={employer.id}, company={job.company}")
    return job


@router.get("/{job_id}/applications", response_model=List[ApplicationResponse])
def list_job_applications(
    job_id: int,
    user: UserResponse = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Applications received for a job; only its employer may see them."""
    job = storage.get_job(job_id)
    if not job:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    if job.employer_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not the employer of this job")
    return storage.get_applications_by_job(job_id)
