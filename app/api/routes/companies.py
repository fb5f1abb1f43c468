"""
Company profile endpoints. Each employer owns at most one company.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status

from app.core.auth_dependency import get_storage, get_current_user, require_role
from app.db.storage import Storage, DuplicateRecordError
from app.schemas.company import CompanyCreate, CompanyResponse
from app.schemas.user import Role, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/companies", tags=["Companies"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=CompanyResponse)
def create_company(
    payload: CompanyCreate,
    employer: UserResponse = Depends(require_role(Role.EMPLOYER)),
    storage: Storage = Depends(get_storage),
):
    try:
        company = storage.create_company(payload, user_id=employer.id)
    except DuplicateRecordError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    logger.info(f"Company created: company_id={company.id}, user_id={employer.id}")
    return company


@router.get("/me", response_model=CompanyResponse)
def get_my_company(
    user: UserResponse = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    company = storage.get_company_by_user_id(user.id)
    if not company:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return company


@router.get("/{company_id}", response_model=CompanyResponse)
def get_company(company_id: int, storage: Storage = Depends(get_storage)):
    company = storage.get_company(company_id)
    if not company:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return company
