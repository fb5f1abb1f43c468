"""
Storage façade for users, companies, jobs and applications.

Routes talk to a ``Storage``; two implementations honor the same contract:

* ``MemStorage`` keeps everything in dictionaries (the default backend).
* ``DatabaseStorage`` persists through SQLAlchemy models.

Both assign sequential ids per entity starting at 1 and return API
schemas, so callers never see ORM rows.
"""
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from app.db.models import User, Company, Job, Application

from app.schemas.user import UserCreate, UserResponse
from app.schemas.company import CompanyCreate, CompanyResponse
from app.schemas.job import JobCreate, JobResponse
from app.schemas.application import ApplicationCreate, ApplicationResponse

logger = logging.getLogger(__name__)


class DuplicateRecordError(Exception):
    """Raised when a unique field (email, identity uid, company owner) is taken."""
    pass


class Storage(ABC):
    """Abstract interface for data storage."""

    # Users
    @abstractmethod
    def get_user(self, user_id: int) -> Optional[UserResponse]:
        pass

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[UserResponse]:
        pass

    @abstractmethod
    def get_user_by_identity_uid(self, uid: str) -> Optional[UserResponse]:
        pass

    @abstractmethod
    def create_user(self, user: UserCreate) -> UserResponse:
        pass

    # Companies
    @abstractmethod
    def get_company(self, company_id: int) -> Optional[CompanyResponse]:
        pass

    @abstractmethod
    def get_company_by_user_id(self, user_id: int) -> Optional[CompanyResponse]:
        pass

    @abstractmethod
    def create_company(self, company: CompanyCreate, user_id: int) -> CompanyResponse:
        pass

    # Jobs
    @abstractmethod
    def get_jobs(self, status: Optional[str] = None) -> List[JobResponse]:
        pass

    @abstractmethod
    def get_job(self, job_id: int) -> Optional[JobResponse]:
        pass

    @abstractmethod
    def get_jobs_by_employer(self, employer_id: int) -> List[JobResponse]:
        pass

    @abstractmethod
    def create_job(self, job: JobCreate, employer_id: int) -> JobResponse:
        pass

    # Applications
    @abstractmethod
    def get_application(self, application_id: int) -> Optional[ApplicationResponse]:
        pass

    @abstractmethod
    def get_applications_by_candidate(self, candidate_id: int) -> List[ApplicationResponse]:
        pass

    @abstractmethod
    def get_applications_by_job(self, job_id: int) -> List[ApplicationResponse]:
        pass

    @abstractmethod
    def create_application(
        self,
        application: ApplicationCreate,
        candidate_id: int,
        ai_match_score: Optional[int] = None,
        ai_insights: Optional[List[str]] = None,
    ) -> ApplicationResponse:
        pass


class MemStorage(Storage):
    """Dictionary-backed storage; state lives for the life of the process."""

    def __init__(self):
        self.users: Dict[int, UserResponse] = {}
        self.companies: Dict[int, CompanyResponse] = {}
        self.jobs: Dict[int, JobResponse] = {}
        self.applications: Dict[int, ApplicationResponse] = {}
        self.current_id = {"users": 1, "companies": 1, "jobs": 1, "applications": 1}
        # Sync endpoints run in a threadpool
        self._lock = threading.Lock()

    def _next_id(self, entity: str) -> int:
        next_id = self.current_id[entity]
        self.current_id[entity] += 1
        return next_id

    # Users
    def get_user(self, user_id: int) -> Optional[UserResponse]:
        return self.users.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[UserResponse]:
        email = email.lower()
        return next((u for u in self.users.values() if u.email.lower() == email), None)

    def get_user_by_identity_uid(self, uid: str) -> Optional[UserResponse]:
        return next((u for u in self.users.values() if u.identity_uid == uid), None)

    def create_user(self, user: UserCreate) -> UserResponse:
        with self._lock:
            if self.get_user_by_email(user.email):
                raise DuplicateRecordError("Email already registered")
            if self.get_user_by_identity_uid(user.identity_uid):
                raise DuplicateRecordError("Profile already exists for this account")
            record = UserResponse(
                **user.model_dump(),
                id=self._next_id("users"),
                created_at=datetime.now(timezone.utc),
            )
            self.users[record.id] = record
        return record

    # Companies
    def get_company(self, company_id: int) -> Optional[CompanyResponse]:
        return self.companies.get(company_id)

    def get_company_by_user_id(self, user_id: int) -> Optional[CompanyResponse]:
        return next((c for c in self.companies.values() if c.user_id == user_id), None)

    def create_company(self, company: CompanyCreate, user_id: int) -> CompanyResponse:
        with self._lock:
            if self.get_company_by_user_id(user_id):
                raise DuplicateRecordError("Company already exists for this user")
            record = CompanyResponse(
                **company.model_dump(),
                id=self._next_id("companies"),
                user_id=user_id,
                created_at=datetime.now(timezone.utc),
            )
            self.companies[record.id] = record
        return record

    # Jobs
    def get_jobs(self, status: Optional[str] = None) -> List[JobResponse]:
        return [job for job in self.jobs.values() if status is None or job.status == status]

    def get_job(self, job_id: int) -> Optional[JobResponse]:
        return self.jobs.get(job_id)

    def get_jobs_by_employer(self, employer_id: int) -> List[JobResponse]:
        return [job for job in self.jobs.values() if job.employer_id == employer_id]

    def create_job(self, job: JobCreate, employer_id: int) -> JobResponse:
        with self._lock:
            record = JobResponse(
                **job.model_dump(),
                id=self._next_id("jobs"),
                employer_id=employer_id,
                status="draft",
                ai_score=None,
                created_at=datetime.now(timezone.utc),
            )
            self.jobs[record.id] = record
        return record

    # Applications
    def get_application(self, application_id: int) -> Optional[ApplicationResponse]:
        return self.applications.get(application_id)

    def get_applications_by_candidate(self, candidate_id: int) -> List[ApplicationResponse]:
        return [a for a in self.applications.values() if a.candidate_id == candidate_id]

    def get_applications_by_job(self, job_id: int) -> List[ApplicationResponse]:
        return [a for a in self.applications.values() if a.job_id == job_id]

    def create_application(
        self,
        application: ApplicationCreate,
        candidate_id: int,
        ai_match_score: Optional[int] = None,
        ai_insights: Optional[List[str]] = None,
    ) -> ApplicationResponse:
        now = datetime.now(timezone.utc)
        with self._lock:
            record = ApplicationResponse(
                **application.model_dump(),
                id=self._next_id("applications"),
                candidate_id=candidate_id,
                status="pending",
                ai_match_score=ai_match_score,
                ai_insights=ai_insights,
                created_at=now,
                updated_at=now,
            )
            self.applications[record.id] = record
        return record


class DatabaseStorage(Storage):
    """SQLAlchemy-backed storage; one short-lived session per call."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def _first(self, model, schema, *criteria):
        db = self.session_factory()
        try:
            row = db.query(model).filter(*criteria).first()
            return schema.model_validate(row) if row else None
        finally:
            db.close()

    def _all(self, model, schema, *criteria):
        db = self.session_factory()
        try:
            rows = db.query(model).filter(*criteria).order_by(model.id).all()
            return [schema.model_validate(row) for row in rows]
        finally:
            db.close()

    def _insert(self, row, schema):
        db = self.session_factory()
        try:
            db.add(row)
            db.commit()
            db.refresh(row)
            return schema.model_validate(row)
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Insert rejected by constraint: {row!r}")
            raise DuplicateRecordError("Record violates a unique constraint") from e
        finally:
            db.close()

    # Users
    def get_user(self, user_id: int) -> Optional[UserResponse]:
        return self._first(User, UserResponse, User.id == user_id)

    def get_user_by_email(self, email: str) -> Optional[UserResponse]:
        return self._first(User, UserResponse, User.email == email.lower())

    def get_user_by_identity_uid(self, uid: str) -> Optional[UserResponse]:
        return self._first(User, UserResponse, User.identity_uid == uid)

    def create_user(self, user: UserCreate) -> UserResponse:
        if self.get_user_by_email(user.email):
            raise DuplicateRecordError("Email already registered")
        data = user.model_dump()
        data["email"] = data["email"].lower()
        return self._insert(User(**data), UserResponse)

    # Companies
    def get_company(self, company_id: int) -> Optional[CompanyResponse]:
        return self._first(Company, CompanyResponse, Company.id == company_id)

    def get_company_by_user_id(self, user_id: int) -> Optional[CompanyResponse]:
        return self._first(Company, CompanyResponse, Company.user_id == user_id)

    def create_company(self, company: CompanyCreate, user_id: int) -> CompanyResponse:
        if self.get_company_by_user_id(user_id):
            raise DuplicateRecordError("Company already exists for this user")
        return self._insert(Company(**company.model_dump(), user_id=user_id), CompanyResponse)

    # Jobs
    def get_jobs(self, status: Optional[str] = None) -> List[JobResponse]:
        criteria = [Job.status == status] if status else []
        return self._all(Job, JobResponse, *criteria)

    def get_job(self, job_id: int) -> Optional[JobResponse]:
        return self._first(Job, JobResponse, Job.id == job_id)

    def get_jobs_by_employer(self, employer_id: int) -> List[JobResponse]:
        return self._all(Job, JobResponse, Job.employer_id == employer_id)

    def create_job(self, job: JobCreate, employer_id: int) -> JobResponse:
        row = Job(**job.model_dump(), employer_id=employer_id, status="draft")
        return self._insert(row, JobResponse)

    # Applications
    def get_application(self, application_id: int) -> Optional[ApplicationResponse]:
        return self._first(Application, ApplicationResponse, Application.id == application_id)

    def get_applications_by_candidate(self, candidate_id: int) -> List[ApplicationResponse]:
        return self._all(Application, ApplicationResponse, Application.candidate_id == candidate_id)

    def get_applications_by_job(self, job_id: int) -> List[ApplicationResponse]:
        return self._all(Application, ApplicationResponse, Application.job_id == job_id)

    def create_application(
        self,
        application: ApplicationCreate,
        candidate_id: int,
        ai_match_score: Optional[int] = None,
        ai_insights: Optional[List[str]] = None,
    ) -> ApplicationResponse:
        row = Application(
            **application.model_dump(),
            candidate_id=candidate_id,
            status="pending",
            ai_match_score=ai_match_score,
            ai_insights=ai_insights,
        )
        return self._insert(row, ApplicationResponse)


def build_storage(backend: str) -> Storage:
    """Create the storage backend named by STORAGE_BACKEND."""
    if backend == "database":
        from app.db.session import SessionLocal
        logger.info("Using database storage")
        return DatabaseStorage(SessionLocal)
    if backend != "memory":
        raise ValueError(f"Unknown storage backend: {backend}")
    logger.info("Using in-memory storage")
    return MemStorage()
