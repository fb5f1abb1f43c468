"""
Pydantic schemas for job endpoints.
"""
from typing import Optional, Any, Dict
from datetime import datetime
from pydantic import ConfigDict, Field, field_validator

from app.schemas.base import CamelModel

JOB_STATUS_PATTERN = "^(draft|published|closed)$"


class JobCreate(CamelModel):
    """
    Schema for creating a new job posting.

    The author (employerId) always comes from the session, never the body.
    """
    title: str = Field(..., description="Job title", min_length=1, max_length=255)
    company: str = Field(..., description="Company display name", min_length=1, max_length=255)
    description: str = Field(..., description="Role description", min_length=1)
    requirements: str = Field(..., description="Requirements, one per line or free text", min_length=1)
    location: str = Field(..., description="Location or 'Remote'", min_length=1, max_length=255)
    company_id: Optional[int] = Field(None, gt=0, description="Linked company profile")

    @field_validator("title", "company", "description", "requirements", "location")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field must not be blank")
        return v


class JobResponse(JobCreate):
    """Schema for job response."""
    id: int = Field(..., description="Job ID")
    employer_id: int = Field(..., description="User ID of the employer who posted this job")
    status: str = Field(..., pattern=JOB_STATUS_PATTERN)
    ai_score: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "employerId": 1,
                "companyId": None,
                "title": "Senior Software Engineer",
                "company": "Tech Corp",
                "description": "Build and run our hiring platform.",
                "requirements": "Python, FastAPI, PostgreSQL",
                "location": "Remote",
                "status": "draft",
                "aiScore": None,
                "createdAt": "2026-01-15T09:00:00Z"
            }
        }
    )
