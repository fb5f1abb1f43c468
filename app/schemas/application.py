"""
Pydantic schemas for application endpoints.
"""
from typing import Optional, List
from datetime import datetime
from pydantic import Field

from app.schemas.base import CamelModel


class ApplicationCreate(CamelModel):
    """A candidate applies to a job; the candidate comes from the session."""
    job_id: int = Field(..., gt=0, description="Job being applied to")


class ApplicationResponse(ApplicationCreate):
    id: int
    candidate_id: int
    status: str = Field(..., pattern="^(pending|accepted|rejected)$")
    ai_match_score: Optional[int] = Field(None, ge=0, le=100, description="Simulated match score")
    ai_insights: Optional[List[str]] = None
    created_at: datetime
    updated_at: datetime
