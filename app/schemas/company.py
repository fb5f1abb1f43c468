"""
Pydantic schemas for company endpoints.
"""
from typing import Optional
from datetime import datetime
from pydantic import Field, field_validator

from app.schemas.base import CamelModel, check_url, check_required_text


class CompanyCreate(CamelModel):
    """Schema for creating a company profile."""
    name: str = Field(..., max_length=255, description="Company name")
    description: Optional[str] = Field(None, max_length=5000)
    website: Optional[str] = Field(None, description="Company website URL")
    industry: Optional[str] = Field(None, max_length=255)
    size: Optional[str] = Field(None, max_length=50, description="Headcount band, e.g. 11-50")
    location: Optional[str] = Field(None, max_length=255)

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        return check_required_text(v, "Company name is required")

    @field_validator("website")
    @classmethod
    def validate_website(cls, v: Optional[str]) -> Optional[str]:
        return check_url(v, "Invalid website URL")


class CompanyResponse(CompanyCreate):
    """Schema for company response."""
    id: int
    user_id: int
    created_at: datetime
