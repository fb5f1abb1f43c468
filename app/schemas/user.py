"""
Pydantic schemas for user profiles.
"""
from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import ConfigDict, EmailStr, Field, field_validator

from app.schemas.base import CamelModel, PHONE_PATTERN, check_url, check_required_text


class Role(str, Enum):
    EMPLOYER = "employer"
    CANDIDATE = "candidate"


class JobTitle(str, Enum):
    TALENT_ACQUISITION_MANAGER = "Talent Acquisition Manager"
    HR_DIRECTOR = "HR Director"
    CEO = "CEO"
    OTHER = "Other"


class CommunicationPreference(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    PLATFORM = "platform"


class UserProfile(CamelModel):
    """Profile fields shared by registration payloads and stored users."""
    role: Role = Field(..., description="Account role")
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    phone_number: Optional[str] = Field(None, pattern=PHONE_PATTERN, description="E.164 phone number")
    job_title: Optional[JobTitle] = None
    linkedin_url: Optional[str] = None
    profile_picture: Optional[str] = None
    communication_preference: CommunicationPreference = CommunicationPreference.EMAIL.value
    company: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = Field(None, max_length=5000)

    @field_validator("first_name")
    @classmethod
    def first_name_required(cls, v: str) -> str:
        return check_required_text(v, "First name is required")

    @field_validator("last_name")
    @classmethod
    def last_name_required(cls, v: str) -> str:
        return check_required_text(v, "Last name is required")

    @field_validator("linkedin_url")
    @classmethod
    def validate_linkedin_url(cls, v: Optional[str]) -> Optional[str]:
        return check_url(v, "Invalid LinkedIn URL")

    @field_validator("profile_picture")
    @classmethod
    def validate_profile_picture(cls, v: Optional[str]) -> Optional[str]:
        return check_url(v, "Invalid profile picture URL")


class UserCreate(UserProfile):
    """Storage-level insert payload; the identity uid comes from the session."""
    identity_uid: str = Field(..., min_length=1)
    email: EmailStr
    mfa_enabled: bool = False


class UserResponse(UserCreate):
    id: int
    created_at: datetime

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "identityUid": "f3a1c2d4e5",
                "email": "jane.doe@example.com",
                "role": "employer",
                "firstName": "Jane",
                "lastName": "Doe",
                "phoneNumber": "+14155552671",
                "jobTitle": "HR Director",
                "linkedinUrl": None,
                "profilePicture": None,
                "communicationPreference": "email",
                "company": "Acme Corp",
                "bio": "Hiring backend engineers.",
                "mfaEnabled": False,
                "createdAt": "2026-01-15T09:00:00Z"
            }
        }
    )
