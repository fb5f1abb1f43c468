"""
Pydantic schemas for the registration wizard.

Each wizard step has its own payload model and is validated on its own;
cross-step rules (company required for employers) live in the service.
"""
from typing import Optional, Any, Dict
from datetime import datetime
from pydantic import Field, field_validator, model_validator

from app.schemas.base import CamelModel, PHONE_PATTERN, check_url, check_required_text
from app.schemas.user import Role, JobTitle, CommunicationPreference


class ProfileStep(CamelModel):
    """Step 1: who the user is."""
    role: Role
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    job_title: Optional[JobTitle] = None
    linkedin_url: Optional[str] = None
    profile_picture: Optional[str] = None

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


class CompanyStep(CamelModel):
    """Step 2: company and hiring needs (employers) or background (candidates)."""
    company: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = Field(None, max_length=5000, description="Hiring needs or candidate summary")
    company_description: Optional[str] = Field(None, max_length=5000)
    company_website: Optional[str] = None
    company_industry: Optional[str] = Field(None, max_length=255)
    company_size: Optional[str] = Field(None, max_length=50)
    company_location: Optional[str] = Field(None, max_length=255)

    @field_validator("company")
    @classmethod
    def blank_company_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("company_website")
    @classmethod
    def validate_website(cls, v: Optional[str]) -> Optional[str]:
        return check_url(v, "Invalid website URL")


class SecurityStep(CamelModel):
    """Step 3: contact preferences and whether to protect the account with MFA."""
    communication_preference: CommunicationPreference = CommunicationPreference.EMAIL.value
    enable_mfa: bool = False
    phone_number: Optional[str] = Field(None, pattern=PHONE_PATTERN)

    @model_validator(mode="after")
    def phone_required_when_used(self):
        needs_phone = self.enable_mfa or self.communication_preference == CommunicationPreference.SMS.value
        if needs_phone and not self.phone_number:
            raise ValueError("Phone number is required for SMS contact or MFA")
        return self


class MfaStartRequest(CamelModel):
    phone_number: Optional[str] = Field(None, pattern=PHONE_PATTERN, description="Defaults to the phone from step 3")


class MfaStartResponse(CamelModel):
    verification_id: str
    phone_hint: str


class MfaConfirmRequest(CamelModel):
    verification_id: str = Field(..., min_length=1)
    code: str = Field(..., pattern=r"^\d{6}$")


class RegistrationProgressResponse(CamelModel):
    """Persisted wizard state, as stored in registrationProgress/{uid}."""
    uid: str
    email: Optional[str] = None
    step: int = Field(..., description="Step the user is currently on")
    last_step: int = Field(..., description="Highest step completed")
    data: Dict[str, Any] = Field(default_factory=dict)
    enable_mfa: bool = False
    mfa_enrolled: bool = False
    completed: bool = False
    ready: bool = Field(False, description="All required steps are done")
    started_at: datetime
    timestamp: datetime
    completed_at: Optional[datetime] = None


class SignupResponse(CamelModel):
    uid: str
    email: str
    registration: RegistrationProgressResponse
