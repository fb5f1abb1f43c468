"""
Pydantic schemas for authentication endpoints.
"""
from typing import Optional
from pydantic import ConfigDict, EmailStr, Field, field_validator

from app.schemas.base import CamelModel
from app.schemas.user import UserProfile, UserResponse


def _check_password(v: str) -> str:
    """Validate password length in bytes (bcrypt limit is 72 bytes)."""
    password_bytes = v.encode("utf-8")
    if len(password_bytes) > 72:
        raise ValueError("Password must be 72 characters or fewer")
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters")
    return v


class SignupRequest(CamelModel):
    """Request schema for creating a sign-in account before the wizard runs."""
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., description="User's password (8 to 72 bytes)")

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        return _check_password(v)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "jane.doe@example.com",
                "password": "SecurePass123"
            }
        }
    )


class RegisterRequest(UserProfile):
    """One-shot registration: account credentials plus the full profile."""
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        return _check_password(v)


class LoginRequest(CamelModel):
    """Request schema for user login."""
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=1, description="User's password")


class MfaVerifyRequest(CamelModel):
    verification_id: str = Field(..., min_length=1)
    code: str = Field(..., pattern=r"^\d{6}$", description="6-digit code sent by SMS")


class LoginResponse(CamelModel):
    """
    Login outcome.

    With ``mfaRequired`` the session is not open yet: the client sends the
    SMS code with ``verificationId`` to /api/auth/mfa/verify. Otherwise the
    session cookie is set and ``user`` is the stored profile, or null while
    the registration wizard is still unfinished.
    """
    mfa_required: bool = False
    uid: str
    verification_id: Optional[str] = None
    phone_hint: Optional[str] = Field(None, description="Masked phone number the code was sent to")
    user: Optional[UserResponse] = None
    registration_completed: bool = False


class VerifyEmailRequest(CamelModel):
    token: str = Field(..., min_length=1)
