"""
Authentication endpoints: account creation, sign-in (with optional SMS second
factor), session cookie handling and email verification.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.core.auth_dependency import (
    get_storage,
    get_identity_provider,
    get_document_store,
    get_registration_service,
    get_current_user,
    open_session,
    close_session,
)
from app.core.rate_limit import rate_limited
from app.core.security import create_email_verification_token, decode_access_token
from app.db.storage import Storage, DuplicateRecordError
from app.schemas.auth import (
    SignupRequest,
    RegisterRequest,
    LoginRequest,
    LoginResponse,
    MfaVerifyRequest,
    VerifyEmailRequest,
)
from app.schemas.registration import SignupResponse
from app.schemas.user import UserCreate, UserResponse
from app.services.document_store import DocumentStore
from app.services.identity_provider import IdentityProvider, IdentityUser
from app.services.registration_service import RegistrationService
from app.services.triggers import queue_mail

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _signed_in(response: Response, account: IdentityUser, storage: Storage) -> LoginResponse:
    open_session(response, account.uid)
    user: Optional[UserResponse] = storage.get_user_by_identity_uid(account.uid)
    return LoginResponse(
        mfa_required=False,
        uid=account.uid,
        user=user,
        registration_completed=user is not None,
    )


# ✅ ACCOUNT SIGNUP (wizard collects the profile afterwards)
@router.post(
    "/signup",
    status_code=status.HTTP_201_CREATED,
    response_model=SignupResponse,
    dependencies=[Depends(rate_limited("signup"))],
)
def signup(
    payload: SignupRequest,
    response: Response,
    identity: IdentityProvider = Depends(get_identity_provider),
    documents: DocumentStore = Depends(get_document_store),
    registration: RegistrationService = Depends(get_registration_service),
):
    account = identity.create_user(payload.email, payload.password)

    queue_mail(
        documents,
        account.email,
        "verify_email",
        token=create_email_verification_token(account.uid),
    )
    open_session(response, account.uid)
    progress = registration.start(account.uid)

    return SignupResponse(
        uid=account.uid,
        email=account.email,
        registration=registration.describe(progress),
    )


# ✅ ONE-SHOT REGISTRATION (credentials + full profile in one request)
@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=UserResponse,
    dependencies=[Depends(rate_limited("signup"))],
)
def register(
    payload: RegisterRequest,
    response: Response,
    identity: IdentityProvider = Depends(get_identity_provider),
    storage: Storage = Depends(get_storage),
):
    if storage.get_user_by_email(payload.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    account = identity.create_user(
        payload.email,
        payload.password,
        display_name=f"{payload.first_name} {payload.last_name}",
    )
    try:
        user = storage.create_user(UserCreate(
            **payload.model_dump(exclude={"password", "email"}),
            email=account.email,
            identity_uid=account.uid,
        ))
    except DuplicateRecordError as e:
        identity.delete_user(account.uid)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception:
        # No profile means no account; the email stays free for a retry
        logger.error(f"Failed to store profile, removing account: uid={account.uid}", exc_info=True)
        identity.delete_user(account.uid)
        raise

    open_session(response, account.uid)
    logger.info(f"User registered: user_id={user.id}, role={user.role}")
    return user


# ✅ LOGIN (may answer with an SMS challenge instead of a session)
@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(rate_limited("login"))],
)
def login(
    payload: LoginRequest,
    response: Response,
    identity: IdentityProvider = Depends(get_identity_provider),
    storage: Storage = Depends(get_storage),
):
    result = identity.sign_in_with_email_and_password(payload.email, payload.password)

    if result.mfa_required:
        logger.info(f"Login requires second factor: uid={result.user.uid}")
        return LoginResponse(
            mfa_required=True,
            uid=result.user.uid,
            verification_id=result.verification_id,
            phone_hint=result.phone_hint,
        )

    return _signed_in(response, result.user, storage)


@router.post(
    "/mfa/verify",
    response_model=LoginResponse,
    dependencies=[Depends(rate_limited("mfa"))],
)
def verify_mfa(
    payload: MfaVerifyRequest,
    response: Response,
    identity: IdentityProvider = Depends(get_identity_provider),
    storage: Storage = Depends(get_storage),
):
    account = identity.resolve_mfa_sign_in(payload.verification_id, payload.code)
    return _signed_in(response, account, storage)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout():
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    close_session(response)
    return response


@router.get("/me", response_model=UserResponse)
def me(user: UserResponse = Depends(get_current_user)):
    return user


@router.post("/verify-email")
def verify_email(
    payload: VerifyEmailRequest,
    identity: IdentityProvider = Depends(get_identity_provider),
):
    token_data = decode_access_token(payload.token, purpose="verify_email")
    if not token_data or not token_data.get("sub"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired verification link")

    identity.mark_email_verified(token_data["sub"])
    return {"message": "Email verified"}
