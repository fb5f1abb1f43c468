from typing import Optional

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordBearer

from app.core.config import (
    STORAGE_BACKEND,
    SESSION_COOKIE_NAME,
    COOKIE_SECURE,
    ACCESS_TOKEN_EXPIRE_MINUTES,
)
from app.core.security import create_access_token, decode_access_token
from app.db.storage import Storage, build_storage
from app.schemas.user import Role, UserResponse
from app.services.document_store import DocumentStore
from app.services.identity_provider import IdentityProvider
from app.services.registration_service import RegistrationService

# Bearer header is optional; the session cookie is the primary credential
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

# Process-wide services; tests swap them through app.dependency_overrides
storage: Storage = build_storage(STORAGE_BACKEND)
identity_provider = IdentityProvider()
document_store = DocumentStore()


def get_storage() -> Storage:
    return storage


def get_identity_provider() -> IdentityProvider:
    return identity_provider


def get_document_store() -> DocumentStore:
    return document_store


def get_registration_service(
    storage: Storage = Depends(get_storage),
    identity: IdentityProvider = Depends(get_identity_provider),
    documents: DocumentStore = Depends(get_document_store),
) -> RegistrationService:
    return RegistrationService(documents, identity, storage)


def open_session(response: Response, uid: str) -> str:
    """Mint a session token for an identity and set it as an HTTP-only cookie."""
    token = create_access_token({"sub": uid})
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
    )
    return token


def close_session(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE_NAME)


def get_current_uid(request: Request, bearer: Optional[str] = Depends(oauth2_scheme)) -> str:
    """Identity uid from the session cookie (or a bearer token)."""
    token = request.cookies.get(SESSION_COOKIE_NAME) or bearer
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    payload = decode_access_token(token)
    uid = payload.get("sub") if payload else None
    if not uid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return uid


def get_current_user(
    uid: str = Depends(get_current_uid),
    storage: Storage = Depends(get_storage),
) -> UserResponse:
    """Stored User for the session; 401 until the profile exists."""
    user = storage.get_user_by_identity_uid(uid)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def require_role(role: Role):
    """Build a dependency that only lets users with the given role through."""
    def role_checker(user: UserResponse = Depends(get_current_user)) -> UserResponse:
        if user.role != role.value:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Only {role.value}s can perform this action"
            )
        return user
    return role_checker
