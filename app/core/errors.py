"""
Error formatting and HTTP mapping shared by routes and exception handlers.
"""
from typing import Iterable

from fastapi import status

# Identity-provider error code -> HTTP status
IDENTITY_ERROR_STATUS = {
    "auth/email-already-in-use": status.HTTP_409_CONFLICT,
    "auth/invalid-credential": status.HTTP_401_UNAUTHORIZED,
    "auth/user-not-found": status.HTTP_404_NOT_FOUND,
    "auth/weak-password": status.HTTP_400_BAD_REQUEST,
    "auth/invalid-verification-id": status.HTTP_400_BAD_REQUEST,
    "auth/invalid-verification-code": status.HTTP_400_BAD_REQUEST,
    "auth/code-expired": status.HTTP_400_BAD_REQUEST,
    "auth/too-many-requests": status.HTTP_429_TOO_MANY_REQUESTS,
}


def format_validation_errors(errors: Iterable[dict]) -> str:
    """
    Flatten pydantic error dicts into one readable message.

    ``[{"loc": ("body", "title"), "msg": "Field required"}]`` becomes
    ``"title: Field required"``.
    """
    messages = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        msg = error.get("msg", "Invalid value")
        # "Value error, First name is required" -> "First name is required"
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        messages.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return "; ".join(messages) or "Invalid request"
