"""
In-process identity provider.

Owns sign-in accounts separately from the profile records in storage:
email/password credentials, email verification, phone verification codes
and enrolled MFA factors. Account lifecycle changes are published as events
(``user.created``, ``user.updated``, ``user.signed_in``) so triggers can
react to them without the routes knowing about it.
"""
import copy
import logging
import secrets
import threading
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from app.core.config import SMS_CODE_TTL_SECONDS, SMS_MAX_ATTEMPTS
from app.core.security import hash_password, verify_password

logger = logging.getLogger(__name__)

USER_CREATED = "user.created"
USER_UPDATED = "user.updated"
USER_SIGNED_IN = "user.signed_in"

PURPOSE_ENROLL = "enroll"
PURPOSE_SIGN_IN = "sign_in"


class IdentityError(Exception):
    """Error raised by the identity provider, carrying a stable error code."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass
class EnrolledFactor:
    uid: str
    phone_number: str
    factor_id: str = "phone"
    display_name: Optional[str] = None
    enrolled_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class IdentityUser:
    uid: str
    email: str
    password_hash: str
    display_name: Optional[str] = None
    email_verified: bool = False
    disabled: bool = False
    enrolled_factors: List[EnrolledFactor] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_sign_in_at: Optional[datetime] = None

    @property
    def mfa_enrolled(self) -> bool:
        return bool(self.enrolled_factors)


@dataclass
class PendingVerification:
    verification_id: str
    uid: str
    phone_number: str
    code: str
    purpose: str
    expires_at: datetime
    attempts: int = 0


@dataclass
class SignInResult:
    user: IdentityUser
    mfa_required: bool = False
    verification_id: Optional[str] = None
    phone_hint: Optional[str] = None


def mask_phone(phone_number: str) -> str:
    """Keep only the last two digits, e.g. +*********71."""
    return phone_number[0] + "*" * (len(phone_number) - 3) + phone_number[-2:]


class SmsSender:
    """Delivers verification codes. Subclass to plug in a real SMS gateway."""

    def send_code(self, phone_number: str, code: str) -> None:
        raise NotImplementedError


class LoggingSmsSender(SmsSender):
    """Writes codes to the log instead of sending them, like an auth emulator."""

    def send_code(self, phone_number: str, code: str) -> None:
        logger.info(f"SMS verification code for {mask_phone(phone_number)}: {code}")


class IdentityProvider:
    def __init__(self, sms_sender: Optional[SmsSender] = None):
        self.sms_sender = sms_sender or LoggingSmsSender()
        self.users: Dict[str, IdentityUser] = {}
        self.pending: Dict[str, PendingVerification] = {}
        self.listeners: Dict[str, List[Callable]] = defaultdict(list)
        self._lock = threading.Lock()

    # Events
    def on(self, event: str, listener: Callable) -> None:
        """Subscribe a listener to an account lifecycle event."""
        self.listeners[event].append(listener)

    def _emit(self, event: str, *args) -> None:
        for listener in self.listeners[event]:
            try:
                listener(*args)
            except Exception:
                # A failing trigger never fails the account operation
                logger.exception(f"Listener {getattr(listener, '__name__', listener)} failed for {event}")

    # Accounts
    def create_user(self, email: str, password: str, display_name: Optional[str] = None) -> IdentityUser:
        email = email.strip().lower()
        if len(password) < 8:
            raise IdentityError("auth/weak-password", "Password should be at least 8 characters")
        with self._lock:
            if self._find_by_email(email):
                raise IdentityError("auth/email-already-in-use", "The email address is already in use by another account.")
            user = IdentityUser(
                uid=uuid.uuid4().hex,
                email=email,
                password_hash=hash_password(password),
                display_name=display_name,
            )
            self.users[user.uid] = user
        logger.info(f"Identity account created: uid={user.uid}")
        self._emit(USER_CREATED, copy.deepcopy(user))
        return user

    def get_user(self, uid: str) -> IdentityUser:
        user = self.users.get(uid)
        if not user:
            raise IdentityError("auth/user-not-found", "There is no user record corresponding to this identifier.")
        return user

    def get_user_by_email(self, email: str) -> IdentityUser:
        user = self._find_by_email(email.strip().lower())
        if not user:
            raise IdentityError("auth/user-not-found", "There is no user record corresponding to this identifier.")
        return user

    def _find_by_email(self, email: str) -> Optional[IdentityUser]:
        return next((u for u in self.users.values() if u.email == email), None)

    def update_user(self, uid: str, **fields) -> IdentityUser:
        """Apply attribute changes and publish a before/after snapshot pair."""
        user = self.get_user(uid)
        before = copy.deepcopy(user)
        for name, value in fields.items():
            if not hasattr(user, name):
                raise ValueError(f"Unknown identity field: {name}")
            setattr(user, name, value)
        self._emit(USER_UPDATED, before, copy.deepcopy(user))
        return user

    def delete_user(self, uid: str) -> None:
        """Remove an account and its outstanding verification codes."""
        with self._lock:
            if self.users.pop(uid, None) is None:
                raise IdentityError("auth/user-not-found", "There is no user record corresponding to this identifier.")
            self._discard_pending(lambda p: p.uid == uid)
        logger.info(f"Identity account deleted: uid={uid}")

    def mark_email_verified(self, uid: str) -> IdentityUser:
        return self.update_user(uid, email_verified=True)

    # Sign-in
    def sign_in_with_email_and_password(self, email: str, password: str) -> SignInResult:
        """
        Check credentials.

        Accounts with an enrolled phone factor get a code sent to that phone
        and must finish with resolve_mfa_sign_in().
        """
        user = self._find_by_email(email.strip().lower())
        if not user or user.disabled or not verify_password(password, user.password_hash):
            raise IdentityError("auth/invalid-credential", "Invalid email or password.")

        if user.mfa_enrolled:
            factor = user.enrolled_factors[0]
            verification_id = self.start_phone_verification(user.uid, factor.phone_number, PURPOSE_SIGN_IN)
            return SignInResult(
                user=user,
                mfa_required=True,
                verification_id=verification_id,
                phone_hint=mask_phone(factor.phone_number),
            )

        return SignInResult(user=self._complete_sign_in(user, mfa=False))

    def resolve_mfa_sign_in(self, verification_id: str, code: str) -> IdentityUser:
        pending = self._redeem(verification_id, code, PURPOSE_SIGN_IN)
        return self._complete_sign_in(self.get_user(pending.uid), mfa=True)

    def _complete_sign_in(self, user: IdentityUser, mfa: bool) -> IdentityUser:
        user.last_sign_in_at = datetime.now(timezone.utc)
        self._emit(USER_SIGNED_IN, copy.deepcopy(user), mfa)
        return user

    # Phone verification
    def start_phone_verification(self, uid: str, phone_number: str, purpose: str = PURPOSE_ENROLL) -> str:
        """
        Send a 6-digit code to a phone number.

        A new code replaces any earlier unredeemed code for the same user
        and purpose.

        Returns:
            Verification id to present together with the code
        """
        self.get_user(uid)
        now = datetime.now(timezone.utc)
        code = f"{secrets.randbelow(1_000_000):06d}"
        pending = PendingVerification(
            verification_id=secrets.token_urlsafe(16),
            uid=uid,
            phone_number=phone_number,
            code=code,
            purpose=purpose,
            expires_at=now + timedelta(seconds=SMS_CODE_TTL_SECONDS),
        )
        with self._lock:
            self._discard_pending(
                lambda p: p.expires_at <= now or (p.uid == uid and p.purpose == purpose)
            )
            self.pending[pending.verification_id] = pending
        self.sms_sender.send_code(phone_number, code)
        logger.info(f"Phone verification started: uid={uid}, purpose={purpose}")
        return pending.verification_id

    def purge_expired_verifications(self, now: Optional[datetime] = None) -> int:
        """Drop codes past their TTL; returns how many were dropped."""
        now = now or datetime.now(timezone.utc)
        with self._lock:
            return self._discard_pending(lambda p: p.expires_at <= now)

    def _discard_pending(self, predicate: Callable[[PendingVerification], bool]) -> int:
        stale = [vid for vid, p in self.pending.items() if predicate(p)]
        for verification_id in stale:
            del self.pending[verification_id]
        return len(stale)

    def confirm_phone_enrollment(
        self,
        verification_id: str,
        code: str,
        uid: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> IdentityUser:
        """Redeem an enrollment code and add the phone as a second factor."""
        pending = self._redeem(verification_id, code, PURPOSE_ENROLL, uid)
        user = self.get_user(pending.uid)
        if any(f.phone_number == pending.phone_number for f in user.enrolled_factors):
            return user
        factor = EnrolledFactor(
            uid=uuid.uuid4().hex,
            phone_number=pending.phone_number,
            display_name=display_name,
        )
        logger.info(f"Phone factor enrolled: uid={user.uid}")
        return self.update_user(user.uid, enrolled_factors=user.enrolled_factors + [factor])

    def _redeem(self, verification_id: str, code: str, purpose: str, uid: Optional[str] = None) -> PendingVerification:
        pending = self.pending.get(verification_id)
        if not pending or pending.purpose != purpose or (uid and pending.uid != uid):
            raise IdentityError("auth/invalid-verification-id", "The verification ID is invalid.")

        if datetime.now(timezone.utc) >= pending.expires_at:
            del self.pending[verification_id]
            raise IdentityError("auth/code-expired", "The SMS code has expired. Please re-send the verification code to try again.")

        if pending.attempts >= SMS_MAX_ATTEMPTS:
            del self.pending[verification_id]
            raise IdentityError("auth/too-many-requests", "Too many attempts. Request a new verification code.")

        if not secrets.compare_digest(pending.code, code):
            pending.attempts += 1
            logger.warning(f"Wrong verification code: uid={pending.uid}, attempts={pending.attempts}")
            raise IdentityError("auth/invalid-verification-code", "The SMS verification code is invalid.")

        del self.pending[verification_id]
        return pending
