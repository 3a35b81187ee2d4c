## Setup Dependencies
import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import config
from ..database import get_db
from ..errors import (
    InvalidAccessToken, InvalidCredentials, InvalidId, InvalidOTP, InvalidOrExpiredToken,
    InvalidRefreshToken, InvalidRequest, NoPendingSignup, NotificationFailure,
    ProfileAccessDenied, UserAlreadyExists, UserNotFound,
)
from ..models import User, OTPRecord, PendingSignup
from ..notifications import Mailer, get_mailer, send_otp_email, send_reset_password_link
from ..schemas import (
    AccessTokenResponse, AuthResponse, MessageResponse, Profile, ProfileResponse,
    SignupInitiatedResponse, SignupRequest, SuccessResponse,
)
from .tokens import (
    create_access_token, create_refresh_token, decode_access_token, decode_refresh_token,
)

logger = logging.getLogger(__name__)

## Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Acces Token Validation
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


def get_user(db: Session, email: str):
    return db.query(User).filter(User.email == email).first()


def get_user_by_id(db: Session, user_id: int):
    return db.query(User).filter(User.id == user_id).first()


# --- OTP STORE ---

def generate_six_digit_otp():
    """Generates a random 6-digit OTP."""
    return f"{secrets.randbelow(900000) + 100000}"


def save_otp(db: Session, email: str, otp: str):
    """Replaces any OTP for this email with a fresh one (upsert on the unique email column)."""
    now = _now()
    expires_at = now + timedelta(minutes=config.OTP_EXPIRE_MINUTES)
    db.query(OTPRecord).filter(OTPRecord.expires_at <= now).delete(synchronize_session=False)
    record = db.query(OTPRecord).filter(OTPRecord.email == email).with_for_update().first()
    if record is None:
        db.add(OTPRecord(email=email, otp=otp, created_at=now, expires_at=expires_at))
    else:
        record.otp = otp
        record.created_at = now
        record.expires_at = expires_at
    try:
        db.commit()
    except IntegrityError:
        # Another request inserted the row for this email first
        db.rollback()
        db.query(OTPRecord).filter(OTPRecord.email == email).update(
            {"otp": otp, "created_at": now, "expires_at": expires_at}
        )
        db.commit()


def get_valid_otp(db: Session, email: str, otp: str):
    """Retrieves the OTP row matching (email, otp) exactly, if it has not expired."""
    return db.query(OTPRecord).filter(
        OTPRecord.email == email,
        OTPRecord.otp == otp,
        OTPRecord.expires_at > _now(),
    ).first()


# --- PENDING SIGNUP STORE ---

def new_session_id() -> str:
    return secrets.token_urlsafe(32)


def save_pending_signup(db: Session, session_id: str, data: SignupRequest, hashed_password: str):
    """Stores unconfirmed registration data for the signup session, replacing any previous attempt."""
    # Expired signups left by other sessions are dropped on every write
    db.query(PendingSignup).filter(
        PendingSignup.expires_at <= _now(),
        PendingSignup.session_id != session_id,
    ).delete(synchronize_session=False)
    pending = db.get(PendingSignup, session_id)
    if pending is None:
        pending = PendingSignup(session_id=session_id)
        db.add(pending)
    pending.email = data.email
    pending.hashed_password = hashed_password
    pending.name = data.name
    pending.age = data.age
    pending.city = data.city
    pending.state = data.state
    pending.mobile_number = data.mobile_number
    pending.role = data.role
    pending.expires_at = _now() + timedelta(minutes=config.PENDING_SIGNUP_EXPIRE_MINUTES)
    db.commit()
    return pending


def get_pending_signup(db: Session, session_id: Optional[str]):
    """Retrieves the live pending signup for a session, ignoring expired ones."""
    if not session_id:
        return None
    return db.query(PendingSignup).filter(
        PendingSignup.session_id == session_id,
        PendingSignup.expires_at > _now(),
    ).first()


# --- PASSWORD RESET TOKENS ---

def generate_password_reset_token():
    return secrets.token_hex(32)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class AuthService:
    """
    Signup, login, token refresh and password reset flows.

    Every operation works inside the request's database session and either
    returns a response schema or raises one of ``authflow.errors``.
    """

    def __init__(self, db: Session, mailer: Mailer):
        self.db = db
        self.mailer = mailer

    def _issue_tokens(self, user: User):
        access_token = create_access_token(user.id)
        refresh_token = create_refresh_token(user.id)
        # Overwrites any previous refresh token: one active session per user
        user.refresh_token = refresh_token
        return AuthResponse(
            id=user.id,
            name=user.name,
            email=user.email,
            access_token=access_token,
            refresh_token=refresh_token,
        )

    def initiate_signup(self, session_id: str, data: SignupRequest) -> SignupInitiatedResponse:
        if get_user(self.db, data.email):
            raise UserAlreadyExists()

        otp = generate_six_digit_otp()
        save_otp(self.db, data.email, otp)

        if not send_otp_email(self.mailer, data.email, otp):
            raise NotificationFailure("Failed to send OTP")

        save_pending_signup(self.db, session_id, data, get_password_hash(data.password))
        logger.info("Signup OTP sent to %s", data.email)
        return SignupInitiatedResponse(message="OTP sent successfully", email=data.email)

    def verify_otp_and_register(self, session_id: Optional[str], email: str, otp: str) -> AuthResponse:
        pending = get_pending_signup(self.db, session_id)
        if pending is None:
            raise NoPendingSignup()

        # The code must belong to the email this session signed up with
        if pending.email != email:
            raise InvalidOTP()
        otp_record = get_valid_otp(self.db, email, otp)
        if otp_record is None:
            raise InvalidOTP()

        if get_user(self.db, email):
            raise UserAlreadyExists()

        user = User(
            email=pending.email,
            hashed_password=pending.hashed_password,
            name=pending.name,
            age=pending.age,
            city=pending.city,
            state=pending.state,
            mobile_number=pending.mobile_number,
            role=pending.role or "user",
        )
        self.db.add(user)
        self.db.delete(otp_record)
        self.db.delete(pending)
        try:
            self.db.flush()  # assigns user.id
            result = self._issue_tokens(user)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise UserAlreadyExists()

        logger.info("Registered user id=%s email=%s", user.id, user.email)
        return result

    def login(self, email: str, password: str) -> AuthResponse:
        user = get_user(self.db, email)
        # Same error for unknown email and wrong password
        if not user or not verify_password(password, user.hashed_password):
            raise InvalidCredentials()

        result = self._issue_tokens(user)
        self.db.commit()
        logger.info("User id=%s logged in", user.id)
        return result

    def refresh(self, refresh_token: str) -> AccessTokenResponse:
        user_id = decode_refresh_token(refresh_token)
        user = self.db.query(User).filter(
            User.id == user_id,
            User.refresh_token == refresh_token,
        ).first()
        if user is None:
            raise InvalidRefreshToken()
        return AccessTokenResponse(access_token=create_access_token(user.id))

    def logout(self, user: User) -> MessageResponse:
        user.refresh_token = None
        self.db.commit()
        logger.info("User id=%s logged out", user.id)
        return MessageResponse(message="Logged out successfully")

    def get_profile(self, requester: User, target_id) -> ProfileResponse:
        if target_id is None or target_id == "":
            raise InvalidRequest()
        try:
            target_id = int(target_id)
        except (TypeError, ValueError):
            raise InvalidId()

        if target_id != requester.id:
            raise ProfileAccessDenied()

        user = get_user_by_id(self.db, target_id)
        if user is None:
            raise UserNotFound("No user found with the provided ID")

        profile = Profile(
            name=user.name,
            email=user.email,
            age=user.age,
            city=user.city,
            state=user.state,
            mobile_number=user.mobile_number,
        )
        return ProfileResponse(success=True, data=profile)

    def forgot_password(self, email: str) -> SuccessResponse:
        user = get_user(self.db, email)
        if user is None:
            raise UserNotFound()

        reset_token = generate_password_reset_token()
        # Only the hash is stored; the plaintext token goes out in the link
        user.reset_password_token = hash_reset_token(reset_token)
        user.reset_password_expires = _now() + timedelta(minutes=config.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES)
        self.db.commit()

        reset_url = f"{config.RESET_PASSWORD_URL.rstrip('/')}/{reset_token}"
        if not send_reset_password_link(self.mailer, user.email, reset_url):
            raise NotificationFailure("Failed to send new password link")

        logger.info("Password reset link sent to user id=%s", user.id)
        return SuccessResponse(message="Password reset email sent")

    def reset_password(self, token: str, new_password: str) -> SuccessResponse:
        user = self.db.query(User).filter(
            User.reset_password_token == hash_reset_token(token),
            User.reset_password_expires > _now(),
        ).first()
        if user is None:
            raise InvalidOrExpiredToken()

        user.hashed_password = get_password_hash(new_password)
        user.reset_password_token = None
        user.reset_password_expires = None
        self.db.commit()
        logger.info("Password reset for user id=%s", user.id)
        return SuccessResponse(message="Password reset successful")


## Dependencies
def get_auth_service(db: Session = Depends(get_db), mailer: Mailer = Depends(get_mailer)) -> AuthService:
    return AuthService(db, mailer)


def get_current_user(token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)):
    if not token:
        raise InvalidAccessToken("Not authenticated")
    user_id = decode_access_token(token)
    user = get_user_by_id(db, user_id)
    if user is None:
        raise InvalidAccessToken()
    return user
