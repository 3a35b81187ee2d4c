## Setup Libraries
from fastapi import Depends, APIRouter, Request, Response, status

from .. import config
from ..auth.auth_handler import AuthService, get_auth_service, get_current_user, new_session_id
from ..models import User
from ..schemas import (
    AccessTokenResponse, AuthResponse, ForgotPasswordRequest, LoginRequest, MessageResponse,
    ProfileRequest, ProfileResponse, RefreshRequest, ResetPasswordRequest,
    SignupInitiatedResponse, SignupRequest, SuccessResponse, VerifyOTPRequest,
)

router = APIRouter()


@router.post("/signup/initiate", response_model=SignupInitiatedResponse)
def initiate_signup(
    user_data: SignupRequest,
    request: Request,
    response: Response,
    service: AuthService = Depends(get_auth_service),
):
    """
    Sends a 6-digit OTP to the email and keeps the registration data
    against the signup session cookie until the code is verified.
    """
    session_id = request.cookies.get(config.SESSION_COOKIE_NAME) or new_session_id()
    result = service.initiate_signup(session_id, user_data)
    response.set_cookie(
        key=config.SESSION_COOKIE_NAME,
        value=session_id,
        max_age=config.PENDING_SIGNUP_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=config.SESSION_COOKIE_SECURE,
    )
    return result


@router.post("/signup/verify", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def verify_otp_and_register(
    otp_request: VerifyOTPRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
):
    """
    Verifies the OTP sent to the user's email and completes registration.
    """
    session_id = request.cookies.get(config.SESSION_COOKIE_NAME)
    return service.verify_otp_and_register(session_id, otp_request.email, otp_request.otp)


@router.post("/login", response_model=AuthResponse)
def login(data: LoginRequest, service: AuthService = Depends(get_auth_service)):
    return service.login(data.email, data.password)


@router.post("/refresh", response_model=AccessTokenResponse)
def refresh_token(data: RefreshRequest, service: AuthService = Depends(get_auth_service)):
    return service.refresh(data.refresh_token)


@router.post("/logout", response_model=MessageResponse)
def logout(
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    return service.logout(current_user)


@router.post("/profile", response_model=ProfileResponse)
def get_profile(
    data: ProfileRequest,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    """
    Returns the caller's own profile. Asking for anyone else's is refused.
    """
    return service.get_profile(current_user, data.id)


@router.post("/forgot-password", response_model=SuccessResponse)
def forgot_password(request: ForgotPasswordRequest, service: AuthService = Depends(get_auth_service)):
    """
    Emails a single-use password reset link, valid for a few minutes.
    """
    return service.forgot_password(request.email)


@router.post("/reset-password/{token}", response_model=SuccessResponse)
def reset_password(
    token: str,
    request: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service),
):
    return service.reset_password(token, request.new_password)
