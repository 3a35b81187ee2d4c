# schemas.py
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

MIN_PASSWORD_LENGTH = 8


class CamelModel(BaseModel):
    # JSON keys are camelCase, attributes stay snake_case
    model_config = ConfigDict(populate_by_name=True)


def _check_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")


## Requests
class SignupRequest(CamelModel):
    name: str
    email: EmailStr
    password: str
    age: Optional[int] = None
    city: Optional[str] = None
    state: Optional[str] = None
    mobile_number: Optional[str] = Field(default=None, alias="mobileNumber")
    role: Optional[str] = "user"

    @model_validator(mode='after')
    def check_password_requirements(self) -> 'SignupRequest':
        _check_password(self.password)
        return self


class VerifyOTPRequest(BaseModel):
    email: EmailStr
    otp: str # The 6-digit OTP entered by the user


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(CamelModel):
    refresh_token: str = Field(alias="refreshToken")


class ProfileRequest(BaseModel):
    id: Optional[Union[int, str]] = None


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    new_password: str = Field(alias="newPassword")

    @model_validator(mode='after')
    def check_password_requirements_reset(self) -> 'ResetPasswordRequest':
        _check_password(self.new_password)
        return self


## Responses
class MessageResponse(BaseModel):
    message: str


class SignupInitiatedResponse(BaseModel):
    message: str
    email: EmailStr


class AuthResponse(CamelModel):
    id: int
    name: Optional[str] = None
    email: EmailStr
    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")


class AccessTokenResponse(CamelModel):
    access_token: str = Field(alias="accessToken")


class Profile(CamelModel):
    name: Optional[str] = None
    email: EmailStr
    age: Optional[int] = None
    city: Optional[str] = None
    state: Optional[str] = None
    mobile_number: Optional[str] = Field(default=None, alias="mobileNumber")


class ProfileResponse(BaseModel):
    success: bool = True
    data: Profile


class SuccessResponse(BaseModel):
    success: bool = True
    message: str
