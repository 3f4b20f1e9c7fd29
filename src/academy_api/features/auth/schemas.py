"""Request and response shapes for the three authentication surfaces."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import EmailStr, Field, model_validator

from academy_api.common.schema import BaseSchema, InputSchema
from academy_api.common.validators import MobileNumber, StrongPassword
from academy_api.features.users.models import Gender, UserType
from academy_api.features.users.schemas import UserOut

from .models import DeviceType, OtpMode

OtpCodeField = Annotated[str, Field(min_length=4, max_length=8, pattern=r"^\d+$")]


class DeviceInfo(InputSchema):
    device_type: DeviceType = DeviceType.WEB
    device_id: str | None = Field(default=None, max_length=255)
    fcm_token: str | None = Field(default=None, max_length=500)


class SendOtpRequest(InputSchema):
    mobile: MobileNumber
    mode: OtpMode = OtpMode.LOGIN


class VerifyOtpRequest(InputSchema):
    mobile: MobileNumber
    otp: OtpCodeField
    mode: OtpMode = OtpMode.LOGIN
    device: DeviceInfo = Field(default_factory=DeviceInfo)


class OtpSent(BaseSchema):
    identifier: str
    mode: OtpMode
    expires_in: int
    otp: str | None = None


class TokenPair(BaseSchema):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int


class AuthResult(BaseSchema):
    user: UserOut
    tokens: TokenPair


class OtpVerification(BaseSchema):
    """Either an authenticated session or a token to finish registration with."""

    is_registered: bool
    user: UserOut | None = None
    tokens: TokenPair | None = None
    registration_token: str | None = None


REGISTRATION_PROOF_REQUIRED = "Provide registration_token or both mobile and otp"


class _RegistrationProof(InputSchema):
    registration_token: str | None = None
    mobile: MobileNumber | None = None
    otp: OtpCodeField | None = None

    @model_validator(mode="after")
    def _require_proof(self):
        if self.registration_token:
            return self
        if self.mobile and self.otp:
            return self
        raise ValueError(REGISTRATION_PROOF_REQUIRED)


class UserRegisterRequest(_RegistrationProof):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    email: EmailStr | None = None
    password: StrongPassword | None = None
    gender: Gender | None = None
    user_type: UserType = UserType.STUDENT
    device: DeviceInfo = Field(default_factory=DeviceInfo)


class AcademyRegisterRequest(_RegistrationProof):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    email: EmailStr
    password: StrongPassword
    academy_name: str | None = Field(default=None, max_length=200)
    device: DeviceInfo = Field(default_factory=DeviceInfo)


class LoginRequest(InputSchema):
    email: EmailStr | None = None
    mobile: MobileNumber | None = None
    password: str = Field(min_length=1)
    device: DeviceInfo = Field(default_factory=DeviceInfo)

    @model_validator(mode="after")
    def _require_identifier(self):
        if not self.email and not self.mobile:
            raise ValueError("Provide email or mobile")
        return self


class AdminLoginRequest(InputSchema):
    email: EmailStr
    password: str = Field(min_length=1)
    device: DeviceInfo = Field(default_factory=DeviceInfo)


class SocialLoginRequest(InputSchema):
    provider: Literal["google", "facebook", "apple", "instagram"]
    id_token: str = Field(min_length=1)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    device: DeviceInfo = Field(default_factory=DeviceInfo)


class RefreshRequest(InputSchema):
    refresh_token: str = Field(min_length=1)
    device_id: str | None = Field(default=None, max_length=255)


class LogoutRequest(InputSchema):
    refresh_token: str | None = None
    all_devices: bool = False


class MobileForgotPasswordRequest(InputSchema):
    mode: Literal["mobile"]
    mobile: MobileNumber


class EmailForgotPasswordRequest(InputSchema):
    mode: Literal["email"]
    email: EmailStr


ForgotPasswordRequest = Annotated[
    MobileForgotPasswordRequest | EmailForgotPasswordRequest,
    Field(discriminator="mode"),
]


class MobileForgotPasswordVerify(InputSchema):
    mode: Literal["mobile"]
    mobile: MobileNumber
    otp: OtpCodeField
    new_password: StrongPassword


class EmailForgotPasswordVerify(InputSchema):
    mode: Literal["email"]
    email: EmailStr
    otp: OtpCodeField
    new_password: StrongPassword


ForgotPasswordVerify = Annotated[
    MobileForgotPasswordVerify | EmailForgotPasswordVerify,
    Field(discriminator="mode"),
]


class AdminProfile(UserOut):
    permissions: dict[str, list[str]] = Field(default_factory=dict)


__all__ = [
    "REGISTRATION_PROOF_REQUIRED",
    "AcademyRegisterRequest",
    "AdminLoginRequest",
    "AdminProfile",
    "AuthResult",
    "DeviceInfo",
    "ForgotPasswordRequest",
    "ForgotPasswordVerify",
    "LoginRequest",
    "LogoutRequest",
    "OtpSent",
    "OtpVerification",
    "RefreshRequest",
    "SendOtpRequest",
    "SocialLoginRequest",
    "TokenPair",
    "UserRegisterRequest",
    "VerifyOtpRequest",
]
