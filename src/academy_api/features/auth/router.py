"""Authentication routes for students/guardians, academies and admin staff."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from academy_api.api.deps import (
    get_auth_service,
    get_identity_provider,
    get_otp_service,
    get_users_service,
)
from academy_api.common.errors import ApiError, bad_request, conflict, forbidden, not_found
from academy_api.common.schema import ApiResponse, ok
from academy_api.core.auth import CurrentPrincipal, CurrentUser, require_roles
from academy_api.features.rbac.authorization import permission_matrix
from academy_api.features.rbac.models import ADMIN_PANEL_ROLES, RoleName
from academy_api.features.users.models import RegistrationMethod, User
from academy_api.features.users.schemas import MobileUpdate, PasswordChange, ProfileUpdate, UserOut
from academy_api.features.users.service import UsersService
from academy_api.integrations.identity import IdentityError, IdentityVerifier

from .models import OtpChannel, OtpMode
from .otp import OtpService
from .schemas import (
    REGISTRATION_PROOF_REQUIRED,
    AcademyRegisterRequest,
    AdminLoginRequest,
    AdminProfile,
    AuthResult,
    DeviceInfo,
    ForgotPasswordRequest,
    ForgotPasswordVerify,
    LoginRequest,
    LogoutRequest,
    OtpSent,
    OtpVerification,
    RefreshRequest,
    SendOtpRequest,
    SocialLoginRequest,
    TokenPair,
    UserRegisterRequest,
    VerifyOtpRequest,
)
from .service import AuthService

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
OtpServiceDep = Annotated[OtpService, Depends(get_otp_service)]
UsersServiceDep = Annotated[UsersService, Depends(get_users_service)]
IdentityDep = Annotated[IdentityVerifier, Depends(get_identity_provider)]

USER_ROLES = (RoleName.USER.value,)
ACADEMY_ROLES = (RoleName.ACADEMY.value,)

user_router = APIRouter(prefix="/user/auth", tags=["user-auth"])
academy_router = APIRouter(prefix="/academy/auth", tags=["academy-auth"])
admin_router = APIRouter(prefix="/admin/auth", tags=["admin-auth"])


# ---- Shared flows ---------------------------------------------------------


def _auth_result(auth: AuthService, user: User, device: DeviceInfo) -> AuthResult:
    issued = auth.issue_session(user, device)
    return AuthResult(user=UserOut.model_validate(user), tokens=issued.tokens)


def _otp_sent(otp: OtpService, identifier: str, mode: OtpMode, code: str) -> OtpSent:
    return OtpSent(
        identifier=identifier,
        mode=mode,
        expires_in=otp.ttl_seconds,
        otp=otp.debug_echo(code),
    )


def _promote_to_academy(auth: AuthService, user: User) -> User:
    """Student accounts that sign in on the academy surface gain the academy role."""

    if not user.has_role(RoleName.ACADEMY.value) and user.has_role(RoleName.USER.value):
        user.roles = [*user.roles, auth.get_role(RoleName.ACADEMY.value)]
    return user


def _otp_sign_in_roles(roles: tuple[str, ...]) -> tuple[str, ...]:
    # student accounts may verify on the academy surface and are promoted there
    return roles + USER_ROLES if roles == ACADEMY_ROLES else roles


def _check_send_otp(auth: AuthService, payload: SendOtpRequest, roles: tuple[str, ...]) -> None:
    existing = auth.find_by_mobile(payload.mobile)
    mode = OtpMode(payload.mode)
    if mode is OtpMode.REGISTER:
        if existing is not None and not (
            roles == ACADEMY_ROLES and existing.has_role(RoleName.USER.value)
        ):
            raise conflict("An account with this mobile number already exists")
    elif mode in (OtpMode.LOGIN, OtpMode.FORGOT_PASSWORD):
        if existing is None:
            raise not_found("No account found with this mobile number")
        auth.ensure_can_sign_in(existing, _otp_sign_in_roles(roles))
    elif mode is OtpMode.PROFILE_UPDATE and existing is not None:
        raise conflict("An account with this mobile number already exists")


def _send_otp(
    auth: AuthService, otp: OtpService, payload: SendOtpRequest, roles: tuple[str, ...]
) -> ApiResponse[OtpSent]:
    _check_send_otp(auth, payload, roles)
    mode = OtpMode(payload.mode)
    code = otp.send(payload.mobile, OtpChannel.MOBILE, mode)
    return ok(_otp_sent(otp, payload.mobile, mode, code), "OTP sent successfully")


def _verify_otp(
    auth: AuthService, otp: OtpService, payload: VerifyOtpRequest, roles: tuple[str, ...]
) -> ApiResponse[OtpVerification]:
    mode = OtpMode(payload.mode)
    otp.verify(payload.mobile, OtpChannel.MOBILE, mode, payload.otp)

    user = auth.find_by_mobile(payload.mobile)
    if mode is OtpMode.LOGIN and user is not None:
        if roles == ACADEMY_ROLES:
            _promote_to_academy(auth, user)
        auth.ensure_can_sign_in(user, roles)
        result = _auth_result(auth, user, payload.device)
        return ok(
            OtpVerification(is_registered=True, user=result.user, tokens=result.tokens),
            "Login successful",
        )
    return ok(
        OtpVerification(
            is_registered=user is not None,
            registration_token=auth.registration_token(payload.mobile),
        ),
        "OTP verified successfully",
    )


def _registration_mobile(
    auth: AuthService,
    otp: OtpService,
    payload: UserRegisterRequest | AcademyRegisterRequest,
) -> str:
    if payload.registration_token:
        mobile = auth.mobile_from_registration_token(payload.registration_token)
        if payload.mobile and payload.mobile != mobile:
            raise bad_request("Mobile number does not match the registration token")
        return mobile
    if not (payload.mobile and payload.otp):
        raise bad_request(
            "Validation failed",
            errors=[{"field": "request", "message": REGISTRATION_PROOF_REQUIRED}],
        )
    otp.verify(payload.mobile, OtpChannel.MOBILE, OtpMode.REGISTER, payload.otp)
    return payload.mobile


def _login(
    auth: AuthService, payload: LoginRequest, roles: tuple[str, ...]
) -> ApiResponse[AuthResult]:
    user = auth.authenticate_password(
        email=payload.email,
        mobile=payload.mobile,
        password=payload.password,
        allowed_roles=roles,
    )
    return ok(_auth_result(auth, user, payload.device), "Login successful")


def _refresh(
    auth: AuthService, payload: RefreshRequest, roles: tuple[str, ...]
) -> ApiResponse[TokenPair]:
    _, issued = auth.refresh(
        refresh_token=payload.refresh_token,
        device_id=payload.device_id,
        allowed_roles=roles,
    )
    return ok(issued.tokens, "Token refreshed successfully")


def _logout(
    auth: AuthService, principal: CurrentPrincipal, payload: LogoutRequest | None
) -> ApiResponse[None]:
    payload = payload or LogoutRequest()
    auth.logout(
        principal=principal,
        refresh_token=payload.refresh_token,
        all_devices=payload.all_devices,
    )
    return ok(None, "Logged out successfully")


def _forgot_request(
    auth: AuthService,
    otp: OtpService,
    payload: ForgotPasswordRequest,
    roles: tuple[str, ...],
) -> ApiResponse[OtpSent]:
    if payload.mode == "mobile":
        identifier, channel = payload.mobile, OtpChannel.MOBILE
        user = auth.find_by_mobile(identifier)
    else:
        identifier, channel = payload.email.lower(), OtpChannel.EMAIL
        user = auth.find_by_email(identifier)
    if user is None:
        raise not_found("No account found for the given details")
    auth.ensure_can_sign_in(user, roles)
    code = otp.send(identifier, channel, OtpMode.FORGOT_PASSWORD)
    return ok(
        _otp_sent(otp, identifier, OtpMode.FORGOT_PASSWORD, code),
        "Password reset OTP sent",
    )


def _forgot_verify(
    auth: AuthService,
    otp: OtpService,
    payload: ForgotPasswordVerify,
    roles: tuple[str, ...],
) -> ApiResponse[AuthResult]:
    if payload.mode == "mobile":
        identifier, channel = payload.mobile, OtpChannel.MOBILE
    else:
        identifier, channel = payload.email.lower(), OtpChannel.EMAIL
    otp.verify(identifier, channel, OtpMode.FORGOT_PASSWORD, payload.otp)
    if channel is OtpChannel.MOBILE:
        user = auth.find_by_mobile(identifier)
    else:
        user = auth.find_by_email(identifier)
    if user is None:
        raise not_found("No account found for the given details")
    auth.ensure_can_sign_in(user, roles)
    auth.reset_password(user, payload.new_password)
    return ok(_auth_result(auth, user, DeviceInfo()), "Password reset successfully")


def _change_password(auth: AuthService, user: User, payload: PasswordChange) -> ApiResponse[None]:
    auth.change_password(
        user,
        current_password=payload.current_password,
        new_password=payload.new_password,
    )
    return ok(None, "Password changed successfully")


# ---- Student / guardian ----------------------------------------------------


@user_router.post("/send-otp", response_model=ApiResponse[OtpSent])
def user_send_otp(payload: SendOtpRequest, auth: AuthServiceDep, otp: OtpServiceDep):
    return _send_otp(auth, otp, payload, USER_ROLES)


@user_router.post("/verify-otp", response_model=ApiResponse[OtpVerification])
def user_verify_otp(payload: VerifyOtpRequest, auth: AuthServiceDep, otp: OtpServiceDep):
    return _verify_otp(auth, otp, payload, USER_ROLES)


@user_router.post(
    "/register",
    response_model=ApiResponse[AuthResult],
    status_code=status.HTTP_201_CREATED,
)
def user_register(payload: UserRegisterRequest, auth: AuthServiceDep, otp: OtpServiceDep):
    mobile = _registration_mobile(auth, otp, payload)
    user = auth.create_user(
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        mobile=mobile,
        password=payload.password,
        role=RoleName.USER.value,
        registration_method=RegistrationMethod.MOBILE,
        user_type=payload.user_type,
        gender=payload.gender,
    )
    return ok(_auth_result(auth, user, payload.device), "Registration successful")


@user_router.post("/login", response_model=ApiResponse[AuthResult])
def user_login(payload: LoginRequest, auth: AuthServiceDep):
    return _login(auth, payload, USER_ROLES)


@user_router.post("/social-login", response_model=ApiResponse[AuthResult])
def user_social_login(payload: SocialLoginRequest, auth: AuthServiceDep, identity: IdentityDep):
    try:
        verified = identity.verify(payload.id_token)
    except IdentityError as exc:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, str(exc)) from exc
    user = auth.social_login(
        identity=verified,
        provider=payload.provider,
        first_name=payload.first_name,
        last_name=payload.last_name,
        allowed_roles=USER_ROLES,
    )
    return ok(_auth_result(auth, user, payload.device), "Login successful")


@user_router.post("/refresh", response_model=ApiResponse[TokenPair])
def user_refresh(payload: RefreshRequest, auth: AuthServiceDep):
    return _refresh(auth, payload, USER_ROLES)


@user_router.post("/logout", response_model=ApiResponse[None])
def user_logout(
    principal: CurrentPrincipal,
    auth: AuthServiceDep,
    payload: LogoutRequest | None = None,
):
    return _logout(auth, principal, payload)


@user_router.post("/forgot-password/request", response_model=ApiResponse[OtpSent])
def user_forgot_password_request(
    payload: ForgotPasswordRequest, auth: AuthServiceDep, otp: OtpServiceDep
):
    return _forgot_request(auth, otp, payload, USER_ROLES)


@user_router.post("/forgot-password/verify", response_model=ApiResponse[AuthResult])
def user_forgot_password_verify(
    payload: ForgotPasswordVerify, auth: AuthServiceDep, otp: OtpServiceDep
):
    return _forgot_verify(auth, otp, payload, USER_ROLES)


@user_router.get("/me", response_model=ApiResponse[UserOut])
def user_me(user: Annotated[User, Depends(require_roles(*USER_ROLES))]):
    return ok(UserOut.model_validate(user))


@user_router.patch("/me", response_model=ApiResponse[UserOut])
def user_update_me(
    payload: ProfileUpdate,
    user: Annotated[User, Depends(require_roles(*USER_ROLES))],
    users: UsersServiceDep,
):
    updated = users.update_profile(user, payload)
    return ok(UserOut.model_validate(updated), "Profile updated successfully")


@user_router.patch("/me/mobile", response_model=ApiResponse[UserOut])
def user_update_mobile(
    payload: MobileUpdate,
    user: Annotated[User, Depends(require_roles(*USER_ROLES))],
    auth: AuthServiceDep,
    otp: OtpServiceDep,
):
    otp.verify(payload.mobile, OtpChannel.MOBILE, OtpMode.PROFILE_UPDATE, payload.otp)
    updated = auth.change_mobile(user, payload.mobile)
    return ok(UserOut.model_validate(updated), "Mobile number updated successfully")


@user_router.post("/me/change-password", response_model=ApiResponse[None])
def user_change_password(
    payload: PasswordChange,
    user: Annotated[User, Depends(require_roles(*USER_ROLES))],
    auth: AuthServiceDep,
):
    return _change_password(auth, user, payload)


# ---- Academy ---------------------------------------------------------------


@academy_router.post("/send-otp", response_model=ApiResponse[OtpSent])
def academy_send_otp(payload: SendOtpRequest, auth: AuthServiceDep, otp: OtpServiceDep):
    return _send_otp(auth, otp, payload, ACADEMY_ROLES)


@academy_router.post("/verify-otp", response_model=ApiResponse[OtpVerification])
def academy_verify_otp(payload: VerifyOtpRequest, auth: AuthServiceDep, otp: OtpServiceDep):
    return _verify_otp(auth, otp, payload, ACADEMY_ROLES)


@academy_router.post(
    "/register",
    response_model=ApiResponse[AuthResult],
    status_code=status.HTTP_201_CREATED,
)
def academy_register(payload: AcademyRegisterRequest, auth: AuthServiceDep, otp: OtpServiceDep):
    mobile = _registration_mobile(auth, otp, payload)
    existing = auth.find_by_mobile(mobile)
    if existing is not None:
        if existing.has_role(RoleName.ACADEMY.value) or not existing.has_role(RoleName.USER.value):
            raise conflict("An account with this mobile number already exists")
        other = auth.find_by_email(payload.email)
        if other is not None and other.id != existing.id:
            raise conflict("An account with this email already exists")
        _promote_to_academy(auth, existing)
        existing.email = existing.email or payload.email
        existing.academy_name = payload.academy_name
        auth.reset_password(existing, payload.password)
        user = existing
    else:
        user = auth.create_user(
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            mobile=mobile,
            password=payload.password,
            role=RoleName.ACADEMY.value,
            registration_method=RegistrationMethod.EMAIL,
            academy_name=payload.academy_name,
        )
    return ok(_auth_result(auth, user, payload.device), "Registration successful")


@academy_router.post("/login", response_model=ApiResponse[AuthResult])
def academy_login(payload: LoginRequest, auth: AuthServiceDep):
    return _login(auth, payload, ACADEMY_ROLES)


@academy_router.post("/refresh", response_model=ApiResponse[TokenPair])
def academy_refresh(payload: RefreshRequest, auth: AuthServiceDep):
    return _refresh(auth, payload, ACADEMY_ROLES)


@academy_router.post("/logout", response_model=ApiResponse[None])
def academy_logout(
    principal: CurrentPrincipal,
    auth: AuthServiceDep,
    payload: LogoutRequest | None = None,
):
    return _logout(auth, principal, payload)


@academy_router.post("/forgot-password/request", response_model=ApiResponse[OtpSent])
def academy_forgot_password_request(
    payload: ForgotPasswordRequest, auth: AuthServiceDep, otp: OtpServiceDep
):
    return _forgot_request(auth, otp, payload, ACADEMY_ROLES)


@academy_router.post("/forgot-password/verify", response_model=ApiResponse[AuthResult])
def academy_forgot_password_verify(
    payload: ForgotPasswordVerify, auth: AuthServiceDep, otp: OtpServiceDep
):
    return _forgot_verify(auth, otp, payload, ACADEMY_ROLES)


@academy_router.get("/me", response_model=ApiResponse[UserOut])
def academy_me(user: Annotated[User, Depends(require_roles(*ACADEMY_ROLES))]):
    return ok(UserOut.model_validate(user))


@academy_router.patch("/me", response_model=ApiResponse[UserOut])
def academy_update_me(
    payload: ProfileUpdate,
    user: Annotated[User, Depends(require_roles(*ACADEMY_ROLES))],
    users: UsersServiceDep,
):
    updated = users.update_profile(user, payload)
    return ok(UserOut.model_validate(updated), "Profile updated successfully")


@academy_router.post("/me/change-password", response_model=ApiResponse[None])
def academy_change_password(
    payload: PasswordChange,
    user: Annotated[User, Depends(require_roles(*ACADEMY_ROLES))],
    auth: AuthServiceDep,
):
    return _change_password(auth, user, payload)


# ---- Admin panel -----------------------------------------------------------


@admin_router.post("/login", response_model=ApiResponse[AuthResult])
def admin_login(payload: AdminLoginRequest, auth: AuthServiceDep):
    user = auth.authenticate_password(
        email=payload.email,
        mobile=None,
        password=payload.password,
        allowed_roles=ADMIN_PANEL_ROLES,
    )
    return ok(_auth_result(auth, user, payload.device), "Login successful")


@admin_router.post("/refresh", response_model=ApiResponse[TokenPair])
def admin_refresh(payload: RefreshRequest, auth: AuthServiceDep):
    return _refresh(auth, payload, tuple(sorted(ADMIN_PANEL_ROLES)))


@admin_router.post("/logout", response_model=ApiResponse[None])
def admin_logout(
    principal: CurrentPrincipal,
    auth: AuthServiceDep,
    payload: LogoutRequest | None = None,
):
    return _logout(auth, principal, payload)


@admin_router.get("/me", response_model=ApiResponse[AdminProfile])
def admin_me(user: CurrentUser):
    if not user.has_role(*ADMIN_PANEL_ROLES):
        raise forbidden()
    profile = AdminProfile.model_validate(user)
    profile.permissions = permission_matrix(user)
    return ok(profile)


__all__ = ["academy_router", "admin_router", "user_router"]
