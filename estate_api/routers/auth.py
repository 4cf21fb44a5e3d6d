"""
Account API endpoints: registration, login, OTP verification, password
recovery and the signed-in user's profile.
"""

from fastapi import APIRouter, Depends, File, Response, UploadFile, status
from typing import Union

from estate_api.models.user import User
from estate_api.services.auth import AuthService
from estate_api.services.image import ImageService
from estate_api.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    EmailRequest,
    VerifyOTPRequest,
    ResetPasswordRequest,
    AuthResponse,
    OTPPendingResponse,
    ResetTokenResponse,
)
from estate_api.schemas.user import (
    UserEnvelope,
    ProfileUpdateRequest,
    PasswordChangeRequest,
    DeleteAccountRequest,
)
from estate_api.schemas.common import MessageResponse
from estate_api.schemas.error import get_error_responses, get_auth_error_responses
from estate_api.utils.dependencies import get_auth_service, get_current_user, get_image_service


router = APIRouter(tags=["Authentication"])


@router.post(
    "/register",
    response_model=Union[AuthResponse, OTPPendingResponse],
    summary="Register a new account",
    description="Create an Agent or Buyer account. With OTP verification on, a code is emailed instead of a token.",
    responses=get_error_responses(400, 409, 500)
)
async def register(
    register_data: RegisterRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Register a new user.

    Returns:
        201 with ``{token, user}``, or 200 with ``{message, email}`` when a code was emailed
    """
    result = await auth_service.register(
        name=register_data.name,
        email=register_data.email,
        password=register_data.password,
        role=register_data.role,
        phone=register_data.phone,
    )
    response.status_code = status.HTTP_201_CREATED if "token" in result else status.HTTP_200_OK
    return result


@router.post(
    "/login",
    response_model=Union[AuthResponse, OTPPendingResponse],
    summary="User login",
    responses=get_error_responses(400, 401, 500)
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Authenticate with email and password.

    Raises:
        InvalidCredentialsError: If the email or password is wrong
    """
    return await auth_service.login(login_data.email, login_data.password)


@router.post("/verify-otp", response_model=AuthResponse, responses=get_error_responses(400, 401))
async def verify_otp(
    otp_data: VerifyOTPRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    return await auth_service.verify_otp(otp_data.email, otp_data.otp)


@router.post("/resend-otp", response_model=MessageResponse)
async def resend_otp(
    email_data: EmailRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    return await auth_service.resend_otp(email_data.email)


@router.post("/forgot-password", response_model=OTPPendingResponse, responses=get_error_responses(400, 404, 500))
async def forgot_password(
    email_data: EmailRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    return await auth_service.forgot_password(email_data.email)


@router.post("/verify-reset-otp", response_model=ResetTokenResponse, responses=get_error_responses(400, 401))
async def verify_reset_otp(
    otp_data: VerifyOTPRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    return await auth_service.verify_reset_otp(otp_data.email, otp_data.otp)


@router.post("/reset-password", response_model=MessageResponse, responses=get_error_responses(400))
async def reset_password(
    reset_data: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    return await auth_service.reset_password(reset_data.email, reset_data.reset_token, reset_data.password)


@router.get(
    "/profile",
    response_model=UserEnvelope,
    summary="Get current user profile",
    responses=get_auth_error_responses()
)
async def get_profile(current_user: User = Depends(get_current_user)):
    return {"user": current_user.to_dict()}


@router.put("/profile", response_model=UserEnvelope, responses=get_error_responses(400, 401, 409))
async def update_profile(
    profile_data: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    user = await auth_service.update_profile(
        current_user,
        name=profile_data.name,
        email=profile_data.email,
        phone=profile_data.phone,
    )
    return {"user": user.to_dict()}


@router.put("/profile/password", response_model=MessageResponse, responses=get_error_responses(400, 401, 403))
async def change_password(
    password_data: PasswordChangeRequest,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    return await auth_service.change_password(
        current_user,
        password_data.current_password,
        password_data.new_password
    )


@router.put(
    "/profile/avatar",
    response_model=UserEnvelope,
    summary="Upload profile picture",
    responses=get_error_responses(400, 401, 500)
)
async def upload_avatar(
    avatar: UploadFile = File(..., description="Image file, at most 5MB"),
    current_user: User = Depends(get_current_user),
    image_service: ImageService = Depends(get_image_service)
):
    user = await image_service.upload_avatar(current_user, avatar)
    return {"user": user.to_dict()}


@router.delete("/profile", response_model=MessageResponse, responses=get_error_responses(400, 401, 403))
async def delete_account(
    delete_data: DeleteAccountRequest,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Soft-delete the caller's account."""
    return await auth_service.delete_account(current_user, delete_data.password)
