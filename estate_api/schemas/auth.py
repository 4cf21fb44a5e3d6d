"""
Pydantic schemas for registration, login and account recovery.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from estate_api.schemas.common import CamelModel
from estate_api.schemas.user import UserResponse


class _EmailModel(BaseModel):
    email: EmailStr = Field(..., examples=["imran@example.com"])

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()


class RegisterRequest(_EmailModel):
    """Registration body. Only Agent and Buyer may self-register."""

    name: str = Field(..., min_length=1, max_length=255, examples=["Imran Siddiqui"])
    password: str = Field(..., examples=["Secret123"])
    role: Optional[str] = Field(None, examples=["Buyer"])
    phone: Optional[str] = Field(None, max_length=50)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()


class LoginRequest(_EmailModel):
    """Login request schema."""

    password: str = Field(..., min_length=1)


class EmailRequest(_EmailModel):
    """Body carrying only an email (resend OTP, forgot password)."""


class VerifyOTPRequest(_EmailModel):
    otp: str = Field(..., min_length=6, max_length=6, examples=["482913"])


class ResetPasswordRequest(_EmailModel, CamelModel):
    """Reset body: ``email``, ``resetToken`` and the new ``password``."""

    reset_token: str = Field(..., min_length=1)
    password: str


class AuthResponse(BaseModel):
    """Issued bearer token and the signed-in user."""

    token: str = Field(..., examples=["eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9..."])
    user: UserResponse


class OTPPendingResponse(BaseModel):
    """Login or registration accepted; a code was emailed."""

    message: str = Field(..., examples=["OTP sent to your email"])
    email: str


class ResetTokenResponse(CamelModel):
    message: str
    reset_token: str
