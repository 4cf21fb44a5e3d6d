"""
Pydantic schemas for user profiles.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime
from estate_api.schemas.common import CamelModel


class UserResponse(BaseModel):
    """User as returned to its owner and to admins. Never includes secrets."""

    id: int
    name: str
    email: str
    role: str = Field(..., examples=["Buyer"])
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


class UserSummary(BaseModel):
    """Public author card."""

    id: int
    name: str
    role: str
    avatar_url: Optional[str] = None


class AgentContact(BaseModel):
    """Agent card shown on listings."""

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None


class UserEnvelope(BaseModel):
    user: UserResponse


class ProfileUpdateRequest(BaseModel):
    """Profile update body."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()


class PasswordChangeRequest(CamelModel):
    """Password change body: ``currentPassword`` and ``newPassword``."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class DeleteAccountRequest(BaseModel):
    password: str = Field(..., min_length=1)
