"""
Pydantic schemas for request/response validation.
"""

from .common import CamelModel, MessageResponse
from .user import (
    UserResponse,
    UserSummary,
    AgentContact,
    UserEnvelope,
    ProfileUpdateRequest,
    PasswordChangeRequest,
    DeleteAccountRequest,
)
from .auth import (
    RegisterRequest,
    LoginRequest,
    EmailRequest,
    VerifyOTPRequest,
    ResetPasswordRequest,
    AuthResponse,
    OTPPendingResponse,
    ResetTokenResponse,
)
from .image import PropertyImageResponse, ImageListResponse
from .property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyEnvelope,
    PropertySearchResponse,
    SuggestionsResponse,
    AgentStatsResponse,
    DeleteResponse,
)
from .review import (
    ReviewCreate,
    ReviewResponse,
    ReviewEnvelope,
    ReviewListResponse,
    AgentProfileResponse,
)
from .favorite import FavoriteToggleResponse, FavoriteListResponse, FavoriteCheckResponse
from .testimonial import TestimonialCreate, TestimonialResponse, TestimonialEnvelope
from .admin import (
    AdminStatsResponse,
    TrendsResponse,
    RoleUpdateRequest,
    AdminPropertyListResponse,
    VisitorListResponse,
)
from .ai import DescriptionRequest, DescriptionResponse, ChatRequest, ChatResponse
from .error import APIErrorResponse, ErrorResponse, ErrorDetail
