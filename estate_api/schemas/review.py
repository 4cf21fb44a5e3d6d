"""
Pydantic schemas for agent profiles and reviews.
"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from estate_api.schemas.common import CamelModel
from estate_api.schemas.user import UserSummary


class ReviewCreate(BaseModel):
    rating: int = Field(..., examples=[5])
    content: str = Field(..., max_length=5000)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v):
        return v.strip()


class ReviewResponse(BaseModel):
    id: int
    agent_id: int
    reviewer_id: int
    rating: int
    content: str
    created_at: Optional[datetime] = None
    reviewer: Optional[UserSummary] = None


class ReviewEnvelope(BaseModel):
    review: ReviewResponse


class ReviewListResponse(CamelModel):
    reviews: List[ReviewResponse]
    total_count: int
    total_pages: int
    page: int


class AgentPublicProfile(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None


class AgentProfileStats(CamelModel):
    total_listings: int
    available: int
    sold: int
    rented: int
    avg_rating: Optional[float] = None
    total_reviews: int


class AgentProfileResponse(BaseModel):
    agent: AgentPublicProfile
    stats: AgentProfileStats
