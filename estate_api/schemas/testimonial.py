"""
Pydantic schemas for platform testimonials.
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from estate_api.schemas.user import UserSummary


class TestimonialCreate(BaseModel):
    content: Optional[str] = Field(None, max_length=5000)
    rating: Optional[int] = Field(None, examples=[5])


class TestimonialResponse(BaseModel):
    id: int
    user_id: int
    content: str
    rating: int
    approved: bool
    created_at: Optional[datetime] = None
    user: Optional[UserSummary] = None


class TestimonialEnvelope(BaseModel):
    testimonial: TestimonialResponse
