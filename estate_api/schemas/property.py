"""
Pydantic schemas for property requests and responses.
Handles listing CRUD bodies, search results and agent dashboards.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from estate_api.schemas.common import CamelModel
from estate_api.schemas.user import AgentContact
from estate_api.schemas.image import PropertyImageResponse


class PropertyCreate(BaseModel):
    """
    Listing body. Presence of required fields is checked by the service so
    that a missing field reports ``<field> is required``.
    """

    type: Optional[str] = Field(None, examples=["House"])
    purpose: Optional[str] = Field(None, examples=["Sale"])
    price: Optional[Decimal] = Field(None, examples=[35000000])
    location: Optional[str] = Field(None, max_length=255, examples=["DHA Phase 5, Lahore"])
    bedrooms: Optional[int] = Field(None, ge=0, le=100, examples=[5])
    area: Optional[Decimal] = Field(None, examples=[3500])
    description: Optional[str] = Field(None, max_length=10000)

    @field_validator("price", "area")
    @classmethod
    def validate_positive(cls, v):
        if v is not None and v <= 0:
            raise ValueError("must be greater than 0")
        return v


class PropertyUpdate(PropertyCreate):
    """Partial listing update; ``status`` is applied only when it is a known status."""

    status: Optional[str] = Field(None, examples=["Sold"])


class AiAnalysisResponse(BaseModel):
    ai_score: float
    ai_insights: str
    generated_at: Optional[datetime] = None


class PropertyResponse(BaseModel):
    """Listing with its agent and images."""

    id: int
    agent_id: int
    type: str
    purpose: str
    price: float
    location: str
    bedrooms: Optional[int] = None
    area: float
    description: str
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    agent: Optional[AgentContact] = None
    images: List[PropertyImageResponse] = []
    ai_analysis: Optional[AiAnalysisResponse] = None


class PropertyEnvelope(BaseModel):
    property: PropertyResponse


class PropertySearchResponse(CamelModel):
    """Paginated search result."""

    properties: List[PropertyResponse]
    total_count: int
    page: int
    limit: int
    total_pages: int


class AgentSuggestion(BaseModel):
    id: int
    name: str
    avatar_url: Optional[str] = None


class SuggestionsResponse(BaseModel):
    locations: List[str]
    agents: List[AgentSuggestion]


class AgentStatsResponse(CamelModel):
    """Dashboard counters for the signed-in agent."""

    total: int
    available: int
    sold: int
    rented: int
    for_sale: int
    for_rent: int
    joined_at: Optional[datetime] = None
    avg_rating: Optional[float] = None
    total_reviews: int = 0
    recent_reviews: List["ReviewResponse"] = []


class DeleteResponse(BaseModel):
    msg: str


from estate_api.schemas.review import ReviewResponse  # noqa: E402

AgentStatsResponse.model_rebuild()
