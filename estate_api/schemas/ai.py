"""
Pydantic schemas for the AI assistant.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Any
from estate_api.schemas.property import PropertyResponse


class DescriptionRequest(BaseModel):
    """Listing facts used to draft a description; ``type`` and ``price`` are required."""

    type: Optional[str] = Field(None, examples=["House"])
    purpose: Optional[str] = Field(None, examples=["Sale"])
    price: Optional[Any] = Field(None, examples=[35000000])
    location: Optional[str] = None
    bedrooms: Optional[Any] = None
    area: Optional[Any] = None
    features: Optional[str] = Field(None, examples=["corner plot, solar panels"])


class DescriptionResponse(BaseModel):
    description: str


class ChatTurn(BaseModel):
    role: str = Field(..., examples=["user"])
    text: str = ""


class ChatRequest(BaseModel):
    message: Optional[str] = Field(None, examples=["3 bed houses in Lahore under 2 crore"])
    history: List[ChatTurn] = []


class ChatResponse(BaseModel):
    """Assistant reply plus the listings its search tool returned, if any."""

    reply: str
    properties: List[PropertyResponse] = []
