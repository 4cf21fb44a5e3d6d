"""
Pydantic schemas for listing images.
"""

from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class PropertyImageResponse(BaseModel):
    """Stored image of a listing."""

    id: int
    property_id: int
    image_url: str
    is_primary: bool
    created_at: Optional[datetime] = None


class ImageListResponse(BaseModel):
    images: List[PropertyImageResponse]
