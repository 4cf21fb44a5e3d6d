"""
Pydantic schemas for saved listings.
"""

from pydantic import BaseModel
from typing import List
from estate_api.schemas.common import CamelModel
from estate_api.schemas.property import PropertyResponse


class FavoriteToggleResponse(BaseModel):
    saved: bool


class FavoriteListResponse(CamelModel):
    properties: List[PropertyResponse]
    total_count: int
    total_pages: int
    current_page: int


class FavoriteCheckResponse(CamelModel):
    favorite_ids: List[int]
