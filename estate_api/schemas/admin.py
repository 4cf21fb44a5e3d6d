"""
Pydantic schemas for the admin panel.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from estate_api.schemas.common import CamelModel
from estate_api.schemas.property import PropertyResponse


class AdminStatsResponse(CamelModel):
    """Platform counters. Weeks are the seven days before the start of today."""

    total_users: int
    total_properties: int
    total_testimonials: int
    visitors_today: int
    visitors_this_week: int
    prev_week_visitors: int
    new_users_this_week: int
    prev_week_new_users: int
    deleted_accounts_this_week: int
    prev_week_deleted_accounts: int
    total_deleted_accounts: int
    sold_properties: int
    rented_properties: int


class TrendPoint(BaseModel):
    date: str = Field(..., examples=["2024-05-01"])
    count: int


class TrendsResponse(CamelModel):
    users_per_day: List[TrendPoint]
    properties_per_day: List[TrendPoint]
    visitors_per_day: List[TrendPoint]
    deleted_accounts_per_day: List[TrendPoint]


class RoleUpdateRequest(BaseModel):
    role: str = Field(..., examples=["Agent"])


class AdminPropertyListResponse(CamelModel):
    properties: List[PropertyResponse]
    total: int
    page: int
    total_pages: int


class VisitorUser(BaseModel):
    id: int
    name: str
    email: str
    role: str


class VisitorResponse(BaseModel):
    id: int
    ip: Optional[str] = None
    path: Optional[str] = None
    method: Optional[str] = None
    user_agent: Optional[str] = None
    referrer: Optional[str] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None
    user: Optional[VisitorUser] = None


class VisitorListResponse(CamelModel):
    visitors: List[VisitorResponse]
    total: int
    page: int
    total_pages: int
