"""
Admin panel endpoints. Every route requires the Admin role.
"""

from fastapi import APIRouter, Depends, Path, Query
from typing import List, Optional

from estate_api.models.user import User
from estate_api.services.admin import AdminService
from estate_api.services.testimonial import TestimonialService
from estate_api.schemas.admin import (
    AdminStatsResponse,
    TrendsResponse,
    RoleUpdateRequest,
    AdminPropertyListResponse,
    VisitorListResponse,
)
from estate_api.schemas.user import UserResponse
from estate_api.schemas.testimonial import TestimonialResponse
from estate_api.schemas.common import MessageResponse
from estate_api.schemas.error import get_error_responses
from estate_api.utils.dependencies import get_admin_service, get_testimonial_service, require_admin

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
    responses=get_error_responses(401, 403)
)


@router.get("/stats", response_model=AdminStatsResponse)
async def get_stats(admin_service: AdminService = Depends(get_admin_service)):
    return await admin_service.get_stats()


@router.get("/trends", response_model=TrendsResponse, summary="Daily counts for the last 30 days")
async def get_trends(admin_service: AdminService = Depends(get_admin_service)):
    return await admin_service.get_trends()


@router.get("/users", response_model=List[UserResponse])
async def list_users(
    search: Optional[str] = Query(None, description="Matches name or email"),
    role: Optional[str] = Query(None, description="Agent, Buyer or Admin"),
    include_deleted: Optional[str] = Query(None, alias="includeDeleted", description="'true' to include deleted accounts"),
    admin_service: AdminService = Depends(get_admin_service)
):
    users = await admin_service.list_users(search, role, include_deleted == "true")
    return [user.to_dict() for user in users]


@router.delete("/users/{user_id}", response_model=MessageResponse, responses=get_error_responses(400, 404))
async def delete_user(
    user_id: str = Path(..., description="User ID"),
    admin: User = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service)
):
    """Permanently delete a non-admin account."""
    await admin_service.delete_user(user_id, admin)
    return {"message": "User deleted"}


@router.patch("/users/{user_id}/role", response_model=UserResponse, responses=get_error_responses(400, 404))
async def update_user_role(
    role_data: RoleUpdateRequest,
    user_id: str = Path(..., description="User ID"),
    admin: User = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service)
):
    user = await admin_service.update_user_role(user_id, role_data.role, admin)
    return user.to_dict()


@router.get("/properties", response_model=AdminPropertyListResponse)
async def list_properties(
    search: Optional[str] = Query(None, description="Matches location"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None, description="Page size (default 20, max 100)"),
    type: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="No status filter when omitted"),
    admin_service: AdminService = Depends(get_admin_service)
):
    params = {
        key: value for key, value in (
            ("search", search), ("page", page), ("limit", limit), ("type", type), ("status", status)
        ) if value is not None
    }
    return await admin_service.list_properties(params)


@router.delete("/properties/{property_id}", response_model=MessageResponse, responses=get_error_responses(400, 404))
async def delete_property(
    property_id: int = Path(..., description="Property ID"),
    admin: User = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service)
):
    await admin_service.delete_property(property_id, admin)
    return {"message": "Property deleted"}


@router.get("/testimonials", response_model=List[TestimonialResponse])
async def list_testimonials(
    testimonial_service: TestimonialService = Depends(get_testimonial_service)
):
    testimonials = await testimonial_service.list_all()
    return [testimonial.to_dict() for testimonial in testimonials]


@router.delete("/testimonials/{testimonial_id}", response_model=MessageResponse, responses=get_error_responses(404))
async def delete_testimonial(
    testimonial_id: int = Path(..., description="Testimonial ID"),
    admin: User = Depends(require_admin),
    testimonial_service: TestimonialService = Depends(get_testimonial_service)
):
    await testimonial_service.delete(testimonial_id, admin)
    return {"message": "Testimonial deleted"}


@router.patch("/testimonials/{testimonial_id}/approve", response_model=MessageResponse, responses=get_error_responses(404))
async def approve_testimonial(
    testimonial_id: int = Path(..., description="Testimonial ID"),
    testimonial_service: TestimonialService = Depends(get_testimonial_service)
):
    await testimonial_service.set_approved(testimonial_id, True)
    return {"message": "Testimonial approved"}


@router.patch("/testimonials/{testimonial_id}/reject", response_model=MessageResponse, responses=get_error_responses(404))
async def reject_testimonial(
    testimonial_id: int = Path(..., description="Testimonial ID"),
    testimonial_service: TestimonialService = Depends(get_testimonial_service)
):
    await testimonial_service.set_approved(testimonial_id, False)
    return {"message": "Testimonial rejected"}


@router.get("/visitors", response_model=VisitorListResponse, summary="Visitor log for the last 7 days")
async def list_visitors(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None, description="Page size (default 50, max 100)"),
    admin_service: AdminService = Depends(get_admin_service)
):
    params = {key: value for key, value in (("page", page), ("limit", limit)) if value is not None}
    return await admin_service.list_visitors(params)
