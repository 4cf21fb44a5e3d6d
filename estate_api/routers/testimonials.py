"""Platform testimonial endpoints."""

from fastapi import APIRouter, Depends, Path, status
from typing import List

from estate_api.models.user import User
from estate_api.services.testimonial import TestimonialService
from estate_api.schemas.testimonial import TestimonialCreate, TestimonialResponse, TestimonialEnvelope
from estate_api.schemas.common import MessageResponse
from estate_api.schemas.error import get_error_responses, get_crud_error_responses
from estate_api.utils.dependencies import get_current_user, get_testimonial_service

router = APIRouter(prefix="/testimonials", tags=["Testimonials"])


@router.get("", response_model=List[TestimonialResponse], summary="Approved testimonials")
async def list_testimonials(
    testimonial_service: TestimonialService = Depends(get_testimonial_service)
):
    """The 12 newest approved testimonials with their authors."""
    testimonials = await testimonial_service.list_public()
    return [testimonial.to_dict() for testimonial in testimonials]


@router.post(
    "",
    response_model=TestimonialEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses=get_crud_error_responses()
)
async def create_testimonial(
    testimonial_data: TestimonialCreate,
    current_user: User = Depends(get_current_user),
    testimonial_service: TestimonialService = Depends(get_testimonial_service)
):
    """
    Raises:
        ValidationError: If content is missing or rating is outside 1-5
        DuplicateResourceError: If the caller already left a testimonial
    """
    testimonial = await testimonial_service.create(
        current_user,
        testimonial_data.content,
        testimonial_data.rating
    )
    return {"testimonial": testimonial.to_dict()}


@router.delete("/{testimonial_id}", response_model=MessageResponse, responses=get_error_responses(401, 403, 404))
async def delete_testimonial(
    testimonial_id: int = Path(..., description="Testimonial ID"),
    current_user: User = Depends(get_current_user),
    testimonial_service: TestimonialService = Depends(get_testimonial_service)
):
    await testimonial_service.delete(testimonial_id, current_user)
    return {"message": "Testimonial deleted"}
