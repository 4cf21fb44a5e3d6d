"""Public agent profiles, their listings and buyer reviews."""

from fastapi import APIRouter, Depends, Path, Query, status
from typing import Any, Dict, Optional

from estate_api.models.user import User
from estate_api.services.agent import AgentService
from estate_api.services.property import PropertyService
from estate_api.schemas.property import PropertySearchResponse
from estate_api.schemas.review import ReviewCreate, ReviewEnvelope, ReviewListResponse, AgentProfileResponse
from estate_api.schemas.common import MessageResponse
from estate_api.schemas.error import get_error_responses, get_crud_error_responses
from estate_api.routers.properties import listing_filters
from estate_api.utils.dependencies import (
    get_agent_service,
    get_property_service,
    get_current_user,
    require_buyer,
)

router = APIRouter(prefix="/agents", tags=["Agents"])


@router.delete(
    "/reviews/{review_id}",
    response_model=MessageResponse,
    summary="Delete a review",
    description="Reviewers delete their own reviews; admins delete any.",
    responses=get_error_responses(401, 403, 404)
)
async def delete_review(
    review_id: int = Path(..., description="Review ID"),
    current_user: User = Depends(get_current_user),
    agent_service: AgentService = Depends(get_agent_service)
):
    await agent_service.delete_review(review_id, current_user)
    return {"message": "Review deleted"}


@router.get("/{agent_id}", response_model=AgentProfileResponse, responses=get_error_responses(404))
async def get_agent_profile(
    agent_id: int = Path(..., description="Agent user ID"),
    agent_service: AgentService = Depends(get_agent_service)
):
    return await agent_service.get_profile(agent_id)


@router.get("/{agent_id}/properties", response_model=PropertySearchResponse, responses=get_error_responses(404))
async def get_agent_properties(
    agent_id: int = Path(..., description="Agent user ID"),
    params: Dict[str, Any] = Depends(listing_filters),
    agent_service: AgentService = Depends(get_agent_service),
    property_service: PropertyService = Depends(get_property_service)
):
    """The agent's listings through the regular search filters."""
    await agent_service.get_agent(agent_id)
    return await property_service.search(params, agent_id=agent_id)


@router.get("/{agent_id}/reviews", response_model=ReviewListResponse, responses=get_error_responses(404))
async def list_agent_reviews(
    agent_id: int = Path(..., description="Agent user ID"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    agent_service: AgentService = Depends(get_agent_service)
):
    params = {key: value for key, value in (("page", page), ("limit", limit)) if value is not None}
    return await agent_service.list_reviews(agent_id, params)


@router.post(
    "/{agent_id}/reviews",
    response_model=ReviewEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Review an agent",
    description="Buyers only; one review per agent.",
    responses=get_crud_error_responses()
)
async def create_agent_review(
    review_data: ReviewCreate,
    agent_id: int = Path(..., description="Agent user ID"),
    current_user: User = Depends(require_buyer),
    agent_service: AgentService = Depends(get_agent_service)
):
    review = await agent_service.create_review(agent_id, current_user, review_data.rating, review_data.content)
    return {"review": review.to_dict()}
