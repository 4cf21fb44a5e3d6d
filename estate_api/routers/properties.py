"""
Property listing API endpoints: search, suggestions, CRUD and the agent
dashboard.
"""

from fastapi import APIRouter, Depends, Path, Query, status
from typing import Any, Dict, Optional

from estate_api.models.user import User
from estate_api.services.property import PropertyService
from estate_api.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyEnvelope,
    PropertySearchResponse,
    SuggestionsResponse,
    AgentStatsResponse,
    DeleteResponse,
)
from estate_api.schemas.error import get_error_responses, get_crud_error_responses
from estate_api.utils.dependencies import (
    get_property_service,
    require_agent,
)


router = APIRouter(tags=["Properties"])


def listing_filters(
    location: Optional[str] = Query(None, description="Case-insensitive substring of the location"),
    type: Optional[str] = Query(None, description="House, Apartment, Villa, Commercial, Land or All"),
    purpose: Optional[str] = Query(None, description="Sale, Rent or All"),
    minPrice: Optional[str] = Query(None, description="Minimum price (inclusive)"),
    maxPrice: Optional[str] = Query(None, description="Maximum price (inclusive)"),
    bedrooms: Optional[str] = Query(None, description="Exact number of bedrooms"),
    minArea: Optional[str] = Query(None, description="Minimum area in sq ft (inclusive)"),
    maxArea: Optional[str] = Query(None, description="Maximum area in sq ft (inclusive)"),
    agent_name: Optional[str] = Query(None, description="Substring of the agent's name"),
    status: Optional[str] = Query(None, description="Available (default), Sold, Rented or All"),
    page: Optional[str] = Query(None, description="Page number, starting at 1"),
    limit: Optional[str] = Query(None, description="Page size, 1-100 (default 12)"),
    sortBy: Optional[str] = Query(None, description="price, createdAt, bedrooms or area"),
    order: Optional[str] = Query(None, description="ASC or DESC (default)"),
) -> Dict[str, Any]:
    """
    Raw search parameters. Values are parsed leniently by the query builder,
    so they are accepted here as strings.
    """
    params = {
        "location": location,
        "type": type,
        "purpose": purpose,
        "minPrice": minPrice,
        "maxPrice": maxPrice,
        "bedrooms": bedrooms,
        "minArea": minArea,
        "maxArea": maxArea,
        "agent_name": agent_name,
        "status": status,
        "page": page,
        "limit": limit,
        "sortBy": sortBy,
        "order": order,
    }
    return {key: value for key, value in params.items() if value is not None}


def search_params(
    agent_id: Optional[str] = Query(None, description="Listings of one agent"),
    filters: Dict[str, Any] = Depends(listing_filters),
) -> Dict[str, Any]:
    """Listing filters plus the optional agent filter of the public search."""
    if agent_id is not None:
        return {**filters, "agent_id": agent_id}
    return filters


@router.get(
    "/properties",
    response_model=PropertySearchResponse,
    summary="Search properties",
    description="Paginated listing search. Omitting status returns available listings only.",
    responses=get_error_responses(500)
)
async def search_properties(
    params: Dict[str, Any] = Depends(search_params),
    property_service: PropertyService = Depends(get_property_service)
):
    return await property_service.search(params)


@router.get("/search", response_model=PropertySearchResponse, include_in_schema=False)
async def search_alias(
    params: Dict[str, Any] = Depends(search_params),
    property_service: PropertyService = Depends(get_property_service)
):
    return await property_service.search(params)


@router.get(
    "/properties/suggestions",
    response_model=SuggestionsResponse,
    summary="Search box suggestions"
)
async def suggestions(
    q: Optional[str] = Query(None, description="At least 2 characters"),
    property_service: PropertyService = Depends(get_property_service)
):
    return await property_service.suggest(q)


@router.get(
    "/agent/stats",
    response_model=AgentStatsResponse,
    tags=["Agents"],
    summary="Dashboard counters for the signed-in agent",
    responses=get_error_responses(401, 403)
)
async def agent_stats(
    current_user: User = Depends(require_agent),
    property_service: PropertyService = Depends(get_property_service)
):
    return await property_service.get_agent_stats(current_user)


@router.get(
    "/properties/{property_id}",
    response_model=PropertyEnvelope,
    summary="Get property by ID",
    responses=get_error_responses(400, 404)
)
async def get_property(
    property_id: int = Path(..., description="Property ID"),
    property_service: PropertyService = Depends(get_property_service)
):
    property_obj = await property_service.get_property(property_id)
    return {"property": property_obj.to_dict(include_images="all", include_analysis=True)}


@router.post(
    "/properties",
    response_model=PropertyEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create new property",
    description="Create a new property listing. Requires the Agent role.",
    responses=get_crud_error_responses()
)
async def create_property(
    property_data: PropertyCreate,
    current_user: User = Depends(require_agent),
    property_service: PropertyService = Depends(get_property_service)
):
    """
    Raises:
        ValidationError: ``<field> is required`` when a listing field is missing
    """
    property_obj = await property_service.create_property(property_data.model_dump(), current_user)
    return {"property": property_obj.to_dict(include_images="all")}


@router.put(
    "/properties/{property_id}",
    response_model=PropertyResponse,
    summary="Update property",
    description="Partial update of the caller's own listing.",
    responses=get_crud_error_responses()
)
async def update_property(
    property_data: PropertyUpdate,
    property_id: int = Path(..., description="Property ID"),
    current_user: User = Depends(require_agent),
    property_service: PropertyService = Depends(get_property_service)
):
    property_obj = await property_service.update_property(
        property_id,
        property_data.model_dump(exclude_unset=True),
        current_user
    )
    return property_obj.to_dict(include_images="all")


@router.delete(
    "/properties/{property_id}",
    response_model=DeleteResponse,
    summary="Delete property",
    responses=get_crud_error_responses()
)
async def delete_property(
    property_id: int = Path(..., description="Property ID"),
    current_user: User = Depends(require_agent),
    property_service: PropertyService = Depends(get_property_service)
):
    await property_service.delete_property(property_id, current_user)
    return {"msg": "Property Deleted Successfully"}
