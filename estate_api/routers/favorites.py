"""Saved listing endpoints for signed-in users."""

from fastapi import APIRouter, Depends, Path, Query
from typing import Optional

from estate_api.models.user import User
from estate_api.services.favorite import FavoriteService
from estate_api.schemas.favorite import FavoriteToggleResponse, FavoriteListResponse, FavoriteCheckResponse
from estate_api.schemas.error import get_error_responses
from estate_api.utils.dependencies import get_current_user, get_favorite_service

router = APIRouter(prefix="/favorites", tags=["Favorites"])


@router.get("", response_model=FavoriteListResponse, responses=get_error_responses(401))
async def list_favorites(
    page: Optional[str] = Query(None, description="Page number, starting at 1"),
    limit: Optional[str] = Query(None, description="Page size (default 12)"),
    current_user: User = Depends(get_current_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
):
    """Saved listings, most recently saved first."""
    params = {key: value for key, value in (("page", page), ("limit", limit)) if value is not None}
    return await favorite_service.list_favorites(current_user, params)


@router.get("/check", response_model=FavoriteCheckResponse, responses=get_error_responses(401))
async def check_favorites(
    propertyIds: Optional[str] = Query(None, description="Comma separated listing ids"),
    current_user: User = Depends(get_current_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
):
    return await favorite_service.check(current_user, propertyIds)


@router.post(
    "/{property_id}",
    response_model=FavoriteToggleResponse,
    summary="Save or unsave a listing",
    responses=get_error_responses(400, 401, 404)
)
async def toggle_favorite(
    property_id: int = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
):
    return await favorite_service.toggle(current_user, property_id)
