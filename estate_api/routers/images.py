"""
Property image API endpoints.
Handles listing, upload and deletion of a listing's images.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, File, Path, UploadFile, status

from estate_api.models.user import User
from estate_api.services.image import ImageService
from estate_api.schemas.image import ImageListResponse
from estate_api.schemas.common import MessageResponse
from estate_api.schemas.error import get_error_responses, get_crud_error_responses
from estate_api.utils.dependencies import get_image_service, require_agent

router = APIRouter(prefix="/properties/{property_id}/images", tags=["Images"])


@router.get(
    "",
    response_model=ImageListResponse,
    summary="List property images",
    description="Primary image first, then oldest first.",
    responses=get_error_responses(404)
)
async def list_images(
    property_id: int = Path(..., description="Property ID"),
    image_service: ImageService = Depends(get_image_service)
):
    images = await image_service.list_property_images(property_id)
    return {"images": [image.to_dict() for image in images]}


@router.post(
    "",
    response_model=ImageListResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload property images",
    description=(
        "Upload 1-10 image files (multipart field `images`, at most 5MB each). "
        "Files are stored one after another; a file the storage backend rejects is skipped. "
        "The first stored image becomes primary if the listing has none."
    ),
    responses=get_crud_error_responses()
)
async def upload_images(
    property_id: int = Path(..., description="Property ID"),
    images: Optional[List[UploadFile]] = File(None, description="Image files"),
    current_user: User = Depends(require_agent),
    image_service: ImageService = Depends(get_image_service)
):
    """
    Upload images for the caller's listing.

    Returns:
        The image rows created by this request
    """
    uploaded = await image_service.upload_property_images(property_id, images or [], current_user)
    return {"images": [image.to_dict() for image in uploaded]}


@router.delete(
    "/{image_id}",
    response_model=MessageResponse,
    summary="Delete a property image",
    responses=get_crud_error_responses()
)
async def delete_image(
    property_id: int = Path(..., description="Property ID"),
    image_id: int = Path(..., description="Image ID"),
    current_user: User = Depends(require_agent),
    image_service: ImageService = Depends(get_image_service)
):
    await image_service.delete_property_image(property_id, image_id, current_user)
    return {"message": "Image deleted"}
