"""
Image service for avatar and listing image uploads.
Validates every file before storing any, then writes to the configured
storage backend and records the rows.
"""

from typing import List
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from estate_api.config import get_settings
from estate_api.models.image import PropertyImage
from estate_api.models.user import User
from estate_api.repositories.image import ImageRepository
from estate_api.repositories.user import UserRepository
from estate_api.services.property import PropertyService
from estate_api.services.storage import StorageBackend, StorageError
from estate_api.utils.file_utils import FileValidator, generate_unique_filename
from estate_api.utils.exceptions import ValidationError, NotFoundError, UpstreamServiceError
import logging

settings = get_settings()
logger = logging.getLogger(__name__)


class ImageService:
    """Service for managing uploads and their storage objects."""

    def __init__(self, db_session: AsyncSession, storage: StorageBackend):
        self.db_session = db_session
        self.storage = storage
        self.repository = ImageRepository(db_session)
        self.user_repo = UserRepository(db_session)
        self.property_service = PropertyService(db_session, storage)

    async def upload_avatar(self, user: User, file: UploadFile) -> User:
        """
        Store a profile picture at ``<user_id>/avatar<ext>``, replacing any previous one.

        Raises:
            ValidationError, FileUploadError: If the file is not an acceptable image
            UpstreamServiceError: If the storage backend rejects the upload
        """
        image = await FileValidator.validate_upload_file(file)
        path = f"{user.id}/avatar{image.extension}"

        try:
            await self.storage.upload(
                settings.avatar_bucket,
                path,
                image.content,
                image.content_type,
                upsert=True
            )
        except (StorageError, OSError) as e:
            logger.error(f"Avatar upload failed for user {user.id}: {e}")
            raise UpstreamServiceError("Failed to upload avatar")

        avatar_url = self.storage.public_url(settings.avatar_bucket, path)
        updated = await self.user_repo.update(user, {"avatar_url": avatar_url})
        logger.info(f"User {user.id} updated avatar")
        return updated

    async def upload_property_images(
        self,
        property_id: int,
        files: List[UploadFile],
        current_user: User
    ) -> List[PropertyImage]:
        """
        Upload listing images one after another.

        A file whose storage call fails is logged and skipped; earlier files
        stay stored. The first stored image becomes primary only when the
        listing had no primary image before.

        Returns:
            Image rows created by this call
        """
        await self.property_service.get_owned_property(property_id, current_user)

        files = [file for file in files if file is not None]
        if not files or len(files) > settings.max_images_per_upload:
            raise ValidationError(f"Please upload between 1 and {settings.max_images_per_upload} images")

        validated = [await FileValidator.validate_upload_file(file) for file in files]

        has_primary = await self.repository.has_primary_image(property_id)
        uploaded = []

        for file, image in zip(files, validated):
            path = f"{property_id}/{generate_unique_filename(image.extension)}"
            try:
                await self.storage.upload(
                    settings.property_image_bucket,
                    path,
                    image.content,
                    image.content_type
                )
            except (StorageError, OSError) as e:
                logger.warning(f"Skipping image {file.filename!r} for property {property_id}: {e}")
                continue

            record = await self.repository.add_image(
                property_id=property_id,
                image_url=self.storage.public_url(settings.property_image_bucket, path),
                storage_path=path,
                is_primary=not has_primary
            )
            has_primary = True
            uploaded.append(record)

        logger.info(f"Stored {len(uploaded)} of {len(files)} image(s) for property {property_id}")
        return uploaded

    async def list_property_images(self, property_id: int) -> List[PropertyImage]:
        await self.property_service.get_property(property_id)
        return await self.repository.get_by_property_id(property_id)

    async def delete_property_image(self, property_id: int, image_id: int, current_user: User) -> None:
        """
        Remove one image of the caller's listing.

        Raises:
            NotFoundError: If the image does not belong to the listing
        """
        await self.property_service.get_owned_property(property_id, current_user)

        image = await self.repository.get_for_property(property_id, image_id)
        if not image:
            raise NotFoundError("Image", image_id)

        if image.storage_path:
            await self.property_service.remove_stored_images([image.storage_path])

        await self.repository.delete(image.id)
        logger.info(f"Deleted image {image_id} of property {property_id}")
