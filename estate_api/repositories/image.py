"""
Repository for PropertyImage model operations.
Handles database queries and operations for property images.
"""

from typing import List, Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from estate_api.models.image import PropertyImage
from estate_api.repositories.base import BaseRepository


class ImageRepository(BaseRepository[PropertyImage]):
    """Repository for PropertyImage database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(PropertyImage, db)

    async def get_by_property_id(self, property_id: int) -> List[PropertyImage]:
        """
        Get all images for a specific property.

        Returns:
            List of property images, primary first then oldest first
        """
        query = (
            select(PropertyImage)
            .where(PropertyImage.property_id == property_id)
            .order_by(
                PropertyImage.is_primary.desc(),
                PropertyImage.created_at.asc(),
                PropertyImage.id.asc()
            )
        )

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_for_property(self, property_id: int, image_id: int) -> Optional[PropertyImage]:
        query = select(PropertyImage).where(
            PropertyImage.id == image_id,
            PropertyImage.property_id == property_id
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def has_primary_image(self, property_id: int) -> bool:
        query = select(func.count(PropertyImage.id)).where(
            PropertyImage.property_id == property_id,
            PropertyImage.is_primary.is_(True)
        )
        result = await self.db.execute(query)
        return (result.scalar() or 0) > 0

    async def add_image(self, property_id: int, image_url: str, storage_path: str, is_primary: bool) -> PropertyImage:
        return await self.create({
            "property_id": property_id,
            "image_url": image_url,
            "storage_path": storage_path,
            "is_primary": is_primary,
        })

    async def storage_paths_for_property(self, property_id: int) -> List[str]:
        query = select(PropertyImage.storage_path).where(
            PropertyImage.property_id == property_id,
            PropertyImage.storage_path.is_not(None)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())
