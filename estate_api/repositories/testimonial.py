"""Testimonial repository."""

from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from estate_api.models.testimonial import Testimonial
from estate_api.repositories.base import BaseRepository


class TestimonialRepository(BaseRepository[Testimonial]):
    """Repository for platform testimonials."""

    def __init__(self, db: AsyncSession):
        super().__init__(Testimonial, db)

    async def get_by_user(self, user_id: int) -> Optional[Testimonial]:
        result = await self.db.execute(select(Testimonial).where(Testimonial.user_id == user_id))
        return result.scalar_one_or_none()

    async def list_approved(self, limit: int = 12) -> List[Testimonial]:
        result = await self.db.execute(
            select(Testimonial)
            .where(Testimonial.approved.is_(True))
            .order_by(Testimonial.created_at.desc(), Testimonial.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
