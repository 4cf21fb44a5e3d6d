"""Testimonial service: one platform review per user."""

from typing import List, Optional, Any
from sqlalchemy.ext.asyncio import AsyncSession

from estate_api.models.testimonial import Testimonial
from estate_api.models.user import User
from estate_api.repositories.testimonial import TestimonialRepository
from estate_api.utils.validators import ValidationUtils
from estate_api.utils.exceptions import DuplicateResourceError, ForbiddenError, NotFoundError
import logging

logger = logging.getLogger(__name__)


class TestimonialService:
    """Create, list and moderate testimonials."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.testimonial_repo = TestimonialRepository(db_session)

    async def create(self, user: User, content: Optional[str], rating: Any = None) -> Testimonial:
        """
        Raises:
            ValidationError: If content is missing or rating is outside 1-5
            DuplicateResourceError: If the user already left a testimonial
        """
        content = ValidationUtils.require(content, "content")
        rating = 5 if rating is None else ValidationUtils.validate_rating(rating)

        if await self.testimonial_repo.get_by_user(user.id):
            raise DuplicateResourceError("You have already submitted a testimonial")

        created = await self.testimonial_repo.create({
            "user_id": user.id,
            "content": content,
            "rating": rating,
        })
        logger.info(f"User {user.id} submitted testimonial {created.id}")
        return await self.testimonial_repo.get_by_id(created.id)

    async def list_public(self) -> List[Testimonial]:
        return await self.testimonial_repo.list_approved(limit=12)

    async def list_all(self) -> List[Testimonial]:
        return await self.testimonial_repo.list_all()

    async def get(self, testimonial_id: int) -> Testimonial:
        testimonial = await self.testimonial_repo.get_by_id(testimonial_id)
        if not testimonial:
            raise NotFoundError("Testimonial")
        return testimonial

    async def delete(self, testimonial_id: int, user: User) -> None:
        """Owners delete their own testimonial; admins delete any."""
        testimonial = await self.get(testimonial_id)
        if testimonial.user_id != user.id and not user.is_admin:
            raise ForbiddenError("You can only delete your own testimonial")

        await self.testimonial_repo.delete(testimonial_id)
        logger.info(f"Testimonial {testimonial_id} deleted by user {user.id}")

    async def set_approved(self, testimonial_id: int, approved: bool) -> Testimonial:
        testimonial = await self.get(testimonial_id)
        return await self.testimonial_repo.update(testimonial, {"approved": approved})
