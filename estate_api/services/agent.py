"""
Agent service: public agent profiles and buyer reviews.
"""

from typing import Dict, Any, Mapping
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from estate_api.models.agent_review import AgentReview
from estate_api.models.property import PropertyStatus
from estate_api.models.user import User
from estate_api.repositories.property import PropertyRepository, SearchPage
from estate_api.repositories.review import ReviewRepository
from estate_api.repositories.user import UserRepository
from estate_api.utils.validators import ValidationUtils
from estate_api.utils.exceptions import (
    NotFoundError,
    ValidationError,
    DuplicateResourceError,
    ForbiddenError,
)
import logging

logger = logging.getLogger(__name__)


class AgentService:
    """Agent profile pages and the reviews buyers leave on them."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.review_repo = ReviewRepository(db_session)

    async def get_agent(self, agent_id: int) -> User:
        """
        Raises:
            NotFoundError: Unless the user exists, is active and is an Agent
        """
        agent = await self.user_repo.get_agent(agent_id)
        if not agent:
            raise NotFoundError("Agent")
        return agent

    async def get_profile(self, agent_id: int) -> Dict[str, Any]:
        agent = await self.get_agent(agent_id)
        rows = await self.property_repo.get_status_rows(agent.id)
        avg_rating, total_reviews = await self.review_repo.rating_summary(agent.id)

        statuses = [row_status for row_status, _ in rows]
        return {
            "agent": {
                "id": agent.id,
                "name": agent.name,
                "email": agent.email,
                "phone": agent.phone,
                "avatar_url": agent.avatar_url,
                "created_at": agent.created_at,
            },
            "stats": {
                "total_listings": len(rows),
                "available": statuses.count(PropertyStatus.AVAILABLE),
                "sold": statuses.count(PropertyStatus.SOLD),
                "rented": statuses.count(PropertyStatus.RENTED),
                "avg_rating": avg_rating,
                "total_reviews": total_reviews,
            },
        }

    async def list_reviews(self, agent_id: int, params: Mapping[str, Any]) -> Dict[str, Any]:
        await self.get_agent(agent_id)
        page = SearchPage.from_query(params, default_limit=10, max_limit=50)
        reviews, total_count = await self.review_repo.list_for_agent(agent_id, page.offset, page.limit)
        return {
            "reviews": [review.to_dict() for review in reviews],
            "total_count": total_count,
            "total_pages": page.total_pages(total_count),
            "page": page.page,
        }

    async def create_review(self, agent_id: int, reviewer: User, rating: Any, content: str) -> AgentReview:
        """
        Record a buyer's review of an agent.

        Raises:
            ValidationError: For a self review, blank content or a rating outside 1-5
            NotFoundError: If the agent does not exist
            DuplicateResourceError: If the buyer already reviewed this agent
        """
        if agent_id == reviewer.id:
            raise ValidationError("You cannot review yourself")
        content = ValidationUtils.require(content, "content")
        rating = ValidationUtils.validate_rating(rating)

        await self.get_agent(agent_id)

        if await self.review_repo.get_by_pair(agent_id, reviewer.id):
            raise DuplicateResourceError("You have already reviewed this agent")

        try:
            created = await self.review_repo.create({
                "agent_id": agent_id,
                "reviewer_id": reviewer.id,
                "rating": rating,
                "content": content,
            })
        except IntegrityError:
            raise DuplicateResourceError("You have already reviewed this agent")

        logger.info(f"Buyer {reviewer.id} reviewed agent {agent_id} ({rating}/5)")
        return await self.review_repo.get_by_id(created.id)

    async def delete_review(self, review_id: int, user: User) -> None:
        review = await self.review_repo.get_by_id(review_id)
        if not review:
            raise NotFoundError("Review")
        if review.reviewer_id != user.id and not user.is_admin:
            raise ForbiddenError("You can only delete your own review")

        await self.review_repo.delete(review_id)
        logger.info(f"Review {review_id} deleted by user {user.id}")
