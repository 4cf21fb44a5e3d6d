"""Agent review repository."""

from typing import List, Optional, Tuple
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from estate_api.models.agent_review import AgentReview
from estate_api.repositories.base import BaseRepository


class ReviewRepository(BaseRepository[AgentReview]):
    """Repository for buyer reviews of agents."""

    def __init__(self, db: AsyncSession):
        super().__init__(AgentReview, db)

    async def get_by_pair(self, agent_id: int, reviewer_id: int) -> Optional[AgentReview]:
        result = await self.db.execute(
            select(AgentReview).where(
                AgentReview.agent_id == agent_id,
                AgentReview.reviewer_id == reviewer_id
            )
        )
        return result.scalar_one_or_none()

    async def list_for_agent(self, agent_id: int, skip: int = 0, limit: Optional[int] = None) -> Tuple[List[AgentReview], int]:
        count_result = await self.db.execute(
            select(func.count(AgentReview.id)).where(AgentReview.agent_id == agent_id)
        )
        total = count_result.scalar() or 0

        query = (
            select(AgentReview)
            .where(AgentReview.agent_id == agent_id)
            .order_by(AgentReview.created_at.desc(), AgentReview.id.desc())
            .offset(skip)
        )
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def rating_summary(self, agent_id: int) -> Tuple[Optional[float], int]:
        """Average rating rounded to one decimal (None without reviews) and review count."""
        result = await self.db.execute(
            select(func.avg(AgentReview.rating), func.count(AgentReview.id))
            .where(AgentReview.agent_id == agent_id)
        )
        average, count = result.one()
        if not count:
            return None, 0
        return round(float(average), 1), count
