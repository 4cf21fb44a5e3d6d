"""Visitor log repository."""

from typing import List, Tuple, Optional
from datetime import datetime
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from estate_api.models.visitor import Visitor
from estate_api.repositories.base import BaseRepository


class VisitorRepository(BaseRepository[Visitor]):
    """Repository for tracked requests."""

    def __init__(self, db: AsyncSession):
        super().__init__(Visitor, db)

    async def record(self, visit: dict) -> None:
        """Insert a visit without reloading it."""
        self.db.add(Visitor(**visit))
        await self.db.commit()

    async def count_between(self, start: datetime, end: Optional[datetime] = None) -> int:
        query = select(func.count(Visitor.id)).where(Visitor.created_at >= start)
        if end is not None:
            query = query.where(Visitor.created_at < end)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def list_since(self, since: datetime, skip: int, limit: int) -> Tuple[List[Visitor], int]:
        count_result = await self.db.execute(
            select(func.count(Visitor.id)).where(Visitor.created_at >= since)
        )
        total = count_result.scalar() or 0

        result = await self.db.execute(
            select(Visitor)
            .where(Visitor.created_at >= since)
            .order_by(Visitor.created_at.desc(), Visitor.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def created_timestamps_since(self, since: datetime) -> List[datetime]:
        result = await self.db.execute(select(Visitor.created_at).where(Visitor.created_at >= since))
        return list(result.scalars().all())
