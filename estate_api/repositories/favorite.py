"""
Favorite repository.
The toggle deletes first and inserts only when nothing was deleted, so the
unique (user_id, property_id) index is the only guard concurrent toggles need.
"""

from typing import List, Tuple
from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from estate_api.models.favorite import Favorite
from estate_api.models.property import Property
from estate_api.repositories.base import BaseRepository
import logging

logger = logging.getLogger(__name__)


class FavoriteRepository(BaseRepository[Favorite]):
    """Repository for saved listings."""

    def __init__(self, db: AsyncSession):
        super().__init__(Favorite, db)

    async def toggle(self, user_id: int, property_id: int) -> bool:
        """
        Flip the saved state of a listing for a user.

        Returns:
            True if the listing is saved after the call, False if it was removed
        """
        try:
            result = await self.db.execute(
                delete(Favorite).where(
                    Favorite.user_id == user_id,
                    Favorite.property_id == property_id
                )
            )
            if result.rowcount:
                await self.db.commit()
                logger.debug(f"User {user_id} unsaved property {property_id}")
                return False

            self.db.add(Favorite(user_id=user_id, property_id=property_id))
            await self.db.commit()
            logger.debug(f"User {user_id} saved property {property_id}")
            return True
        except IntegrityError:
            # A concurrent toggle inserted the same pair first
            await self.db.rollback()
            logger.debug(f"Favorite ({user_id}, {property_id}) already present")
            return True
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to toggle favorite ({user_id}, {property_id}): {e}")
            raise

    async def list_for_user(self, user_id: int, skip: int, limit: int) -> Tuple[List[Property], int]:
        """Saved properties, most recently saved first, with the total count."""
        count_result = await self.db.execute(
            select(func.count(Favorite.id)).where(Favorite.user_id == user_id)
        )
        total_count = count_result.scalar() or 0

        result = await self.db.execute(
            select(Favorite)
            .where(Favorite.user_id == user_id)
            .order_by(Favorite.created_at.desc(), Favorite.id.desc())
            .offset(skip)
            .limit(limit)
        )
        favorites = result.scalars().all()
        return [favorite.property for favorite in favorites if favorite.property], total_count

    async def saved_property_ids(self, user_id: int, property_ids: List[int]) -> List[int]:
        if not property_ids:
            return []
        result = await self.db.execute(
            select(Favorite.property_id)
            .where(
                Favorite.user_id == user_id,
                Favorite.property_id.in_(property_ids)
            )
            .order_by(Favorite.property_id.asc())
        )
        return list(result.scalars().all())
