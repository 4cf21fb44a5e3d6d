"""Favorite service: saved listings per user."""

from typing import Dict, Any, Mapping, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from estate_api.config import settings
from estate_api.models.user import User
from estate_api.repositories.favorite import FavoriteRepository
from estate_api.repositories.property import PropertyRepository, SearchPage
from estate_api.utils.validators import ValidationUtils
from estate_api.utils.exceptions import PropertyNotFoundError
import logging

logger = logging.getLogger(__name__)


class FavoriteService:
    """Toggle, list and check saved listings."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.favorite_repo = FavoriteRepository(db_session)
        self.property_repo = PropertyRepository(db_session)

    async def toggle(self, user: User, property_id: int) -> Dict[str, bool]:
        """
        Save the listing if it is not saved, otherwise unsave it.

        Raises:
            PropertyNotFoundError: If the listing does not exist
        """
        if not await self.property_repo.exists(property_id):
            raise PropertyNotFoundError()

        saved = await self.favorite_repo.toggle(user.id, property_id)
        logger.info(f"User {user.id} {'saved' if saved else 'unsaved'} property {property_id}")
        return {"saved": saved}

    async def list_favorites(self, user: User, params: Mapping[str, Any]) -> Dict[str, Any]:
        page = SearchPage.from_query(
            params,
            default_limit=settings.default_page_size,
            max_limit=settings.max_page_size
        )
        properties, total_count = await self.favorite_repo.list_for_user(user.id, page.offset, page.limit)
        return {
            "properties": [prop.to_dict() for prop in properties],
            "total_count": total_count,
            "total_pages": page.total_pages(total_count),
            "current_page": page.page,
        }

    async def check(self, user: User, property_ids: Optional[str]) -> Dict[str, Any]:
        """Which of the comma separated listing ids the user has saved."""
        ids = ValidationUtils.parse_id_list(property_ids)
        if not ids:
            return {"favorite_ids": []}
        return {"favorite_ids": await self.favorite_repo.saved_property_ids(user.id, ids)}
