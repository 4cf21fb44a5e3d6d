"""
Property service for managing property listings with business logic validation.
Handles search envelopes, CRUD with ownership checks, agent dashboards and
search suggestions.
"""

from typing import Optional, Dict, Any, Mapping, List
from sqlalchemy.ext.asyncio import AsyncSession
from estate_api.config import settings
from estate_api.repositories.property import PropertyRepository, PropertySearchFilters, SearchPage
from estate_api.repositories.image import ImageRepository
from estate_api.repositories.review import ReviewRepository
from estate_api.repositories.user import UserRepository
from estate_api.models.property import Property, PropertyType, PropertyPurpose, PropertyStatus
from estate_api.models.user import User
from estate_api.services.storage import StorageBackend, StorageError
from estate_api.utils.validators import ValidationUtils
from estate_api.utils.exceptions import (
    PropertyNotFoundError,
    OwnershipError,
    ValidationError,
)
import logging

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("type", "purpose", "price", "location", "area", "description")

ENUM_FIELDS = {
    "type": PropertyType,
    "purpose": PropertyPurpose,
}


class PropertyService:
    """
    Property service for managing property listings.
    Storage is only needed by operations that remove images.
    """

    def __init__(self, db_session: AsyncSession, storage: Optional[StorageBackend] = None):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.image_repo = ImageRepository(db_session)
        self.user_repo = UserRepository(db_session)
        self.review_repo = ReviewRepository(db_session)
        self.storage = storage

    async def search(
        self,
        params: Mapping[str, Any],
        agent_id: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Run the listing search for raw query-string values.

        Args:
            params: Query parameters (location, type, purpose, minPrice, ...)
            agent_id: Restrict results to one agent's listings

        Returns:
            ``{properties, total_count, page, limit, total_pages}``
        """
        filters = PropertySearchFilters.from_query(params)
        if agent_id is not None:
            filters.agent_id = agent_id
        page = SearchPage.from_query(
            params,
            default_limit=settings.default_page_size,
            max_limit=settings.max_page_size
        )

        properties, total_count = await self.property_repo.search_properties(
            filters,
            skip=page.offset,
            limit=page.limit,
            order_by=page.sort_by,
            order_direction=page.order
        )

        return {
            "properties": [prop.to_dict() for prop in properties],
            "total_count": total_count,
            "page": page.page,
            "limit": page.limit,
            "total_pages": page.total_pages(total_count),
        }

    async def get_property(self, property_id: int) -> Property:
        """
        Raises:
            PropertyNotFoundError: If no listing has this id
        """
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError()
        return property_obj

    async def get_owned_property(self, property_id: int, user: User) -> Property:
        """
        Load a listing the caller must own.

        Raises:
            PropertyNotFoundError: If no listing has this id
            OwnershipError: If another agent owns it
        """
        property_obj = await self.get_property(property_id)
        if not property_obj.is_owned_by(user.id):
            logger.warning(f"User {user.id} attempted to modify property {property_id} owned by {property_obj.agent_id}")
            raise OwnershipError()
        return property_obj

    def _coerce_enums(self, data: Dict[str, Any]) -> Dict[str, Any]:
        for field, enum_cls in ENUM_FIELDS.items():
            if data.get(field) is None:
                continue
            try:
                data[field] = enum_cls(data[field])
            except ValueError:
                allowed = ", ".join(member.value for member in enum_cls)
                raise ValidationError(f"{field} must be one of: {allowed}")
        return data

    async def create_property(self, property_data: Dict[str, Any], current_user: User) -> Property:
        """
        Create a listing owned by the calling agent.

        Raises:
            ValidationError: ``<field> is required`` for a missing field, or a bad enum value
        """
        for field in REQUIRED_FIELDS:
            property_data[field] = ValidationUtils.require(property_data.get(field), field)

        create_data = self._coerce_enums({
            "type": property_data["type"],
            "purpose": property_data["purpose"],
            "price": property_data["price"],
            "location": property_data["location"],
            "bedrooms": property_data.get("bedrooms") or None,
            "area": property_data["area"],
            "description": property_data["description"],
            "agent_id": current_user.id,
        })

        created = await self.property_repo.create_property(create_data)
        logger.info(f"Property created by agent {current_user.email} (ID: {created.id})")
        return await self.get_property(created.id)

    async def update_property(self, property_id: int, property_data: Dict[str, Any], current_user: User) -> Property:
        """
        Apply a partial update to the caller's listing.
        ``status`` is applied only when it names a known status.
        """
        property_obj = await self.get_owned_property(property_id, current_user)

        update_data = {
            field: value for field, value in property_data.items()
            if field in ("type", "purpose", "price", "location", "bedrooms", "area", "description")
            and value is not None
        }
        for field in ("location", "description"):
            if field in update_data:
                update_data[field] = ValidationUtils.require(update_data[field], field)
        update_data = self._coerce_enums(update_data)

        status = property_data.get("status")
        if status in {member.value for member in PropertyStatus}:
            update_data["status"] = PropertyStatus(status)

        await self.property_repo.update(property_obj, update_data)
        logger.info(f"Property {property_id} updated by agent {current_user.id}")
        return await self.get_property(property_id)

    async def delete_property(self, property_id: int, current_user: Optional[User] = None) -> None:
        """
        Delete a listing; images and favorites cascade.
        Without ``current_user`` (admin moderation) ownership is not checked.
        Stored image files are removed afterwards on a best-effort basis.
        """
        if current_user is not None:
            await self.get_owned_property(property_id, current_user)
        else:
            await self.get_property(property_id)

        storage_paths = await self.image_repo.storage_paths_for_property(property_id)
        await self.property_repo.delete(property_id)
        logger.info(f"Property {property_id} deleted")

        await self.remove_stored_images(storage_paths)

    async def remove_stored_images(self, storage_paths: List[str]) -> None:
        if not storage_paths or self.storage is None:
            return
        try:
            await self.storage.remove(settings.property_image_bucket, storage_paths)
        except (StorageError, OSError) as e:
            logger.warning(f"Could not remove {len(storage_paths)} stored image(s): {e}")

    async def get_agent_stats(self, agent: User) -> Dict[str, Any]:
        """Dashboard counters for an agent's own listings and reviews."""
        rows = await self.property_repo.get_status_rows(agent.id)
        avg_rating, total_reviews = await self.review_repo.rating_summary(agent.id)
        recent_reviews, _ = await self.review_repo.list_for_agent(agent.id, limit=5)

        def count(status=None, purpose=None):
            return sum(
                1 for row_status, row_purpose in rows
                if (status is None or row_status == status)
                and (purpose is None or row_purpose == purpose)
            )

        return {
            "total": len(rows),
            "available": count(PropertyStatus.AVAILABLE),
            "sold": count(PropertyStatus.SOLD),
            "rented": count(PropertyStatus.RENTED),
            "for_sale": count(PropertyStatus.AVAILABLE, PropertyPurpose.SALE),
            "for_rent": count(PropertyStatus.AVAILABLE, PropertyPurpose.RENT),
            "joined_at": agent.created_at,
            "avg_rating": avg_rating,
            "total_reviews": total_reviews,
            "recent_reviews": [review.to_dict() for review in recent_reviews],
        }

    async def suggest(self, query: Optional[str]) -> Dict[str, Any]:
        """Location and agent suggestions for a search box; needs at least 2 characters."""
        term = ValidationUtils.sanitize_search(query)
        if len(term) < 2:
            return {"locations": [], "agents": []}

        locations = await self.property_repo.suggest_locations(term, limit=4)
        agents = await self.user_repo.find_agents_by_name(term, limit=4)
        return {
            "locations": locations,
            "agents": [
                {"id": agent.id, "name": agent.name, "avatar_url": agent.avatar_url}
                for agent in agents
            ],
        }
