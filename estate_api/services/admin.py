"""
Admin service: platform statistics, trends and moderation of users,
listings, testimonials and the visitor log.
"""

from collections import Counter
from datetime import datetime
from typing import Dict, Any, Iterable, List, Mapping, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from estate_api.models.property import PropertyStatus
from estate_api.models.user import User, UserRole
from estate_api.repositories.property import PropertyRepository, PropertySearchFilters, SearchPage
from estate_api.repositories.testimonial import TestimonialRepository
from estate_api.repositories.user import UserRepository
from estate_api.repositories.visitor import VisitorRepository
from estate_api.services.property import PropertyService
from estate_api.services.storage import StorageBackend
from estate_api.utils.dates import start_of_day, days_ago, ensure_aware, utcnow
from estate_api.utils.validators import ValidationUtils
from estate_api.utils.exceptions import BadRequestError, UserNotFoundError, ValidationError
import logging

logger = logging.getLogger(__name__)

TREND_DAYS = 30
VISITOR_WINDOW_DAYS = 7


def _per_day(timestamps: Iterable[Optional[datetime]]) -> List[Dict[str, Any]]:
    """Bucket timestamps by UTC calendar day, oldest day first."""
    counts = Counter(
        ensure_aware(moment).date().isoformat()
        for moment in timestamps
        if moment is not None
    )
    return [{"date": day, "count": counts[day]} for day in sorted(counts)]


class AdminService:
    """Read-mostly operations behind the admin panel."""

    def __init__(self, db_session: AsyncSession, storage: Optional[StorageBackend] = None):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.testimonial_repo = TestimonialRepository(db_session)
        self.visitor_repo = VisitorRepository(db_session)
        self.property_service = PropertyService(db_session, storage)

    async def get_stats(self) -> Dict[str, int]:
        """
        Platform counters.

        "This week" is the seven days before the start of today plus today;
        "previous week" is the seven days before that.
        """
        today = start_of_day()
        week_ago = days_ago(7, today)
        two_weeks_ago = days_ago(14, today)

        return {
            "total_users": await self.user_repo.count_active(),
            "total_properties": await self.property_repo.count(),
            "total_testimonials": await self.testimonial_repo.count(),
            "visitors_today": await self.visitor_repo.count_between(today),
            "visitors_this_week": await self.visitor_repo.count_between(week_ago),
            "prev_week_visitors": await self.visitor_repo.count_between(two_weeks_ago, week_ago),
            "new_users_this_week": await self.user_repo.count_created_between(week_ago),
            "prev_week_new_users": await self.user_repo.count_created_between(two_weeks_ago, week_ago),
            "deleted_accounts_this_week": await self.user_repo.count_deleted_between(week_ago),
            "prev_week_deleted_accounts": await self.user_repo.count_deleted_between(two_weeks_ago, week_ago),
            "total_deleted_accounts": await self.user_repo.count_deleted_between(),
            "sold_properties": await self.property_repo.count_by_status(PropertyStatus.SOLD),
            "rented_properties": await self.property_repo.count_by_status(PropertyStatus.RENTED),
        }

    async def get_trends(self) -> Dict[str, List[Dict[str, Any]]]:
        """Per-day counts over the last 30 days; days without activity are omitted."""
        since = days_ago(TREND_DAYS)
        return {
            "users_per_day": _per_day(await self.user_repo.created_timestamps_since(since)),
            "properties_per_day": _per_day(await self.property_repo.created_timestamps_since(since)),
            "visitors_per_day": _per_day(await self.visitor_repo.created_timestamps_since(since)),
            "deleted_accounts_per_day": _per_day(await self.user_repo.deleted_timestamps_since(since)),
        }

    async def list_users(
        self,
        search: Optional[str] = None,
        role: Optional[str] = None,
        include_deleted: bool = False
    ) -> List[User]:
        role_filter = None
        if role in {member.value for member in UserRole}:
            role_filter = UserRole(role)

        return await self.user_repo.search_users(
            search=ValidationUtils.sanitize_search(search) or None,
            role=role_filter,
            include_deleted=include_deleted
        )

    def _parse_user_id(self, user_id: str) -> int:
        if not ValidationUtils.is_valid_id(user_id):
            raise BadRequestError("Invalid user ID")
        return int(user_id)

    async def delete_user(self, user_id: str, admin: User) -> None:
        """
        Permanently delete an account and everything it owns.

        Raises:
            BadRequestError: For a malformed id, the caller's own account or another admin
            UserNotFoundError: If no account has this id
        """
        target_id = self._parse_user_id(user_id)
        if target_id == admin.id:
            raise BadRequestError("Cannot delete yourself")

        user = await self.user_repo.get_by_id(target_id)
        if not user:
            raise UserNotFoundError()
        if user.is_admin:
            raise BadRequestError("Cannot delete admin users")

        await self.user_repo.delete(target_id)
        logger.info(f"Admin {admin.id} deleted user {target_id}")

    async def update_user_role(self, user_id: str, role: Optional[str], admin: User) -> User:
        target_id = self._parse_user_id(user_id)
        if target_id == admin.id:
            raise BadRequestError("Cannot change your own role")
        if role not in {member.value for member in UserRole}:
            raise ValidationError("Role must be one of: Agent, Buyer, Admin")

        user = await self.user_repo.get_active_by_id(target_id)
        if not user:
            raise UserNotFoundError()

        updated = await self.user_repo.update(user, {"role": UserRole(role)})
        logger.info(f"Admin {admin.id} changed role of user {target_id} to {role}")
        return updated

    async def list_properties(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Every listing regardless of status unless ``status`` is given; ``search`` matches location."""
        filters = PropertySearchFilters.from_query(params, default_status=None)
        filters.search = ValidationUtils.sanitize_search(params.get("search")) or None
        page = SearchPage(
            page=ValidationUtils.parse_positive_int(params.get("page"), 1, 1000),
            limit=ValidationUtils.parse_positive_int(params.get("limit"), 20, 100),
        )

        properties, total = await self.property_repo.search_properties(
            filters,
            skip=page.offset,
            limit=page.limit
        )
        return {
            "properties": [prop.to_dict() for prop in properties],
            "total": total,
            "page": page.page,
            "total_pages": page.total_pages(total),
        }

    async def delete_property(self, property_id: int, admin: User) -> None:
        await self.property_service.delete_property(property_id)
        logger.info(f"Admin {admin.id} removed property {property_id}")

    async def list_visitors(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Visits from the last seven days, newest first."""
        page = SearchPage(
            page=ValidationUtils.parse_positive_int(params.get("page"), 1, 1000),
            limit=ValidationUtils.parse_positive_int(params.get("limit"), 50, 100),
        )
        since = days_ago(VISITOR_WINDOW_DAYS, utcnow())
        visitors, total = await self.visitor_repo.list_since(since, page.offset, page.limit)
        return {
            "visitors": [visitor.to_dict() for visitor in visitors],
            "total": total,
            "page": page.page,
            "total_pages": page.total_pages(total),
        }
