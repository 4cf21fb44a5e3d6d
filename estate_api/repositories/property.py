"""
Property repository for listing storage and the search/filter query builder.
The builder is shared by public search, agent pages, the admin panel and
the AI search tool.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func, false, desc, asc
from estate_api.repositories.base import BaseRepository
from estate_api.models.property import Property, PropertyType, PropertyPurpose, PropertyStatus
from estate_api.models.user import User, UserRole
from estate_api.utils.validators import ValidationUtils
from typing import Optional, List, Dict, Any, Tuple, Mapping, Type
from decimal import Decimal
from datetime import datetime
import enum
import logging
import math

logger = logging.getLogger(__name__)

# Sentinel for an enum filter value that no row can hold
UNMATCHABLE = "__unmatchable__"

ALL = "All"

SORT_FIELDS = {
    "price": Property.price,
    "createdAt": Property.created_at,
    "bedrooms": Property.bedrooms,
    "area": Property.area,
}


def _parse_enum(raw: Any, enum_cls: Type[enum.Enum]):
    """``None``/empty/``All`` mean no filter; unknown values never match."""
    if raw is None:
        return None
    if isinstance(raw, enum_cls):
        return raw
    text = str(raw).strip()
    if not text or text == ALL:
        return None
    try:
        return enum_cls(text)
    except ValueError:
        return UNMATCHABLE


class PropertySearchFilters:
    """Data class for property search filters."""

    def __init__(
        self,
        location: Optional[str] = None,
        property_type: Any = None,
        purpose: Any = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        bedrooms: Optional[int] = None,
        min_area: Optional[Decimal] = None,
        max_area: Optional[Decimal] = None,
        agent_id: Optional[int] = None,
        agent_name: Optional[str] = None,
        status: Any = PropertyStatus.AVAILABLE,
        search: Optional[str] = None
    ):
        self.location = location
        self.property_type = property_type
        self.purpose = purpose
        self.min_price = min_price
        self.max_price = max_price
        self.bedrooms = bedrooms
        self.min_area = min_area
        self.max_area = max_area
        self.agent_id = agent_id
        self.agent_name = agent_name
        self.status = status
        self.search = search

    @classmethod
    def from_query(cls, params: Mapping[str, Any], default_status: Any = PropertyStatus.AVAILABLE) -> "PropertySearchFilters":
        """
        Build filters from raw query-string values.

        Numeric values that do not parse are ignored. ``status`` falls back to
        ``default_status`` when omitted; ``All`` disables the status filter.
        """
        status_raw = params.get("status")
        if status_raw is None or str(status_raw).strip() == "":
            status = default_status
        else:
            status = _parse_enum(status_raw, PropertyStatus)

        location = params.get("location")
        agent_name = params.get("agent_name")

        return cls(
            location=location.strip() if isinstance(location, str) and location.strip() else None,
            property_type=_parse_enum(params.get("type"), PropertyType),
            purpose=_parse_enum(params.get("purpose"), PropertyPurpose),
            min_price=ValidationUtils.parse_decimal(params.get("minPrice")),
            max_price=ValidationUtils.parse_decimal(params.get("maxPrice")),
            bedrooms=ValidationUtils.parse_int(params.get("bedrooms")),
            min_area=ValidationUtils.parse_decimal(params.get("minArea")),
            max_area=ValidationUtils.parse_decimal(params.get("maxArea")),
            agent_id=ValidationUtils.parse_int(params.get("agent_id")),
            agent_name=agent_name.strip() if isinstance(agent_name, str) and agent_name.strip() else None,
            status=status,
        )

    @classmethod
    def from_tool_args(cls, args: Mapping[str, Any]) -> "PropertySearchFilters":
        """Filters requested by the language model; only available listings are searched."""
        location = args.get("location")
        return cls(
            location=location.strip() if isinstance(location, str) and location.strip() else None,
            property_type=_parse_enum(args.get("type"), PropertyType),
            purpose=_parse_enum(args.get("purpose"), PropertyPurpose),
            min_price=ValidationUtils.parse_decimal(args.get("minPrice")),
            max_price=ValidationUtils.parse_decimal(args.get("maxPrice")),
            bedrooms=ValidationUtils.parse_int(args.get("bedrooms")),
            min_area=ValidationUtils.parse_decimal(args.get("minArea")),
            max_area=ValidationUtils.parse_decimal(args.get("maxArea")),
            status=PropertyStatus.AVAILABLE,
        )


class SearchPage:
    """Pagination and ordering for a search, normalized from query-string values."""

    def __init__(self, page: int = 1, limit: int = 12, sort_by: str = "createdAt", order: str = "DESC"):
        self.page = page
        self.limit = limit
        self.sort_by = sort_by
        self.order = order

    @classmethod
    def from_query(cls, params: Mapping[str, Any], default_limit: int = 12, max_limit: int = 100) -> "SearchPage":
        page = ValidationUtils.parse_int(params.get("page"))
        limit = ValidationUtils.parse_int(params.get("limit"))
        sort_by = params.get("sortBy")
        return cls(
            page=max(page if page is not None else 1, 1),
            limit=min(max(limit or default_limit, 1), max_limit),
            sort_by=sort_by if sort_by in SORT_FIELDS else "createdAt",
            order="ASC" if params.get("order") == "ASC" else "DESC",
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def total_pages(self, total_count: int) -> int:
        return math.ceil(total_count / self.limit) if total_count else 0


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property management with search and filtering capabilities.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    async def create_property(self, property_data: Dict[str, Any]) -> Property:
        created_property = await self.create(property_data)
        logger.info(f"Created property {created_property.id} for agent {created_property.agent_id}")
        return created_property

    async def search_properties(
        self,
        filters: PropertySearchFilters,
        skip: int = 0,
        limit: int = 12,
        order_by: str = "createdAt",
        order_direction: str = "DESC"
    ) -> Tuple[List[Property], int]:
        """
        Search properties with filtering and pagination.

        Args:
            filters: PropertySearchFilters instance with search criteria
            skip: Number of records to skip for pagination
            limit: Maximum number of records to return
            order_by: One of price, createdAt, bedrooms, area
            order_direction: ``ASC`` or ``DESC``

        Returns:
            Tuple of (properties list, total count)
        """
        try:
            query = select(Property)
            count_query = select(func.count(Property.id))

            conditions = self._build_filter_conditions(filters)
            if conditions:
                query = query.where(and_(*conditions))
                count_query = count_query.where(and_(*conditions))

            count_result = await self.db.execute(count_query)
            total_count = count_result.scalar() or 0

            order_field = SORT_FIELDS.get(order_by, Property.created_at)
            direction = asc if order_direction == "ASC" else desc
            query = query.order_by(direction(order_field), direction(Property.id))

            query = query.offset(skip).limit(limit)

            result = await self.db.execute(query)
            properties = result.scalars().all()

            logger.debug(f"Property search returned {len(properties)} of {total_count} total results")
            return list(properties), total_count
        except Exception as e:
            logger.error(f"Failed to search properties: {e}")
            raise

    def _build_filter_conditions(self, filters: PropertySearchFilters) -> List:
        """
        Build SQLAlchemy filter conditions from search filters.

        Returns:
            List of SQLAlchemy conditions
        """
        conditions = []

        for column, value in (
            (Property.status, filters.status),
            (Property.type, filters.property_type),
            (Property.purpose, filters.purpose),
        ):
            if value == UNMATCHABLE:
                conditions.append(false())
            elif value is not None:
                conditions.append(column == value)

        if filters.location:
            conditions.append(ValidationUtils.ilike_contains(Property.location, filters.location))

        if filters.search:
            conditions.append(ValidationUtils.ilike_contains(Property.location, filters.search))

        if filters.min_price is not None:
            conditions.append(Property.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Property.price <= filters.max_price)

        if filters.bedrooms is not None:
            conditions.append(Property.bedrooms == filters.bedrooms)

        if filters.min_area is not None:
            conditions.append(Property.area >= filters.min_area)
        if filters.max_area is not None:
            conditions.append(Property.area <= filters.max_area)

        if filters.agent_id is not None:
            conditions.append(Property.agent_id == filters.agent_id)

        # An agent name that matches nobody yields an empty id set, hence no rows
        if filters.agent_name:
            matching_agents = select(User.id).where(
                User.role == UserRole.AGENT,
                User.deleted_at.is_(None),
                ValidationUtils.ilike_contains(User.name, filters.agent_name)
            )
            conditions.append(Property.agent_id.in_(matching_agents))

        return conditions

    async def suggest_locations(self, term: str, limit: int = 4) -> List[str]:
        """Distinct locations of available listings containing ``term``."""
        query = (
            select(Property.location).distinct()
            .where(
                Property.status == PropertyStatus.AVAILABLE,
                ValidationUtils.ilike_contains(Property.location, term)
            )
            .order_by(Property.location.asc())
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_status_rows(self, agent_id: int) -> List[Tuple[PropertyStatus, PropertyPurpose]]:
        """(status, purpose) pairs of an agent's listings, for dashboard counts."""
        result = await self.db.execute(
            select(Property.status, Property.purpose).where(Property.agent_id == agent_id)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def count_by_status(self, status: PropertyStatus) -> int:
        result = await self.db.execute(
            select(func.count(Property.id)).where(Property.status == status)
        )
        return result.scalar() or 0

    async def created_timestamps_since(self, since: datetime) -> List[datetime]:
        result = await self.db.execute(select(Property.created_at).where(Property.created_at >= since))
        return list(result.scalars().all())
