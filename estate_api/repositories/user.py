"""
User repository for account management, lookups and admin reporting.
Soft-deleted users are excluded unless a method says otherwise.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from estate_api.repositories.base import BaseRepository
from estate_api.models.user import User, UserRole
from estate_api.utils.dates import utcnow
from estate_api.utils.validators import ValidationUtils
from typing import Optional, List, Dict, Any
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for user management with authentication and authorization support.
    Handles secure user operations and role-based access control.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email normalization and password hashing.

        Args:
            user_data: Must include email, password and name; role defaults to Buyer

        Returns:
            Created user instance
        """
        try:
            data = dict(user_data)
            password = data.pop("password")
            create_data = {
                **data,
                "email": User.validate_email_format(data["email"]),
                "hashed_password": User.hash_password(password),
                "role": data.get("role") or UserRole.BUYER,
            }

            created_user = await self.create(create_data)
            logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
            return created_user
        except Exception as e:
            logger.error(f"Failed to create user: {e}")
            raise

    async def get_active_by_id(self, user_id: int) -> Optional[User]:
        """Get a user that has not been soft-deleted."""
        user = await self.get_by_id(user_id)
        if user is None or user.is_deleted:
            return None
        return user

    async def get_by_email(self, email: str, include_deleted: bool = False) -> Optional[User]:
        """
        Get user by email address.

        Args:
            email: Email address to search for
            include_deleted: Whether soft-deleted accounts match

        Returns:
            User instance if found, None otherwise
        """
        try:
            normalized_email = email.lower().strip()

            query = select(User).where(User.email == normalized_email)
            if not include_deleted:
                query = query.where(User.deleted_at.is_(None))

            result = await self.db.execute(query)
            user = result.scalar_one_or_none()

            if user:
                logger.debug(f"Retrieved user by email: {email}")
            else:
                logger.debug(f"User with email {email} not found")

            return user
        except Exception as e:
            logger.error(f"Failed to get user by email {email}: {e}")
            raise

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Returns:
            User instance if authentication successful, None otherwise
        """
        user = await self.get_by_email(email)

        if not user:
            logger.debug(f"Authentication failed: user {email} not found")
            return None

        if not user.verify_password(password):
            logger.debug(f"Authentication failed: invalid password for {email}")
            return None

        return user

    async def email_taken_by_other(self, email: str, user_id: int) -> bool:
        query = select(func.count(User.id)).where(
            User.email == email.lower().strip(),
            User.id != user_id
        )
        result = await self.db.execute(query)
        return (result.scalar() or 0) > 0

    async def soft_delete(self, user: User) -> User:
        return await self.update(user, {"deleted_at": utcnow()})

    async def search_users(
        self,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        include_deleted: bool = False
    ) -> List[User]:
        """
        List users for the admin panel, newest first.

        Args:
            search: Case-insensitive match on name or email
            role: Exact role filter
            include_deleted: Whether to include soft-deleted accounts
        """
        try:
            query = select(User)
            if not include_deleted:
                query = query.where(User.deleted_at.is_(None))
            if role is not None:
                query = query.where(User.role == role)
            if search:
                query = query.where(or_(
                    ValidationUtils.ilike_contains(User.name, search),
                    ValidationUtils.ilike_contains(User.email, search)
                ))

            query = query.order_by(User.created_at.desc(), User.id.desc())
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to search users: {e}")
            raise

    async def find_agents_by_name(self, name: str, limit: Optional[int] = None) -> List[User]:
        """Active agents whose name contains ``name`` (case-insensitive)."""
        query = (
            select(User)
            .where(
                User.role == UserRole.AGENT,
                User.deleted_at.is_(None),
                ValidationUtils.ilike_contains(User.name, name)
            )
            .order_by(User.name.asc())
        )
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_agent(self, agent_id: int) -> Optional[User]:
        user = await self.get_active_by_id(agent_id)
        if user is None or user.role != UserRole.AGENT:
            return None
        return user

    async def count_active(self) -> int:
        result = await self.db.execute(
            select(func.count(User.id)).where(User.deleted_at.is_(None))
        )
        return result.scalar() or 0

    async def count_created_between(self, start: datetime, end: Optional[datetime] = None) -> int:
        query = select(func.count(User.id)).where(User.created_at >= start)
        if end is not None:
            query = query.where(User.created_at < end)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def count_deleted_between(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> int:
        query = select(func.count(User.id)).where(User.deleted_at.is_not(None))
        if start is not None:
            query = query.where(User.deleted_at >= start)
        if end is not None:
            query = query.where(User.deleted_at < end)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def created_timestamps_since(self, since: datetime) -> List[datetime]:
        result = await self.db.execute(select(User.created_at).where(User.created_at >= since))
        return list(result.scalars().all())

    async def deleted_timestamps_since(self, since: datetime) -> List[datetime]:
        result = await self.db.execute(select(User.deleted_at).where(User.deleted_at >= since))
        return list(result.scalars().all())
