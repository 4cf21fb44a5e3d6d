"""
FastAPI dependency injection utilities for authentication and services.
Provides reusable dependencies for route protection and service construction.
"""

from typing import Optional
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession
from estate_api.database import get_db
from estate_api.models.user import User, UserRole
from estate_api.services.admin import AdminService
from estate_api.services.agent import AgentService
from estate_api.services.ai import AIService, GeminiClient, get_ai_client
from estate_api.services.auth import AuthService
from estate_api.services.email import EmailSender, get_email_sender
from estate_api.services.favorite import FavoriteService
from estate_api.services.image import ImageService
from estate_api.services.property import PropertyService
from estate_api.services.storage import StorageBackend, get_storage
from estate_api.services.testimonial import TestimonialService
from estate_api.utils.auth import extract_token_from_header
from estate_api.utils.exceptions import UnauthorizedError, InsufficientPermissionsError


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    email_sender: EmailSender = Depends(get_email_sender)
) -> AuthService:
    return AuthService(db, email_sender)


async def get_property_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage)
) -> PropertyService:
    return PropertyService(db, storage)


async def get_image_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage)
) -> ImageService:
    return ImageService(db, storage)


async def get_favorite_service(db: AsyncSession = Depends(get_db)) -> FavoriteService:
    return FavoriteService(db)


async def get_testimonial_service(db: AsyncSession = Depends(get_db)) -> TestimonialService:
    return TestimonialService(db)


async def get_agent_service(db: AsyncSession = Depends(get_db)) -> AgentService:
    return AgentService(db)


async def get_admin_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage)
) -> AdminService:
    return AdminService(db, storage)


async def get_ai_service(
    db: AsyncSession = Depends(get_db),
    client: GeminiClient = Depends(get_ai_client)
) -> AIService:
    return AIService(db, client)


async def get_current_user(
    authorization: Optional[str] = Header(None),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from the bearer token.

    Args:
        authorization: Raw ``Authorization`` header
        auth_service: Authentication service

    Returns:
        Current User object

    Raises:
        UnauthorizedError: If the header is missing or malformed, or the user is gone
        TokenExpiredError: If token is expired
        InvalidTokenError: If the signature or payload is invalid
    """
    if not authorization:
        raise UnauthorizedError("Authorization header missing")

    try:
        token = extract_token_from_header(authorization)
    except ValueError as e:
        raise UnauthorizedError(str(e))

    return await auth_service.get_current_user(token)


def require_roles(*roles: UserRole):
    """
    Create a dependency that requires one of the given roles.

    Args:
        roles: Allowed user roles

    Returns:
        Dependency function resolving to the current user
    """
    allowed = [role.value for role in roles]

    async def role_dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise InsufficientPermissionsError(allowed)
        return current_user

    return role_dependency


require_agent = require_roles(UserRole.AGENT)
require_buyer = require_roles(UserRole.BUYER)
require_admin = require_roles(UserRole.ADMIN)
