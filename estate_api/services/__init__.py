"""
Service layer for business logic implementation.
Contains services for accounts, listings, uploads, the AI assistant and error handling.
"""

from .auth import AuthService
from .property import PropertyService
from .image import ImageService
from .favorite import FavoriteService
from .testimonial import TestimonialService
from .agent import AgentService
from .admin import AdminService
from .ai import AIService
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "PropertyService",
    "ImageService",
    "FavoriteService",
    "TestimonialService",
    "AgentService",
    "AdminService",
    "AIService",
    "ErrorHandlerService",
]
