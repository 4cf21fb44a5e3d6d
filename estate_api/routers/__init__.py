"""
API route handlers for the EstateAI API.
Provides organized routing for different API endpoints.
"""

from .auth import router as auth_router
from .properties import router as properties_router
from .images import router as images_router
from .favorites import router as favorites_router
from .testimonials import router as testimonials_router
from .agents import router as agents_router
from .admin import router as admin_router
from .ai import router as ai_router

__all__ = [
    "auth_router",
    "properties_router",
    "images_router",
    "favorites_router",
    "testimonials_router",
    "agents_router",
    "admin_router",
    "ai_router",
]
