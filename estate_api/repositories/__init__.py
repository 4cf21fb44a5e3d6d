"""
Repository layer for data access operations.
Each repository wraps one model and owns its queries.
"""

from estate_api.repositories.base import BaseRepository
from estate_api.repositories.property import PropertyRepository, PropertySearchFilters, SearchPage
from estate_api.repositories.user import UserRepository
from estate_api.repositories.image import ImageRepository
from estate_api.repositories.favorite import FavoriteRepository
from estate_api.repositories.testimonial import TestimonialRepository
from estate_api.repositories.visitor import VisitorRepository
from estate_api.repositories.review import ReviewRepository

__all__ = [
    "BaseRepository",
    "PropertyRepository",
    "PropertySearchFilters",
    "SearchPage",
    "UserRepository",
    "ImageRepository",
    "FavoriteRepository",
    "TestimonialRepository",
    "VisitorRepository",
    "ReviewRepository",
]
