"""
Database models for the EstateAI API.
Importing this package registers every table on ``Base.metadata``.
"""

from estate_api.models.user import User, UserRole
from estate_api.models.property import Property, PropertyType, PropertyPurpose, PropertyStatus
from estate_api.models.image import PropertyImage
from estate_api.models.ai_analysis import AiAnalysis
from estate_api.models.favorite import Favorite
from estate_api.models.testimonial import Testimonial
from estate_api.models.visitor import Visitor
from estate_api.models.agent_review import AgentReview

__all__ = [
    "User",
    "UserRole",
    "Property",
    "PropertyType",
    "PropertyPurpose",
    "PropertyStatus",
    "PropertyImage",
    "AiAnalysis",
    "Favorite",
    "Testimonial",
    "Visitor",
    "AgentReview",
]
