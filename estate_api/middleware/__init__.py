"""
Middleware package for the EstateAI API.
Provides request validation and visitor tracking.
"""

from .validation import ValidationMiddleware, get_client_ip
from .visitor import VisitorMiddleware, wait_for_pending_visits

__all__ = [
    "ValidationMiddleware",
    "VisitorMiddleware",
    "get_client_ip",
    "wait_for_pending_visits",
]
