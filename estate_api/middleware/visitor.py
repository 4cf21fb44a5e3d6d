"""
Visitor tracking middleware.
Records one row per request in a background task so the response is never
delayed; tracking failures are logged at debug level and dropped.
"""

from typing import Callable, Optional, Set
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import asyncio
import logging

from estate_api import database
from estate_api.config import settings
from estate_api.middleware.validation import get_client_ip
from estate_api.repositories.visitor import VisitorRepository
from estate_api.utils.auth import extract_token_from_header, verify_token
from estate_api.utils.exceptions import APIException

logger = logging.getLogger(__name__)

# Polling the visitor log must not add to it
UNTRACKED_ROUTES = {("GET", f"{settings.api_prefix}/admin/visitors")}

_pending_visits: Set[asyncio.Task] = set()


def resolve_user_id(authorization: Optional[str]) -> Optional[int]:
    """User id from a bearer token, or None when absent or invalid."""
    if not authorization:
        return None
    try:
        return verify_token(extract_token_from_header(authorization)).user_id
    except (ValueError, APIException):
        return None


async def record_visit(visit: dict) -> None:
    try:
        async with database.AsyncSessionLocal() as session:
            await VisitorRepository(session).record(visit)
    except Exception as e:
        logger.debug(f"Visitor tracking failed for {visit.get('path')}: {e}")


async def wait_for_pending_visits() -> None:
    """Wait until every scheduled visit has been written (or has failed)."""
    while _pending_visits:
        await asyncio.gather(*list(_pending_visits), return_exceptions=True)


class VisitorMiddleware(BaseHTTPMiddleware):
    """Schedules a visitor row for every tracked request."""

    def __init__(self, app: ASGIApp, enabled: bool = True):
        super().__init__(app)
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if self.enabled and (request.method, request.url.path) not in UNTRACKED_ROUTES:
            self._schedule(request)
        return await call_next(request)

    def _schedule(self, request: Request) -> None:
        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"

        visit = {
            "ip": get_client_ip(request)[:100],
            "path": path[:2000],
            "method": request.method,
            "user_agent": (request.headers.get("user-agent") or "")[:1000] or None,
            "referrer": (request.headers.get("referer") or "")[:2000] or None,
            "user_id": resolve_user_id(request.headers.get("authorization")),
        }

        task = asyncio.create_task(record_visit(visit))
        _pending_visits.add(task)
        task.add_done_callback(_pending_visits.discard)
