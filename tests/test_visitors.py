"""
Tests for visitor tracking.
"""

from datetime import timedelta

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from estate_api.middleware.visitor import VisitorMiddleware, resolve_user_id, wait_for_pending_visits
from estate_api.models.user import User, UserRole
from estate_api.repositories.visitor import VisitorRepository
from estate_api.utils.auth import create_access_token
from estate_api.utils.dates import days_ago
from tests.conftest import auth_headers


class TestResolveUserId:
    """User attribution from the Authorization header."""

    def test_valid_token(self):
        token = create_access_token(user_id=42, role=UserRole.BUYER)

        assert resolve_user_id(f"Bearer {token}") == 42

    def test_missing_or_bad_header(self):
        assert resolve_user_id(None) is None
        assert resolve_user_id("Basic abc") is None
        assert resolve_user_id("Bearer not.a.token") is None

    def test_expired_token(self):
        token = create_access_token(user_id=42, role=UserRole.AGENT, expires_delta=timedelta(seconds=-5))

        assert resolve_user_id(f"Bearer {token}") is None


class TestVisitorMiddleware:
    """Rows written per request."""

    async def test_every_request_is_recorded(self, client, db_session: AsyncSession, buyer: User):
        await client.get("/api/properties")
        await client.get("/api/does-not-exist")
        await client.get("/api/profile", headers=auth_headers(buyer))
        await wait_for_pending_visits()

        visitors, total = await VisitorRepository(db_session).list_since(days_ago(1), 0, 10)

        assert total == 3
        assert {visitor.path for visitor in visitors} == {"/api/properties", "/api/does-not-exist", "/api/profile"}
        assert [visitor.user_id for visitor in visitors if visitor.path == "/api/profile"] == [buyer.id]

    async def test_unknown_user_id_does_not_break_request(self, client, db_session: AsyncSession):
        token = create_access_token(user_id=99999, role=UserRole.BUYER)
        response = await client.get("/api/properties", headers={"Authorization": f"Bearer {token}"})
        await wait_for_pending_visits()

        visitors, total = await VisitorRepository(db_session).list_since(days_ago(1), 0, 10)

        assert response.status_code == 200
        # foreign key rejects the row
        assert total == 0

    def test_disabled_middleware_passes_through(self):
        test_app = FastAPI()
        test_app.add_middleware(VisitorMiddleware, enabled=False)

        @test_app.get("/ping")
        async def ping():
            return {"message": "pong"}

        response = TestClient(test_app).get("/ping")

        assert response.status_code == 200
