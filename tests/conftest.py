"""
Test configuration and fixtures for the EstateAI API.
Provides a throwaway SQLite database, test data factories and in-process
fakes for storage, email and the language model.
"""

import os
import tempfile

_TEST_DIR = tempfile.mkdtemp(prefix="estateai-tests-")

# Settings are read at import time, so the environment goes first
os.environ["ENVIRONMENT"] = "testing"
os.environ["TEST_DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TEST_DIR, 'test.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_DIR, "uploads")
os.environ["OTP_VERIFICATION_ENABLED"] = "false"
os.environ["VISITOR_TRACKING_ENABLED"] = "true"
os.environ["LOG_REQUESTS"] = "false"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"

import io
import uuid
from decimal import Decimal
from typing import AsyncGenerator, Dict, List, Optional

import pytest
from httpx import AsyncClient, ASGITransport
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession

from estate_api import database
from estate_api.database import Base
from estate_api.main import app
from estate_api.middleware.visitor import wait_for_pending_visits
from estate_api.models.user import User, UserRole
from estate_api.models.property import Property, PropertyType, PropertyPurpose, PropertyStatus
from estate_api.repositories.user import UserRepository
from estate_api.repositories.property import PropertyRepository
from estate_api.services.ai import ModelTurn, get_ai_client
from estate_api.services.email import get_email_sender
from estate_api.services.storage import StorageBackend, StorageError, get_storage
from estate_api.utils.auth import create_access_token
from estate_api.utils.rate_limit import description_rate_limiter, chat_rate_limiter

DEFAULT_PASSWORD = "Password1"


class FakeStorage(StorageBackend):
    """In-memory storage; uploads whose call number is in ``fail_on`` raise."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.removed: List[str] = []
        self.fail_on = set()
        self.calls = 0

    async def upload(self, bucket, path, data, content_type, upsert=False):
        self.calls += 1
        if self.calls in self.fail_on:
            raise StorageError(f"rejected {path}")
        key = f"{bucket}/{path}"
        if key in self.objects and not upsert:
            raise StorageError(f"exists {path}")
        self.objects[key] = data

    def public_url(self, bucket, path):
        return f"https://cdn.example.com/{bucket}/{path}"

    async def remove(self, bucket, paths):
        for path in paths:
            self.removed.append(f"{bucket}/{path}")
            self.objects.pop(f"{bucket}/{path}", None)


class FakeEmailSender:
    """Records the codes that would have been emailed."""

    def __init__(self):
        self.sent = []

    async def send_otp_email(self, to_email, otp, name):
        self.sent.append({"kind": "login", "to": to_email, "otp": otp})

    async def send_reset_otp_email(self, to_email, otp, name):
        self.sent.append({"kind": "reset", "to": to_email, "otp": otp})

    def last_otp(self, to_email: str) -> str:
        return [mail for mail in self.sent if mail["to"] == to_email][-1]["otp"]


class FakeChat:
    def __init__(self, client, history):
        self.client = client
        self.history = history

    async def send_message(self, message):
        self.client.messages.append(message)
        return self.client.next_turn()

    async def send_function_response(self, name, payload):
        self.client.function_responses.append((name, payload))
        return self.client.next_turn()


class FakeAIClient:
    """
    Scripted model: ``turns`` are returned in order, one per model call.
    An exception in ``turns`` is raised instead of returned.
    """

    def __init__(self):
        self.turns: List = []
        self.prompts: List[str] = []
        self.messages: List[str] = []
        self.histories: List = []
        self.function_responses: List = []

    def next_turn(self):
        turn = self.turns.pop(0) if self.turns else ModelTurn(text="Happy to help.")
        if isinstance(turn, Exception):
            raise turn
        return turn

    async def generate_text(self, prompt):
        self.prompts.append(prompt)
        return self.next_turn().text

    def start_chat(self, history):
        self.histories.append(history)
        return FakeChat(self, history)


@pytest.fixture(autouse=True)
async def setup_database():
    """Fresh tables for every test."""
    import estate_api.models  # noqa: F401

    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await wait_for_pending_visits()
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def reset_rate_limiters():
    description_rate_limiter.reset()
    chat_rate_limiter.reset()
    yield
    description_rate_limiter.reset()
    chat_rate_limiter.reset()


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging and inspecting data outside of requests."""
    async with database.AsyncSessionLocal() as session:
        yield session


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def fake_email() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def fake_ai() -> FakeAIClient:
    return FakeAIClient()


@pytest.fixture
async def client(fake_storage, fake_email, fake_ai) -> AsyncGenerator[AsyncClient, None]:
    """Async client against the app with external services replaced."""
    app.dependency_overrides[get_storage] = lambda: fake_storage
    app.dependency_overrides[get_email_sender] = lambda: fake_email
    app.dependency_overrides[get_ai_client] = lambda: fake_ai

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as async_client:
        yield async_client

    await wait_for_pending_visits()
    app.dependency_overrides.clear()


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    async def create(
        db: AsyncSession,
        role: UserRole = UserRole.BUYER,
        name: str = "Test User",
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
        phone: Optional[str] = None
    ) -> User:
        return await UserRepository(db).create_user({
            "name": name,
            "email": email or f"user{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "role": role,
            "phone": phone,
        })


class PropertyFactory:
    """Factory for creating test listings."""

    @staticmethod
    async def create(
        db: AsyncSession,
        agent: User,
        type: PropertyType = PropertyType.HOUSE,
        purpose: PropertyPurpose = PropertyPurpose.SALE,
        price: str = "25000000",
        location: str = "DHA Phase 5, Lahore",
        bedrooms: Optional[int] = 4,
        area: str = "2250",
        description: str = "Well kept family home",
        status: PropertyStatus = PropertyStatus.AVAILABLE
    ) -> Property:
        return await PropertyRepository(db).create_property({
            "agent_id": agent.id,
            "type": type,
            "purpose": purpose,
            "price": Decimal(price),
            "location": location,
            "bedrooms": bedrooms,
            "area": Decimal(area),
            "description": description,
            "status": status,
        })


def auth_headers(user: User) -> Dict[str, str]:
    """Bearer header for a user."""
    return {"Authorization": f"Bearer {create_access_token(user_id=user.id, role=user.role)}"}


def make_image(format: str = "JPEG", size=(64, 48)) -> bytes:
    """Create a small test image in memory."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color="red").save(buffer, format=format)
    return buffer.getvalue()


# Common test fixtures
@pytest.fixture
async def agent(db_session: AsyncSession) -> User:
    return await UserFactory.create(
        db_session,
        role=UserRole.AGENT,
        name="Ayesha Khan",
        email="ayesha@example.com",
        phone="+92 300 1234567"
    )


@pytest.fixture
async def other_agent(db_session: AsyncSession) -> User:
    return await UserFactory.create(db_session, role=UserRole.AGENT, name="Bilal Ahmed", email="bilal@example.com")


@pytest.fixture
async def buyer(db_session: AsyncSession) -> User:
    return await UserFactory.create(db_session, role=UserRole.BUYER, name="Sara Malik", email="sara@example.com")


@pytest.fixture
async def admin(db_session: AsyncSession) -> User:
    return await UserFactory.create(db_session, role=UserRole.ADMIN, name="Site Admin", email="admin@example.com")


@pytest.fixture
async def listing(db_session: AsyncSession, agent: User) -> Property:
    return await PropertyFactory.create(db_session, agent)
