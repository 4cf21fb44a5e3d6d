"""
Tests for registration, login, OTP verification, password recovery and
profile management.
"""

import pytest
from fastapi import status
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from estate_api.config import settings
from estate_api.models.user import User, UserRole
from estate_api.repositories.user import UserRepository
from estate_api.utils.auth import create_access_token, verify_token, hash_secret, secrets_match
from tests.conftest import UserFactory, auth_headers, make_image, DEFAULT_PASSWORD


@pytest.fixture
def otp_enabled(monkeypatch):
    monkeypatch.setattr(settings, "otp_verification_enabled", True)


class TestRegistration:
    """Account creation."""

    async def test_register_returns_session(self, client: AsyncClient):
        response = await client.post("/api/register", json={
            "name": "Imran Siddiqui",
            "email": "Imran@Example.com",
            "password": "Secret123",
            "role": "Agent",
            "phone": "+92 321 0000000",
        })

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["user"]["email"] == "imran@example.com"
        assert data["user"]["role"] == "Agent"
        assert "hashed_password" not in data["user"]
        assert verify_token(data["token"]).user_id == data["user"]["id"]

    async def test_register_defaults_to_buyer(self, client: AsyncClient):
        response = await client.post("/api/register", json={
            "name": "Sara",
            "email": "sara.new@example.com",
            "password": "Secret123",
        })

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["user"]["role"] == "Buyer"

    async def test_register_cannot_choose_admin(self, client: AsyncClient):
        response = await client.post("/api/register", json={
            "name": "Mallory",
            "email": "mallory@example.com",
            "password": "Secret123",
            "role": "Admin",
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["message"] == "Role must be one of: Agent, Buyer"

    @pytest.mark.parametrize("password, message", [
        ("Ab1", "Password must be at least 6 characters"),
        ("secret123", "Password must contain at least one uppercase letter"),
        ("SecretPass", "Password must contain at least one number"),
    ])
    async def test_register_password_policy(self, client: AsyncClient, password, message):
        response = await client.post("/api/register", json={
            "name": "Weak",
            "email": "weak@example.com",
            "password": password,
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["message"] == message

    async def test_register_duplicate_email(self, client: AsyncClient, buyer: User):
        response = await client.post("/api/register", json={
            "name": "Copy",
            "email": "SARA@example.com",
            "password": "Secret123",
        })

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error"]["message"] == "Email already registered"

    async def test_register_invalid_email(self, client: AsyncClient):
        response = await client.post("/api/register", json={
            "name": "Nobody",
            "email": "not-an-email",
            "password": "Secret123",
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_register_with_otp_sends_code(self, client: AsyncClient, fake_email, otp_enabled):
        response = await client.post("/api/register", json={
            "name": "Otto",
            "email": "otto@example.com",
            "password": "Secret123",
        })

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"message": "OTP sent to your email", "email": "otto@example.com"}
        assert len(fake_email.last_otp("otto@example.com")) == 6


class TestLogin:
    """Password login and the OTP second step."""

    async def test_login_success(self, client: AsyncClient, buyer: User):
        response = await client.post("/api/login", json={"email": buyer.email, "password": DEFAULT_PASSWORD})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["user"]["id"] == buyer.id
        assert data["token"]

    async def test_login_wrong_password(self, client: AsyncClient, buyer: User):
        response = await client.post("/api/login", json={"email": buyer.email, "password": "Wrong1234"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        error = response.json()["error"]
        assert error["code"] == "INVALID_CREDENTIALS"
        assert error["message"] == "Invalid email or password"

    async def test_login_unknown_email(self, client: AsyncClient):
        response = await client.post("/api/login", json={"email": "ghost@example.com", "password": "Secret123"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_login_with_otp_then_verify(self, client: AsyncClient, buyer: User, fake_email, otp_enabled):
        response = await client.post("/api/login", json={"email": buyer.email, "password": DEFAULT_PASSWORD})
        assert response.status_code == status.HTTP_200_OK
        assert "token" not in response.json()

        otp = fake_email.last_otp(buyer.email)
        response = await client.post("/api/verify-otp", json={"email": buyer.email, "otp": otp})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["user"]["id"] == buyer.id

    async def test_otp_is_single_use(self, client: AsyncClient, buyer: User, fake_email, otp_enabled):
        await client.post("/api/login", json={"email": buyer.email, "password": DEFAULT_PASSWORD})
        otp = fake_email.last_otp(buyer.email)

        first = await client.post("/api/verify-otp", json={"email": buyer.email, "otp": otp})
        second = await client.post("/api/verify-otp", json={"email": buyer.email, "otp": otp})

        assert first.status_code == status.HTTP_200_OK
        assert second.status_code == status.HTTP_401_UNAUTHORIZED
        assert second.json()["error"]["code"] == "INVALID_OTP"

    async def test_wrong_otp(self, client: AsyncClient, buyer: User, fake_email, otp_enabled):
        await client.post("/api/login", json={"email": buyer.email, "password": DEFAULT_PASSWORD})
        otp = fake_email.last_otp(buyer.email)
        wrong = "000000" if otp != "000000" else "111111"

        response = await client.post("/api/verify-otp", json={"email": buyer.email, "otp": wrong})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"]["message"] == "Invalid or expired OTP"

    async def test_expired_otp(self, client: AsyncClient, buyer: User, fake_email, otp_enabled, monkeypatch):
        monkeypatch.setattr(settings, "otp_expiry_seconds", -1)
        await client.post("/api/login", json={"email": buyer.email, "password": DEFAULT_PASSWORD})

        response = await client.post("/api/verify-otp", json={
            "email": buyer.email,
            "otp": fake_email.last_otp(buyer.email),
        })

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_otp_is_stored_hashed(self, client: AsyncClient, db_session: AsyncSession, buyer: User,
                                        fake_email, otp_enabled):
        await client.post("/api/login", json={"email": buyer.email, "password": DEFAULT_PASSWORD})
        otp = fake_email.last_otp(buyer.email)

        stored = await UserRepository(db_session).get_by_id(buyer.id)
        assert stored.otp_code_hash != otp
        assert stored.otp_code_hash == hash_secret(otp)

    async def test_resend_otp_does_not_reveal_accounts(self, client: AsyncClient, buyer: User, fake_email):
        known = await client.post("/api/resend-otp", json={"email": buyer.email})
        unknown = await client.post("/api/resend-otp", json={"email": "ghost@example.com"})

        assert known.status_code == status.HTTP_200_OK
        assert unknown.status_code == status.HTTP_200_OK
        assert [mail["to"] for mail in fake_email.sent] == [buyer.email]


class TestPasswordReset:
    """Forgot password, reset code and reset token."""

    async def test_full_reset_flow(self, client: AsyncClient, buyer: User, fake_email):
        response = await client.post("/api/forgot-password", json={"email": buyer.email})
        assert response.status_code == status.HTTP_200_OK
        assert fake_email.sent[-1]["kind"] == "reset"

        response = await client.post("/api/verify-reset-otp", json={
            "email": buyer.email,
            "otp": fake_email.last_otp(buyer.email),
        })
        assert response.status_code == status.HTTP_200_OK
        reset_token = response.json()["resetToken"]

        response = await client.post("/api/reset-password", json={
            "email": buyer.email,
            "resetToken": reset_token,
            "password": "NewSecret9",
        })
        assert response.status_code == status.HTTP_200_OK

        old_login = await client.post("/api/login", json={"email": buyer.email, "password": DEFAULT_PASSWORD})
        new_login = await client.post("/api/login", json={"email": buyer.email, "password": "NewSecret9"})
        assert old_login.status_code == status.HTTP_401_UNAUTHORIZED
        assert new_login.status_code == status.HTTP_200_OK

    async def test_forgot_password_unknown_email(self, client: AsyncClient):
        response = await client.post("/api/forgot-password", json={"email": "ghost@example.com"})

        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_reset_token_is_single_use(self, client: AsyncClient, buyer: User, fake_email):
        await client.post("/api/forgot-password", json={"email": buyer.email})
        response = await client.post("/api/verify-reset-otp", json={
            "email": buyer.email,
            "otp": fake_email.last_otp(buyer.email),
        })
        body = {"email": buyer.email, "resetToken": response.json()["resetToken"], "password": "NewSecret9"}

        first = await client.post("/api/reset-password", json=body)
        second = await client.post("/api/reset-password", json=body)

        assert first.status_code == status.HTTP_200_OK
        assert second.status_code == status.HTTP_400_BAD_REQUEST
        assert second.json()["error"]["message"] == "Invalid or expired reset session. Please try again."

    async def test_reset_with_wrong_token(self, client: AsyncClient, buyer: User):
        response = await client.post("/api/reset-password", json={
            "email": buyer.email,
            "resetToken": "not-a-token",
            "password": "NewSecret9",
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestAuthentication:
    """Bearer token handling on protected routes."""

    async def test_profile_requires_header(self, client: AsyncClient):
        response = await client.get("/api/profile")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"]["message"] == "Authorization header missing"

    async def test_malformed_header(self, client: AsyncClient):
        response = await client.get("/api/profile", headers={"Authorization": "Token abc"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_invalid_token(self, client: AsyncClient):
        response = await client.get("/api/profile", headers={"Authorization": "Bearer not.a.jwt"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    async def test_expired_token(self, client: AsyncClient, buyer: User):
        from datetime import timedelta

        token = create_access_token(buyer.id, buyer.role, expires_delta=timedelta(seconds=-10))
        response = await client.get("/api/profile", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"]["code"] == "TOKEN_EXPIRED"

    async def test_profile(self, client: AsyncClient, agent: User):
        response = await client.get("/api/profile", headers=auth_headers(agent))

        assert response.status_code == status.HTTP_200_OK
        user = response.json()["user"]
        assert user["id"] == agent.id
        assert user["phone"] == "+92 300 1234567"


class TestProfile:
    """Profile edits, password change, avatar and account deletion."""

    async def test_update_profile(self, client: AsyncClient, buyer: User):
        response = await client.put("/api/profile", headers=auth_headers(buyer), json={
            "name": "Sara M.",
            "email": "Sara.M@example.com",
            "phone": "",
        })

        assert response.status_code == status.HTTP_200_OK
        user = response.json()["user"]
        assert user["name"] == "Sara M."
        assert user["email"] == "sara.m@example.com"
        assert user["phone"] is None

    async def test_update_profile_email_in_use(self, client: AsyncClient, buyer: User, agent: User):
        response = await client.put("/api/profile", headers=auth_headers(buyer), json={
            "name": buyer.name,
            "email": agent.email,
        })

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error"]["message"] == "Email already in use"

    async def test_change_password(self, client: AsyncClient, buyer: User):
        response = await client.put("/api/profile/password", headers=auth_headers(buyer), json={
            "currentPassword": DEFAULT_PASSWORD,
            "newPassword": "Another42",
        })

        assert response.status_code == status.HTTP_200_OK
        login = await client.post("/api/login", json={"email": buyer.email, "password": "Another42"})
        assert login.status_code == status.HTTP_200_OK

    async def test_change_password_wrong_current(self, client: AsyncClient, buyer: User):
        response = await client.put("/api/profile/password", headers=auth_headers(buyer), json={
            "currentPassword": "Wrong1234",
            "newPassword": "Another42",
        })

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"]["message"] == "Current password is incorrect"

    async def test_change_password_policy(self, client: AsyncClient, buyer: User):
        response = await client.put("/api/profile/password", headers=auth_headers(buyer), json={
            "currentPassword": DEFAULT_PASSWORD,
            "newPassword": "short",
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["details"][0]["field"] == "newPassword"

    async def test_upload_avatar(self, client: AsyncClient, buyer: User, fake_storage):
        response = await client.put(
            "/api/profile/avatar",
            headers=auth_headers(buyer),
            files={"avatar": ("me.png", make_image("PNG"), "image/png")},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["user"]["avatar_url"] == f"https://cdn.example.com/avatars/{buyer.id}/avatar.png"
        assert f"avatars/{buyer.id}/avatar.png" in fake_storage.objects

    async def test_upload_avatar_replaces_previous(self, client: AsyncClient, buyer: User, fake_storage):
        for _ in range(2):
            response = await client.put(
                "/api/profile/avatar",
                headers=auth_headers(buyer),
                files={"avatar": ("me.png", make_image("PNG"), "image/png")},
            )
            assert response.status_code == status.HTTP_200_OK

        assert len(fake_storage.objects) == 1

    async def test_upload_avatar_rejects_non_images(self, client: AsyncClient, buyer: User):
        response = await client.put(
            "/api/profile/avatar",
            headers=auth_headers(buyer),
            files={"avatar": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["code"] == "UNSUPPORTED_FILE_TYPE"

    async def test_delete_account(self, client: AsyncClient, db_session: AsyncSession, buyer: User):
        headers = auth_headers(buyer)
        response = await client.request("DELETE", "/api/profile", headers=headers, json={"password": DEFAULT_PASSWORD})
        assert response.status_code == status.HTTP_200_OK

        stored = await UserRepository(db_session).get_by_id(buyer.id)
        assert stored.deleted_at is not None

        profile = await client.get("/api/profile", headers=headers)
        assert profile.status_code == status.HTTP_401_UNAUTHORIZED
        assert profile.json()["error"]["message"] == "User not found"

        login = await client.post("/api/login", json={"email": buyer.email, "password": DEFAULT_PASSWORD})
        assert login.status_code == status.HTTP_401_UNAUTHORIZED

        register = await client.post("/api/register", json={
            "name": "Again",
            "email": buyer.email,
            "password": "Secret123",
        })
        assert register.status_code == status.HTTP_409_CONFLICT

    async def test_delete_account_wrong_password(self, client: AsyncClient, buyer: User):
        response = await client.request(
            "DELETE", "/api/profile", headers=auth_headers(buyer), json={"password": "Wrong1234"}
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"]["message"] == "Incorrect password"


class TestAuthUtilities:
    """Token and secret helpers."""

    def test_token_round_trip(self):
        token = create_access_token(user_id=7, role=UserRole.AGENT)
        payload = verify_token(token)

        assert payload.user_id == 7
        assert payload.role == "Agent"

    def test_secrets_match(self):
        stored = hash_secret("123456")

        assert secrets_match("123456", stored)
        assert not secrets_match("654321", stored)
        assert not secrets_match("123456", None)

    async def test_factory_user_password(self, db_session: AsyncSession):
        user = await UserFactory.create(db_session, email="hash@example.com")

        assert user.hashed_password != DEFAULT_PASSWORD
        assert user.verify_password(DEFAULT_PASSWORD)
        assert not user.verify_password("")
