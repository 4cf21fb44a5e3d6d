"""
Authentication service for registration, login, OTP verification, password
recovery and profile management.
Handles JWT issuance, one-time codes and the account rules around them.
"""

from typing import Optional, Dict, Any
from datetime import timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from estate_api.config import settings
from estate_api.repositories.user import UserRepository
from estate_api.models.user import User, UserRole
from estate_api.services.email import EmailSender
from estate_api.utils.auth import (
    create_access_token,
    verify_token,
    generate_otp,
    generate_reset_token,
    hash_secret,
    secrets_match,
)
from estate_api.utils.dates import utcnow, ensure_aware
from estate_api.utils.validators import ValidationUtils
from estate_api.utils.exceptions import (
    InvalidCredentialsError,
    InvalidOTPError,
    UnauthorizedError,
    ForbiddenError,
    ValidationError,
    BadRequestError,
    DuplicateResourceError,
    UserNotFoundError,
)
import logging

logger = logging.getLogger(__name__)

SELF_REGISTER_ROLES = (UserRole.AGENT, UserRole.BUYER)


class AuthService:
    """
    Authentication service for managing accounts and credentials.
    Email delivery is injected so callers (and tests) choose the transport.
    """

    def __init__(self, db_session: AsyncSession, email_sender: Optional[EmailSender] = None):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.email_sender = email_sender

    def issue_session(self, user: User) -> Dict[str, Any]:
        """Token plus public user payload returned by every successful sign-in."""
        token = create_access_token(user_id=user.id, role=user.role)
        return {"token": token, "user": user.to_dict()}

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        role: Optional[str] = None,
        phone: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Create an account.

        Returns:
            ``{message, email}`` when OTP verification is on, else ``{token, user}``

        Raises:
            ValidationError: If the password or role is unacceptable
            DuplicateResourceError: If the email is already registered
        """
        ValidationUtils.validate_password(password)
        user_role = self._parse_register_role(role)

        # Soft-deleted accounts still own their email address
        if await self.user_repo.get_by_email(email, include_deleted=True):
            raise DuplicateResourceError("Email already registered")

        try:
            user = await self.user_repo.create_user({
                "name": name,
                "email": email,
                "password": password,
                "role": user_role,
                "phone": phone,
            })
        except ValueError as e:
            raise ValidationError(str(e))

        logger.info(f"Registered {user.role.value} account {user.email} (ID: {user.id})")

        if settings.otp_verification_enabled:
            await self._send_login_otp(user)
            return {"message": "OTP sent to your email", "email": user.email}

        return self.issue_session(user)

    def _parse_register_role(self, role: Optional[str]) -> UserRole:
        if not role:
            return UserRole.BUYER
        try:
            user_role = UserRole(role)
        except ValueError:
            raise ValidationError("Role must be one of: Agent, Buyer")
        if user_role not in SELF_REGISTER_ROLES:
            raise ValidationError("Role must be one of: Agent, Buyer")
        return user_role

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Check credentials and either start OTP verification or sign in directly.

        Raises:
            InvalidCredentialsError: If the email or password is wrong
        """
        user = await self.user_repo.authenticate_user(email, password)
        if not user:
            logger.warning(f"Failed authentication attempt for email: {email}")
            raise InvalidCredentialsError()

        if settings.otp_verification_enabled:
            await self._send_login_otp(user)
            return {"message": "OTP sent to your email", "email": user.email}

        logger.info(f"User signed in: {user.email}")
        return self.issue_session(user)

    async def _store_otp(self, user: User) -> str:
        otp = generate_otp()
        await self.user_repo.update(user, {
            "otp_code_hash": hash_secret(otp),
            "otp_expiry": utcnow() + timedelta(seconds=settings.otp_expiry_seconds),
        })
        return otp

    async def _send_login_otp(self, user: User) -> None:
        otp = await self._store_otp(user)
        await self.email_sender.send_otp_email(user.email, otp, user.name)

    def _otp_is_valid(self, user: User, otp: str) -> bool:
        expiry = ensure_aware(user.otp_expiry)
        if not expiry or expiry < utcnow():
            return False
        return secrets_match(otp, user.otp_code_hash)

    async def verify_otp(self, email: str, otp: str) -> Dict[str, Any]:
        """
        Exchange a valid login code for a session. The code is single use.

        Raises:
            InvalidOTPError: If the code is wrong, expired or the account is unknown
        """
        user = await self.user_repo.get_by_email(email)
        if not user or not self._otp_is_valid(user, otp):
            raise InvalidOTPError()

        await self.user_repo.update(user, {"otp_code_hash": None, "otp_expiry": None})
        logger.info(f"OTP verified for {user.email}")
        return self.issue_session(user)

    async def resend_otp(self, email: str) -> Dict[str, str]:
        """Send a fresh code. The response never reveals whether the account exists."""
        user = await self.user_repo.get_by_email(email)
        if not user:
            return {"message": "If the account exists, a new code has been sent"}

        await self._send_login_otp(user)
        return {"message": "A new verification code has been sent"}

    async def forgot_password(self, email: str) -> Dict[str, str]:
        user = await self.user_repo.get_by_email(email)
        if not user:
            raise UserNotFoundError()

        otp = await self._store_otp(user)
        await self.email_sender.send_reset_otp_email(user.email, otp, user.name)
        return {"message": "OTP sent to your email", "email": user.email}

    async def verify_reset_otp(self, email: str, otp: str) -> Dict[str, str]:
        """
        Trade a reset code for a short-lived reset token.

        Returns:
            ``{message, reset_token}``; only the token's hash is stored
        """
        user = await self.user_repo.get_by_email(email)
        if not user or not self._otp_is_valid(user, otp):
            raise InvalidOTPError()

        reset_token = generate_reset_token()
        await self.user_repo.update(user, {
            "otp_code_hash": None,
            "otp_expiry": None,
            "reset_token_hash": hash_secret(reset_token),
            "reset_token_expiry": utcnow() + timedelta(minutes=settings.reset_token_expiry_minutes),
        })
        return {"message": "OTP verified", "reset_token": reset_token}

    async def reset_password(self, email: str, reset_token: str, password: str) -> Dict[str, str]:
        """
        Set a new password with a reset token.

        Raises:
            ValidationError: If the new password fails the policy
            BadRequestError: If the token is wrong or expired
        """
        ValidationUtils.validate_password(password)

        user = await self.user_repo.get_by_email(email)
        expiry = ensure_aware(user.reset_token_expiry) if user else None
        if (
            not user
            or not secrets_match(reset_token, user.reset_token_hash)
            or not expiry
            or expiry < utcnow()
        ):
            raise BadRequestError("Invalid or expired reset session. Please try again.")

        await self.user_repo.update(user, {
            "hashed_password": User.hash_password(password),
            "reset_token_hash": None,
            "reset_token_expiry": None,
        })
        logger.info(f"Password reset for {user.email}")
        return {"message": "Password reset successfully"}

    async def get_current_user(self, token: str) -> User:
        """
        Resolve the user behind an access token.

        Raises:
            TokenExpiredError, InvalidTokenError: If the token does not verify
            UnauthorizedError: If the user no longer exists or was deleted
        """
        payload = verify_token(token)
        user = await self.user_repo.get_active_by_id(payload.user_id)
        if not user:
            raise UnauthorizedError("User not found")
        return user

    async def update_profile(self, user: User, name: str, email: str, phone: Optional[str]) -> User:
        if email != user.email and await self.user_repo.email_taken_by_other(email, user.id):
            raise DuplicateResourceError("Email already in use")

        updated = await self.user_repo.update(user, {
            "name": name,
            "email": email,
            "phone": phone or None,
        })
        logger.info(f"Updated profile of user {user.id}")
        return updated

    async def change_password(self, user: User, current_password: str, new_password: str) -> Dict[str, str]:
        ValidationUtils.validate_password(new_password, field_name="newPassword")

        if not user.verify_password(current_password):
            raise ForbiddenError("Current password is incorrect")

        await self.user_repo.update(user, {"hashed_password": User.hash_password(new_password)})
        logger.info(f"User {user.id} changed password")
        return {"message": "Password changed successfully"}

    async def delete_account(self, user: User, password: str) -> Dict[str, str]:
        """Soft-delete the caller's account after re-checking the password."""
        if not user.verify_password(password):
            raise ForbiddenError("Incorrect password")

        await self.user_repo.soft_delete(user)
        logger.info(f"User {user.id} deleted their account")
        return {"message": "Account deleted"}
