"""
Authentication utilities for JWT tokens and one-time secrets.
Provides token generation/validation, OTP generation and SHA-256 hashing
of secrets that are stored server-side.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, TYPE_CHECKING
from jose import JWTError, ExpiredSignatureError, jwt
from estate_api.config import settings
from estate_api.utils.exceptions import InvalidTokenError, TokenExpiredError
import hashlib
import secrets

if TYPE_CHECKING:
    from estate_api.models.user import UserRole


class TokenPayload:
    """JWT token payload structure."""

    def __init__(self, user_id: int, role: Optional[str], exp: datetime):
        self.user_id = user_id
        self.role = role
        self.exp = exp

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPayload":
        """Create TokenPayload from dictionary."""
        return cls(
            user_id=int(data["sub"]),
            role=data.get("role"),
            exp=datetime.fromtimestamp(data["exp"], tz=timezone.utc)
        )


def create_access_token(
    user_id: int,
    role: "UserRole",
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create JWT access token with user claims.

    Args:
        user_id: User's ID
        role: User's role
        expires_delta: Optional custom expiration time (default 7 days)

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

    to_encode = {
        "sub": str(user_id),
        "role": role.value,
        "exp": expire,
        "iat": now,
        "type": "access"
    }

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def verify_token(token: str) -> TokenPayload:
    """
    Verify and decode JWT token.

    Raises:
        TokenExpiredError: If the token's ``exp`` is in the past
        InvalidTokenError: If the signature or payload is invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError:
        raise InvalidTokenError()

    if payload.get("type") != "access" or not payload.get("sub"):
        raise InvalidTokenError()

    try:
        return TokenPayload.from_dict(payload)
    except (KeyError, TypeError, ValueError):
        raise InvalidTokenError()


def extract_token_from_header(authorization: str) -> str:
    """
    Extract JWT token from Authorization header.

    Raises:
        ValueError: If header format is not ``Bearer <token>``
    """
    parts = authorization.split()
    if len(parts) != 2 or parts[0] != "Bearer":
        raise ValueError("Authorization header must be 'Bearer <token>'")
    return parts[1]


def hash_secret(value: str) -> str:
    """SHA-256 hex digest used for stored OTPs and reset tokens."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def generate_otp() -> str:
    """Six-digit numeric one-time password."""
    return f"{secrets.randbelow(900000) + 100000}"


def generate_reset_token() -> str:
    return secrets.token_hex(32)


def secrets_match(candidate: str, stored_hash: Optional[str]) -> bool:
    if not candidate or not stored_hash:
        return False
    return secrets.compare_digest(hash_secret(candidate), stored_hash)
