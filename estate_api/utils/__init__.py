"""
Utility modules for the EstateAI API.
"""

from .auth import (
    create_access_token,
    verify_token,
    extract_token_from_header,
    hash_secret,
    generate_otp,
    generate_reset_token,
    secrets_match,
    TokenPayload
)

from .exceptions import (
    APIException,
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
    ConflictError,
    BadRequestError,
    InternalServerError,
    InvalidCredentialsError,
    TokenExpiredError,
    InvalidTokenError,
    InvalidOTPError,
    InsufficientPermissionsError,
    OwnershipError,
    PropertyNotFoundError,
    UserNotFoundError,
    DuplicateResourceError,
    RateLimitExceededError,
    ServiceNotConfiguredError,
    UpstreamServiceError
)

# Dependencies are imported directly where needed to avoid circular imports

__all__ = [
    # Auth utilities
    "create_access_token",
    "verify_token",
    "extract_token_from_header",
    "hash_secret",
    "generate_otp",
    "generate_reset_token",
    "secrets_match",
    "TokenPayload",

    # Exceptions
    "APIException",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "ConflictError",
    "BadRequestError",
    "InternalServerError",
    "InvalidCredentialsError",
    "TokenExpiredError",
    "InvalidTokenError",
    "InvalidOTPError",
    "InsufficientPermissionsError",
    "OwnershipError",
    "PropertyNotFoundError",
    "UserNotFoundError",
    "DuplicateResourceError",
    "RateLimitExceededError",
    "ServiceNotConfiguredError",
    "UpstreamServiceError",
]
