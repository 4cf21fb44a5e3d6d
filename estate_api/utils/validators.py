"""
Validation and sanitizing utilities for the EstateAI API.
Query-string values are parsed leniently (garbage falls back to a default);
request bodies are validated strictly and raise ``ValidationError``.
"""

import re
from typing import Any, List, Optional
from decimal import Decimal, InvalidOperation

from estate_api.utils.exceptions import ValidationError


class ValidationUtils:
    """
    Utility class for common validation operations.
    Provides reusable validation methods for various data types.
    """

    UPPERCASE_PATTERN = re.compile(r"[A-Z]")
    DIGIT_PATTERN = re.compile(r"[0-9]")
    # Range of the INTEGER columns ids and counts are compared against
    INT_MIN = -2**31
    INT_MAX = 2**31 - 1

    @staticmethod
    def password_errors(password: Optional[str]) -> List[str]:
        """
        Check a password against the account policy.

        Returns:
            List of unmet rules, empty when the password is acceptable
        """
        errors = []
        if not password or len(password) < 6:
            errors.append("Password must be at least 6 characters")
        if not password or not ValidationUtils.UPPERCASE_PATTERN.search(password):
            errors.append("Password must contain at least one uppercase letter")
        if not password or not ValidationUtils.DIGIT_PATTERN.search(password):
            errors.append("Password must contain at least one number")
        return errors

    @staticmethod
    def validate_password(password: Optional[str], field_name: str = "password") -> str:
        errors = ValidationUtils.password_errors(password)
        if errors:
            raise ValidationError(
                errors[0],
                field_errors=[{"field": field_name, "message": message} for message in errors]
            )
        return password

    @staticmethod
    def require(value: Any, field_name: str) -> Any:
        """Reject None and blank strings with ``<field> is required``."""
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{field_name} is required")
        return value.strip() if isinstance(value, str) else value

    @staticmethod
    def validate_rating(value: Any, field_name: str = "rating") -> int:
        try:
            rating = int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field_name} must be an integer between 1 and 5")
        if rating < 1 or rating > 5 or str(value).strip() not in (str(rating), f"{rating}.0"):
            raise ValidationError(f"{field_name} must be an integer between 1 and 5")
        return rating

    @staticmethod
    def parse_decimal(value: Any) -> Optional[Decimal]:
        """Lenient numeric parse: empty or non-numeric input yields None."""
        if value is None:
            return None
        text = str(value).strip()
        if not text:
            return None
        try:
            number = Decimal(text)
        except (InvalidOperation, ValueError):
            return None
        if not number.is_finite():
            return None
        return number

    @staticmethod
    def parse_int(value: Any) -> Optional[int]:
        """Lenient integer parse: accepts a leading integer (``"3"``), else None."""
        if value is None:
            return None
        match = re.match(r"^\s*([+-]?\d+)", str(value))
        if not match:
            return None
        number = int(match.group(1))
        if not ValidationUtils.INT_MIN <= number <= ValidationUtils.INT_MAX:
            return None
        return number

    @staticmethod
    def parse_positive_int(value: Any, default: int = 1, maximum: int = 1000) -> int:
        """Parse a positive integer, falling back to ``default`` and capping at ``maximum``."""
        number = ValidationUtils.parse_int(value)
        if number is None or number < 1:
            return default
        return min(number, maximum)

    @staticmethod
    def sanitize_search(value: Any, max_length: int = 100) -> str:
        if not isinstance(value, str):
            return ""
        return value.strip()[:max_length]

    @staticmethod
    def ilike_contains(column, term: str):
        """Case-insensitive substring match; ``%`` and ``_`` in ``term`` match literally."""
        escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        return column.ilike(f"%{escaped}%", escape="\\")

    @staticmethod
    def is_valid_id(value: Any) -> bool:
        text = str(value).strip() if value is not None else ""
        return text.isdigit() and 0 < int(text) <= ValidationUtils.INT_MAX

    @staticmethod
    def parse_id_list(raw: Optional[str]) -> List[int]:
        """Parse a comma separated id list, dropping anything non-numeric."""
        if not raw:
            return []
        ids = []
        for part in raw.split(","):
            number = ValidationUtils.parse_int(part)
            if number is not None and number > 0:
                ids.append(number)
        return ids
