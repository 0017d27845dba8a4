import re
import uuid
from typing import Optional

from email_validator import validate_email, EmailNotValidError


class ValidationUtils:
    """
    Validation helpers shared by request schemas and services

    Features:
    - Email normalization for guest checkout
    - Hex color, UUID and session id checks
    - Price bounds
    """

    PATTERNS = {
        'hex_color': re.compile(r'^#[0-9A-Fa-f]{6}$'),  # #RRGGBB
        'session_id': re.compile(r'^[A-Za-z0-9_-]{8,128}$'),  # Guest session ids
    }

    MIN_PRICE_CENTS = 1
    MAX_PRICE_CENTS = 99999999  # $999,999.99

    @classmethod
    def normalize_email(cls, email: str) -> str:
        """Normalize email address for consistent storage"""
        try:
            validated = validate_email(email, check_deliverability=False)
            return validated.normalized.lower()
        except EmailNotValidError:
            raise ValueError(f"Invalid email address: {email}")

    @classmethod
    def validate_hex_color(cls, color_hex: Optional[str]) -> bool:
        return bool(color_hex) and cls.PATTERNS['hex_color'].match(color_hex) is not None

    @classmethod
    def validate_session_id(cls, session_id: Optional[str]) -> bool:
        return bool(session_id) and cls.PATTERNS['session_id'].match(session_id) is not None

    @classmethod
    def validate_price_cents(cls, price_cents: int) -> bool:
        """Validate price in cents"""
        return cls.MIN_PRICE_CENTS <= price_cents <= cls.MAX_PRICE_CENTS

    @classmethod
    def validate_uuid(cls, uuid_string: str) -> bool:
        """Validate UUID format"""
        try:
            uuid.UUID(uuid_string)
            return True
        except (ValueError, TypeError, AttributeError):
            return False
