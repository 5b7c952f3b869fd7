"""Shared validation utilities"""

import re
from typing import Optional

EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
HEX_PATTERN = re.compile(r"^[0-9a-f]+$")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    if not re.match(EMAIL_PATTERN, email):
        raise ValueError("Invalid email format")

    return email


def is_lower_hex(value: str) -> bool:
    """True for a non-empty string of lowercase hex digits"""
    return bool(value) and bool(HEX_PATTERN.match(value))
