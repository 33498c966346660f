"""Shared validation utilities"""

import re
from typing import Optional

REGISTRATION_NO_PATTERN = re.compile(r"^[A-Z0-9]{10}$")
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_registration_no(value: Optional[str]) -> str:
    """
    Validate and normalize a doctor registration number (the provider id).

    Registration numbers are exactly 10 letters or digits and are stored upper-case.

    Raises:
        ValueError: If the value is missing or malformed
    """
    if not value:
        raise ValueError("Registration number is required")

    normalized = value.strip().upper()
    if not REGISTRATION_NO_PATTERN.match(normalized):
        raise ValueError("Registration number must be exactly 10 letters or digits")

    return normalized


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a requester phone number.

    Separators (spaces, dashes, dots, brackets) are dropped so the same number
    typed two ways deduplicates to one booking key. A leading ``+`` is kept.

    Args:
        phone: Phone number string in various formats

    Returns:
        Normalized phone number

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    phone = phone.strip()
    prefix = "+" if phone.startswith("+") else ""
    digits = re.sub(r"\D", "", phone)

    if len(digits) < 10 or len(digits) > 15:
        raise ValueError("Phone number must be between 10-15 digits")

    return f"{prefix}{digits}"


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

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_time_of_day(value: str) -> str:
    """Validate a HH:MM wall-clock time"""
    if not value or not TIME_PATTERN.match(value.strip()):
        raise ValueError("Time must be in HH:MM 24-hour format")
    return value.strip()
