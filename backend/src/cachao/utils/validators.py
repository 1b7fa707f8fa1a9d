"""Input validation utilities."""

from __future__ import annotations

import re
from typing import Optional

import phonenumbers
import pycountry
from phonenumbers.phonenumberutil import NumberParseException

NICKNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]{3,30}$")
RESERVED_NICKNAMES = frozenset(
    {"admin", "api", "www", "support", "help", "cachao", "system"}
)
_EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def validate_email(value: str) -> str:
    """Validate an email address and return it trimmed.

    Raises:
        ValueError: If the email address is invalid.
    """
    cleaned = (value or "").strip()
    if not _EMAIL_PATTERN.match(cleaned):
        raise ValueError("Invalid email address")
    return cleaned


def normalize_email(value: Optional[str]) -> Optional[str]:
    """Lower-case and trim an email for comparisons."""
    if not value:
        return None
    return value.strip().lower() or None


def validate_range(
    value: int,
    min_val: int,
    max_val: int,
    field_name: str,
) -> int:
    """Validate a numeric value is within an inclusive range."""
    if not min_val <= value <= max_val:
        raise ValueError(f"{field_name} must be between {min_val} and {max_val}")
    return value


def sanitize_string(
    value: Optional[str],
    max_length: int = 1000,
    strip: bool = True,
) -> Optional[str]:
    """Trim a string, enforce a maximum length, and map blank to None.

    Raises:
        ValueError: If the string exceeds max_length.
    """
    if value is None:
        return None
    value = str(value)
    if strip:
        value = value.strip()
    if len(value) > max_length:
        raise ValueError(f"Value exceeds maximum length of {max_length}")
    return value if value else None


def normalize_nickname(value: Optional[str]) -> str:
    """Lower-case and trim a nickname."""
    return (value or "").strip().lower()


def nickname_problem(nickname: str) -> Optional[str]:
    """Return why a normalized nickname cannot be used, or None if it can."""
    if not NICKNAME_PATTERN.match(nickname):
        return "Invalid format"
    if nickname in RESERVED_NICKNAMES:
        return "Reserved"
    return None


def sanitize_filename(file_name: str, default: str = "file") -> str:
    """Replace characters outside ``[A-Za-z0-9._-]`` with underscores."""
    trimmed = (file_name or "").strip() or default
    return _UNSAFE_FILENAME_CHARS.sub("_", trimmed)


def normalize_phone(value: Optional[str], region: Optional[str] = None) -> Optional[str]:
    """Normalize a phone number to E.164.

    Numbers without a ``+`` prefix need ``region`` (ISO 3166-1 alpha-2).

    Raises:
        ValueError: If the number cannot be parsed or is not valid.
    """
    cleaned = sanitize_string(value, max_length=50)
    if cleaned is None:
        return None
    try:
        parsed = phonenumbers.parse(cleaned, region.upper() if region else None)
    except NumberParseException as exc:
        raise ValueError("Invalid phone number") from exc
    if not phonenumbers.is_valid_number(parsed):
        raise ValueError("Invalid phone number")
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def country_code(value: Optional[str]) -> Optional[str]:
    """Resolve a country name or code to ISO 3166-1 alpha-2, or None."""
    cleaned = sanitize_string(value, max_length=100)
    if cleaned is None:
        return None
    try:
        return pycountry.countries.lookup(cleaned).alpha_2
    except LookupError:
        return None
