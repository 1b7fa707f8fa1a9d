"""Shared parsing utilities for request handling.

Every parser accepts ``None``/empty input and returns ``None`` so partial
updates can tell "not supplied" apart from a real value. Malformed input
raises ``ValueError``; handlers turn that into a 400.
"""

from __future__ import annotations

import re
from datetime import date
from datetime import datetime
from datetime import timezone
from decimal import Decimal
from decimal import InvalidOperation
from enum import Enum
from typing import Any
from typing import Mapping
from typing import Optional
from typing import TypeVar

T = TypeVar("T", bound=Enum)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_int(value: Any) -> Optional[int]:
    """Parse an integer from a string or number."""
    if value is None or value == "":
        return None
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValueError(f"Invalid integer: {value}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"Invalid integer: {value}")
    return int(value)


def parse_decimal(value: Any) -> Optional[Decimal]:
    """Parse a Decimal from a string or number.

    Floats go through ``str`` so ``19.99`` stays ``Decimal("19.99")``.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid decimal: {value}")
    try:
        parsed = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid decimal: {value}") from exc
    if not parsed.is_finite():
        raise ValueError(f"Invalid decimal: {value}")
    return parsed


def parse_bool(value: Any) -> Optional[bool]:
    """Parse a boolean from JSON booleans, 0/1, or common strings."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    lowered = str(value).strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean: {value}")


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 datetime string.

    Accepts a trailing ``Z`` and bare dates. Naive values are taken as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_date(value: Any) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` date, also accepting a full ISO datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if _ISO_DATE.match(text):
        return date.fromisoformat(text)
    parsed = parse_datetime(text)
    return parsed.date() if parsed else None


def parse_iso_date_or_none(value: Any) -> Optional[date]:
    """Return a date only when ``value`` is exactly ``YYYY-MM-DD``.

    Anything else yields ``None`` instead of an error.
    """
    if isinstance(value, str) and _ISO_DATE.match(value.strip()):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def parse_enum(value: Any, enum_type: type[T]) -> Optional[T]:
    """Parse an enum member from its value."""
    if value is None or value == "":
        return None
    try:
        return enum_type(value)
    except ValueError as exc:
        allowed = ", ".join(str(member.value) for member in enum_type)
        raise ValueError(f"Invalid value '{value}': expected one of {allowed}") from exc


def first_param(params: dict[str, list[str]], key: str) -> Optional[str]:
    """Return the first query parameter value for a key."""
    values = params.get(key, [])
    return values[0] if values else None


def collect_query_params(event: Mapping[str, Any]) -> dict[str, list[str]]:
    """Collect single and multi-value query string parameters."""
    params: dict[str, list[str]] = {}
    single = event.get("queryStringParameters") or {}
    multi = event.get("multiValueQueryStringParameters") or {}

    for key, value in single.items():
        if value is None:
            continue
        params.setdefault(key, []).append(value)

    for key, values in multi.items():
        for value in values or []:
            if value is None or value in params.get(key, []):
                continue
            params.setdefault(key, []).append(value)

    return params
