"""Request parsing helpers shared by the API modules."""

from __future__ import annotations

import base64
import json
import re
from typing import Any, Mapping, Optional

from cachao.exceptions import CursorError, ValidationError
from cachao.utils.parsers import collect_query_params, first_param

_STAGE_PREFIX = re.compile(r"^/Prod(?=/|$)")


def _parse_body(
    event: Mapping[str, Any],
    required: bool = True,
) -> dict[str, Any]:
    """Parse the JSON request body.

    Args:
        event: API Gateway proxy event.
        required: When False an empty body yields ``{}``.

    Raises:
        ValidationError: If the body is missing, not JSON or not an object.
    """
    raw = event.get("body") or ""
    if raw and event.get("isBase64Encoded"):
        raw = base64.b64decode(raw).decode("utf-8")
    if not raw:
        if required:
            raise ValidationError("Request body is required")
        return {}
    try:
        body = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError("Invalid JSON in request body") from exc
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def _raw_body(event: Mapping[str, Any]) -> str:
    """Return the undecoded body text, e.g. for signature checks."""
    raw = event.get("body") or ""
    if raw and event.get("isBase64Encoded"):
        return base64.b64decode(raw).decode("utf-8")
    return raw


def _normalize_path(path: str) -> str:
    """Drop the ``/Prod`` stage, a ``/v{n}`` version and trailing slashes."""
    path = _STAGE_PREFIX.sub("", path or "")
    parts = _strip_version_prefix([segment for segment in path.split("/") if segment])
    return "/" + "/".join(parts)


def _strip_version_prefix(parts: list[str]) -> list[str]:
    """Drop an optional version prefix from path segments."""
    if parts and _is_version_segment(parts[0]):
        return parts[1:]
    return parts


def _is_version_segment(segment: str) -> bool:
    """Return True if the path segment matches v{number}."""
    return segment.startswith("v") and segment[1:].isdigit()


def _query_param(event: Mapping[str, Any], name: str) -> Optional[str]:
    """Return a query parameter value."""
    params = collect_query_params(event)
    return first_param(params, name)


def _header(event: Mapping[str, Any], name: str) -> Optional[str]:
    """Return a request header case-insensitively."""
    headers = event.get("headers") or {}
    for key, value in headers.items():
        if key.lower() == name.lower():
            return value
    return None


def _path_id(value: Any, field: str = "id") -> int:
    """Parse a positive integer id from a path segment or body field."""
    try:
        parsed = int(str(value))
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid {field}", field=field) from exc
    if parsed < 1:
        raise ValidationError(f"Invalid {field}", field=field)
    return parsed


def _require_fields(body: Mapping[str, Any], *names: str) -> None:
    """Raise for the first field that is missing or blank."""
    for name in names:
        value = body.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{name} is required", field=name)


def _parse_cursor(value: Optional[str]) -> Optional[int]:
    """Parse an opaque list cursor into the last seen id."""
    if value is None or value == "":
        return None
    try:
        payload = _decode_cursor(value)
        return int(payload["id"])
    except (ValueError, KeyError, TypeError) as exc:
        raise CursorError(str(exc)) from exc


def _encode_cursor(value: Any) -> str:
    """Encode a list cursor."""
    payload = json.dumps({"id": str(value)}).encode("utf-8")
    encoded = base64.urlsafe_b64encode(payload).decode("utf-8")
    return encoded.rstrip("=")


def _decode_cursor(cursor: str) -> dict[str, Any]:
    """Decode a list cursor."""
    padding = "=" * (-len(cursor) % 4)
    raw = base64.urlsafe_b64decode(cursor + padding)
    return json.loads(raw)
