"""Shared response utilities for Lambda handlers."""

from __future__ import annotations

import json
import os
from dataclasses import asdict
from dataclasses import is_dataclass
from datetime import date
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from typing import Mapping
from typing import Optional

from pydantic import BaseModel

from cachao.exceptions import ValidationError


def validate_content_type(
    event: Mapping[str, Any],
    required_methods: tuple[str, ...] = ("POST", "PUT", "PATCH"),
) -> None:
    """Require ``application/json`` on requests that carry a body.

    Requests without a body are let through so bodiless POSTs (for example
    presign requests with defaults) keep working.

    Raises:
        ValidationError: If Content-Type is present and not JSON, or
            missing while a body is sent.
    """
    method = event.get("httpMethod", "")
    if method not in required_methods:
        return

    headers = event.get("headers") or {}
    content_type = None
    for key, value in headers.items():
        if key.lower() == "content-type":
            content_type = str(value).lower().strip()
            break

    if not content_type:
        if event.get("body"):
            raise ValidationError(
                "Content-Type header is required for requests with a body",
                field="Content-Type",
            )
        return

    if not content_type.startswith("application/json"):
        raise ValidationError(
            "Content-Type must be application/json",
            field="Content-Type",
        )


def get_security_headers() -> dict[str, str]:
    """Headers added to every response."""
    return {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Cache-Control": "no-store, no-cache, must-revalidate",
        "Pragma": "no-cache",
    }


_DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "https://cachao.io",
    "https://www.cachao.io",
]


def get_cors_headers(
    event: Optional[Mapping[str, Any]] = None,
) -> dict[str, str]:
    """Return CORS headers echoing the request origin when it is allowed.

    ``CORS_ALLOWED_ORIGINS`` is a comma-separated list; ``*`` allows any
    origin.
    """
    allowed_origins_env = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if allowed_origins_env:
        allowed_origins = [
            origin.strip()
            for origin in allowed_origins_env.split(",")
            if origin.strip()
        ]
    else:
        allowed_origins = _DEFAULT_CORS_ORIGINS

    request_origin = _request_origin(event)

    if "*" in allowed_origins:
        allow_origin = "*"
    elif request_origin and request_origin in allowed_origins:
        allow_origin = request_origin
    elif allowed_origins:
        allow_origin = allowed_origins[0]
    else:
        allow_origin = "*"

    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Headers": (
            "Content-Type,Authorization,X-Amz-Date,X-Api-Key,"
            "X-Amz-Security-Token,Stripe-Signature"
        ),
        "Access-Control-Allow-Methods": "GET,POST,PUT,PATCH,DELETE,OPTIONS",
        "Access-Control-Max-Age": "86400",
    }


def _request_origin(event: Optional[Mapping[str, Any]]) -> Optional[str]:
    if not event:
        return None
    headers = event.get("headers") or {}
    return headers.get("origin") or headers.get("Origin")


def json_response(
    status_code: int,
    body: Any,
    headers: Optional[dict[str, str]] = None,
    event: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    """Create a JSON API Gateway response.

    Args:
        status_code: HTTP status code.
        body: Response body (dict, list, Pydantic model, or dataclass).
        headers: Optional additional headers.
        event: Optional Lambda event for CORS origin detection.
    """
    response_headers = {"Content-Type": "application/json"}
    response_headers.update(get_security_headers())
    response_headers.update(get_cors_headers(event))
    if headers:
        response_headers.update(headers)

    return {
        "statusCode": status_code,
        "headers": response_headers,
        "body": json.dumps(_serialize_body(body), default=_json_default),
    }


def _serialize_body(body: Any) -> Any:
    if isinstance(body, BaseModel):
        return body.model_dump(mode="json")
    if is_dataclass(body) and not isinstance(body, type):
        return asdict(body)
    return body


def _json_default(value: Any) -> Any:
    """Encode values ``json`` cannot handle natively.

    Decimals become floats so prices stay numeric for the frontend.
    """
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return str(value)


def error_response(
    status_code: int,
    message: str,
    detail: Optional[str] = None,
    event: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    """Create an error response."""
    body: dict[str, Any] = {"error": message}
    if detail:
        body["detail"] = detail
    return json_response(status_code, body, event=event)


def preflight_response(event: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
    """Answer a CORS preflight request."""
    return json_response(200, {"message": "CORS preflight"}, event=event)
