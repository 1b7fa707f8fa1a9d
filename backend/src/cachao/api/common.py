"""Routing and error handling shared by the API Lambda modules.

Each module declares a table of ``Route`` entries and hands every
invocation to ``dispatch``, which normalizes the path, answers CORS
preflights, checks the Content-Type and maps errors to responses through
``_safe_handler``.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Mapping, Optional, Sequence

from sqlalchemy.exc import IntegrityError

from cachao.api.auth_context import _get_user_sub
from cachao.api.request import _normalize_path, _path_id
from cachao.exceptions import AppError, ValidationError
from cachao.utils.logging import (
    ContextLogger,
    clear_request_context,
    log_lambda_event,
    log_response,
    set_request_context,
)
from cachao.utils.responses import (
    error_response,
    json_response,
    preflight_response,
    validate_content_type,
)

_PLACEHOLDER = re.compile(r"\{([a-z_]+)\}")

Handler = Callable[..., dict[str, Any]]


@dataclass(frozen=True)
class Route:
    """One ``METHOD /path/{param}`` entry in a module's routing table."""

    method: str
    template: str
    handler: Handler

    def match(self, method: str, path: str) -> Optional[dict[str, str]]:
        if method != self.method:
            return None
        found = _compile(self.template).fullmatch(path)
        return found.groupdict() if found else None


@lru_cache(maxsize=None)
def _compile(template: str) -> re.Pattern[str]:
    """Turn ``/a/{name}/b`` into a regex with one named group per placeholder."""
    pieces = []
    position = 0
    for found in _PLACEHOLDER.finditer(template):
        pieces.append(re.escape(template[position:found.start()]))
        pieces.append(f"(?P<{found.group(1)}>[^/]+)")
        position = found.end()
    pieces.append(re.escape(template[position:]))
    return re.compile("".join(pieces))


def _convert_params(params: Mapping[str, str]) -> dict[str, Any]:
    """Parse ``*_id`` path parameters as integers."""
    return {
        name: _path_id(value, name) if name.endswith("_id") else value
        for name, value in params.items()
    }


def _safe_handler(
    handler: Callable[[], dict[str, Any]],
    event: Mapping[str, Any],
    logger: ContextLogger,
) -> dict[str, Any]:
    """Execute *handler* and turn exceptions into API responses."""
    try:
        return handler()
    except ValidationError as exc:
        logger.warning(f"Validation error: {exc.message}")
        return json_response(exc.status_code, exc.to_dict(), event=event)
    except AppError as exc:
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__}: {exc.message}")
        return json_response(exc.status_code, exc.to_dict(), event=event)
    except IntegrityError as exc:
        logger.warning(f"Integrity error: {exc.orig}")
        return error_response(409, "Resource conflicts with an existing record", event=event)
    except ValueError as exc:
        logger.warning(f"Value error: {exc}")
        return error_response(400, str(exc), event=event)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.exception("Unexpected error in handler")
        return error_response(500, "Internal server error", str(exc), event=event)


def dispatch(
    event: Mapping[str, Any],
    routes: Sequence[Route],
    logger: ContextLogger,
) -> dict[str, Any]:
    """Route an API Gateway proxy event to the matching handler."""
    started = time.perf_counter()
    request_id = (event.get("requestContext") or {}).get("requestId", "")
    set_request_context(req_id=request_id, sub=_get_user_sub(event))
    try:
        response = _dispatch(event, routes, logger)
        log_response(
            logger,
            response.get("statusCode", 500),
            (time.perf_counter() - started) * 1000,
        )
        return response
    finally:
        clear_request_context()


def _dispatch(
    event: Mapping[str, Any],
    routes: Sequence[Route],
    logger: ContextLogger,
) -> dict[str, Any]:
    method = str(event.get("httpMethod") or "").upper()
    path = _normalize_path(str(event.get("path") or ""))
    log_lambda_event(logger, event)

    if method == "OPTIONS":
        return preflight_response(event)

    try:
        validate_content_type(event)
    except ValidationError as exc:
        logger.warning(f"Content-Type validation failed: {exc.message}")
        return json_response(exc.status_code, exc.to_dict(), event=event)

    for route in routes:
        params = route.match(method, path)
        if params is not None:
            logger.info(f"{method} {route.template}")
            return _safe_handler(
                lambda: route.handler(event, **_convert_params(params)),
                event,
                logger,
            )

    return error_response(404, f"Route not found: {method} {path}", event=event)
