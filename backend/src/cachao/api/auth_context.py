"""Caller identity and ownership checks for API handlers."""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from cachao.auth.authorizer_helpers import extract_token
from cachao.auth.jwt_validator import JWTValidationError, decode_and_verify_token
from cachao.db.models import Event
from cachao.db.repositories import EventRepository
from cachao.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from cachao.utils.logging import get_logger

logger = get_logger(__name__)


def _get_authorizer_context(event: Mapping[str, Any]) -> dict[str, Any]:
    """Extract authorizer context from the event.

    Supports both:
    - Lambda authorizers (context fields directly in authorizer)
    - Cognito User Pool authorizers (claims nested under authorizer.claims)
    """
    authorizer = (event.get("requestContext") or {}).get("authorizer") or {}

    if "groups" in authorizer or "userSub" in authorizer:
        return {
            "groups": authorizer.get("groups", ""),
            "sub": authorizer.get("userSub", ""),
            "email": authorizer.get("email", ""),
        }

    claims = authorizer.get("claims") or {}
    return {
        "groups": claims.get("cognito:groups", ""),
        "sub": claims.get("sub", ""),
        "email": claims.get("email", ""),
    }


def _group_list(groups: Any) -> list[str]:
    if isinstance(groups, list):
        return [str(group) for group in groups]
    return [group.strip() for group in str(groups or "").split(",") if group.strip()]


def _is_admin(event: Mapping[str, Any]) -> bool:
    """Return True when request belongs to an admin user."""
    ctx = _get_authorizer_context(event)
    admin_group = os.getenv("ADMIN_GROUP", "admin")
    return admin_group in _group_list(ctx.get("groups"))


def _get_user_sub(event: Mapping[str, Any]) -> Optional[str]:
    """Extract the user's Cognito sub (subject) from authorizer context."""
    ctx = _get_authorizer_context(event)
    return ctx.get("sub") or None


def _get_user_email(event: Mapping[str, Any]) -> Optional[str]:
    """Extract the user's email from authorizer context."""
    ctx = _get_authorizer_context(event)
    return ctx.get("email") or None


def _get_caller(event: Mapping[str, Any]) -> tuple[Optional[str], Optional[str]]:
    """Return ``(sub, email)`` for routes where signing in is optional.

    Authorizer claims win; otherwise a bearer token is verified. A missing
    or invalid token means an anonymous caller.
    """
    sub = _get_user_sub(event)
    if sub:
        return sub, _get_user_email(event)

    token = extract_token(event.get("headers") or {})
    if not token:
        return None, None
    try:
        claims = decode_and_verify_token(token)
    except JWTValidationError as exc:
        logger.info(f"Ignoring bearer token: {exc.reason}")
        return None, None
    return claims.sub or None, claims.email or None


def _require_user_sub(event: Mapping[str, Any]) -> str:
    """Return the caller's subject or raise a 401."""
    sub, _email = _get_caller(event)
    if not sub:
        raise AuthenticationError()
    return sub


def _require_admin(event: Mapping[str, Any]) -> str:
    """Return the caller's subject when it belongs to the admin group."""
    sub = _get_user_sub(event)
    if not sub:
        raise AuthenticationError()
    if not _is_admin(event):
        logger.warning("Non-admin caller on admin route")
        raise AuthorizationError("Forbidden")
    return sub


def _require_event_owner(
    session: Session,
    event_id: int,
    sub: Optional[str],
) -> Event:
    """Load an event and check that ``sub`` owns it.

    Raises:
        AuthenticationError: If there is no caller.
        NotFoundError: If the event does not exist.
        AuthorizationError: If the caller is not the owner.
    """
    if not sub:
        raise AuthenticationError()
    event = EventRepository(session).get_by_id(event_id)
    if event is None:
        raise NotFoundError("Event", event_id)
    if event.cognito_sub != sub:
        raise AuthorizationError()
    return event
