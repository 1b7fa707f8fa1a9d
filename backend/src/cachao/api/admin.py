"""Administrator API handlers.

Routes handled (caller must be in the admin group):
    POST   /admin/reset-password
    POST   /admin/mark-email-verified
    GET    /admin/ticket-orders?limit=&cursor=
    POST   /admin/users
    DELETE /admin/delete-all-videos
"""

from __future__ import annotations

from typing import Any, Mapping

from botocore.exceptions import ClientError
from sqlalchemy.orm import Session

from cachao.api.auth_context import _require_admin
from cachao.api.common import Route, dispatch
from cachao.api.request import (
    _encode_cursor,
    _parse_body,
    _parse_cursor,
    _query_param,
    _require_fields,
)
from cachao.db.engine import get_engine
from cachao.db.repositories import TicketOrderRepository, VideoRepository
from cachao.services import identity, storage
from cachao.utils import json_response, parse_int, sanitize_string, validate_email, validate_range
from cachao.utils.logging import configure_logging, get_logger, mask_email

configure_logging()
logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Route admin requests."""
    return dispatch(event, _ROUTES, logger)


def _email(event: Mapping[str, Any]) -> str:
    body = _parse_body(event)
    _require_fields(body, "email")
    return validate_email(str(body["email"]))


def _reset_password(event: Mapping[str, Any]) -> dict[str, Any]:
    _require_admin(event)
    email = _email(event)
    try:
        temporary = identity.admin_reset_password(email)
    except ClientError as exc:
        raise identity.map_cognito_error(exc) from exc
    logger.info("Admin reset password", extra={"email": mask_email(email)})
    return json_response(
        200,
        {
            "success": True,
            "message": "Password has been reset.",
            "temporary_password": temporary,
            "email": email,
        },
        event=event,
    )


def _mark_email_verified(event: Mapping[str, Any]) -> dict[str, Any]:
    _require_admin(event)
    email = _email(event)
    try:
        identity.mark_email_verified(email)
    except ClientError as exc:
        raise identity.map_cognito_error(exc) from exc
    return json_response(
        200,
        {"success": True, "message": f"Email verified successfully for {email}"},
        event=event,
    )


def _list_ticket_orders(event: Mapping[str, Any]) -> dict[str, Any]:
    _require_admin(event)
    limit = parse_int(_query_param(event, "limit")) or DEFAULT_PAGE_SIZE
    validate_range(limit, 1, MAX_PAGE_SIZE, "limit")
    cursor = _parse_cursor(_query_param(event, "cursor"))

    with Session(get_engine()) as session:
        orders = TicketOrderRepository(session).list_with_details(limit=limit, cursor=cursor)

    next_cursor = _encode_cursor(orders[-1]["id"]) if len(orders) == limit else None
    return json_response(
        200,
        {"success": True, "orders": orders, "next_cursor": next_cursor},
        event=event,
    )


def _create_user(event: Mapping[str, Any]) -> dict[str, Any]:
    """Provision a user through the create-user Lambda."""
    _require_admin(event)
    body = _parse_body(event)
    _require_fields(body, "email", "name")
    email = validate_email(str(body["email"]))
    name = sanitize_string(body.get("name"), max_length=200) or email.split("@", 1)[0]
    identity.invoke_create_user(email, name)
    return json_response(
        202,
        {"success": True, "message": "User creation started", "email": email},
        event=event,
    )


def _delete_all_videos(event: Mapping[str, Any]) -> dict[str, Any]:
    _require_admin(event)
    with Session(get_engine()) as session:
        repo = VideoRepository(session)
        keys = repo.all_s3_keys()
        deleted = repo.delete_all()
        session.commit()
        remaining = repo.count()

    for key in keys:
        storage.delete_object_quietly(key)

    logger.warning(f"Admin deleted all videos ({deleted})")
    return json_response(
        200,
        {
            "success": True,
            "message": "All videos deleted",
            "deleted_count": deleted,
            "remaining_videos": remaining,
        },
        event=event,
    )


_ROUTES = (
    Route("POST", "/admin/reset-password", _reset_password),
    Route("POST", "/admin/mark-email-verified", _mark_email_verified),
    Route("GET", "/admin/ticket-orders", _list_ticket_orders),
    Route("POST", "/admin/users", _create_user),
    Route("DELETE", "/admin/delete-all-videos", _delete_all_videos),
)
