"""Signed-in user's own profile and dashboard lists.

Routes handled:
    GET   /user/profile
    PATCH /user/profile
    POST  /user/profile-photo-upload-url
    GET   /user/events
    GET   /user/tickets
    GET   /user/videos
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from cachao.api.auth_context import _get_caller
from cachao.api.common import Route, dispatch
from cachao.api.events import serialize_event
from cachao.api.request import _parse_body, _require_fields
from cachao.api.videos import serialize_video
from cachao.db.engine import get_engine
from cachao.db.models import User
from cachao.db.repositories import (
    EventRepository,
    TicketOrderRepository,
    UserRepository,
    VideoRepository,
)
from cachao.exceptions import AuthenticationError, ValidationError
from cachao.services import storage
from cachao.utils import json_response, parse_datetime, parse_int, sanitize_string
from cachao.utils.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_PROFILE_TEXT = {
    "name": 200,
    "photo_url": 1000,
    "cover_photo_url": 1000,
    "bio": 5000,
    "location": 200,
}


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Route user profile requests."""
    return dispatch(event, _ROUTES, logger)


def _caller(event: Mapping[str, Any]) -> tuple[str, Optional[str]]:
    sub, email = _get_caller(event)
    if not sub:
        raise AuthenticationError()
    return sub, email


def _default_name(email: Optional[str]) -> Optional[str]:
    return email.split("@", 1)[0] if email else None


def serialize_profile(user: User) -> dict[str, Any]:
    data = user.to_dict()
    data["photo_url"] = storage.presign_read(user.photo_url)
    data["cover_photo_url"] = storage.presign_read(user.cover_photo_url)
    return data


def _load_or_create(session: Session, sub: str, email: Optional[str]) -> User:
    """Return the caller's row, creating it with a default name on first use."""
    repo = UserRepository(session)
    user = repo.get_by_id(sub)
    if user is None:
        logger.info("Creating user profile on first access")
        user = repo.create(User(cognito_sub=sub, email=email, name=_default_name(email)))
    return user


def _get_profile(event: Mapping[str, Any]) -> dict[str, Any]:
    sub, email = _caller(event)
    with Session(get_engine()) as session:
        user = _load_or_create(session, sub, email)
        session.commit()
        profile = serialize_profile(user)
    return json_response(200, {"success": True, "profile": profile}, event=event)


def _update_profile(event: Mapping[str, Any]) -> dict[str, Any]:
    sub, email = _caller(event)
    body = _parse_body(event)
    changes = {
        name: sanitize_string(body.get(name), max_length=max_length)
        for name, max_length in _PROFILE_TEXT.items()
        if name in body
    }
    if "dance_styles" in body:
        styles = body.get("dance_styles")
        if styles is not None and not isinstance(styles, list):
            raise ValidationError("dance_styles must be a list", field="dance_styles")
        changes["dance_styles"] = styles

    with Session(get_engine()) as session:
        user = _load_or_create(session, sub, email)
        user = UserRepository(session).apply_changes(user, changes)
        session.commit()
        profile = serialize_profile(user)
    return json_response(200, {"success": True, "profile": profile}, event=event)


def _photo_upload_url(event: Mapping[str, Any]) -> dict[str, Any]:
    sub, _email = _caller(event)
    body = _parse_body(event)
    _require_fields(body, "filename", "file_size")
    if not parse_int(body.get("file_size")):
        raise ValidationError("file_size must be positive", field="file_size")
    content_type = str(body.get("mime_type") or "image/jpeg")

    key = storage.timestamped_key(f"users/{sub}/photos", str(body["filename"]))
    return json_response(
        200,
        {
            "success": True,
            "upload_url": storage.presign_upload(key, content_type),
            "s3_key": key,
            "s3_url": storage.object_url(key),
            "expires_in": storage.UPLOAD_URL_EXPIRES,
        },
        event=event,
    )


def _start_key(item: Mapping[str, Any]) -> datetime:
    return parse_datetime(item.get("start_date")) or _EPOCH


def _my_events(event: Mapping[str, Any]) -> dict[str, Any]:
    """Owned events plus events where the caller is listed as staff."""
    sub, email = _caller(event)
    with Session(get_engine()) as session:
        repo = EventRepository(session)
        merged: dict[int, dict[str, Any]] = {}
        for row in repo.find_by_owner(sub):
            merged[row.id] = {**serialize_event(row), "user_role": "owner"}
        if email:
            for row, staff in repo.find_by_staff_email(email, exclude_owner=sub):
                if row.id not in merged:
                    merged[row.id] = {**serialize_event(row), "user_role": staff.role}

    events = sorted(merged.values(), key=_start_key, reverse=True)
    return json_response(
        200,
        {"success": True, "count": len(events), "events": events},
        event=event,
    )


def _my_tickets(event: Mapping[str, Any]) -> dict[str, Any]:
    sub, email = _caller(event)
    with Session(get_engine()) as session:
        orders = list(TicketOrderRepository(session).find_for_buyer(sub, email))
    for order in orders:
        order["ticket_image_url"] = storage.presign_read(order.get("ticket_image_url"))
    return json_response(
        200,
        {"success": True, "count": len(orders), "orders": orders},
        event=event,
    )


def _my_videos(event: Mapping[str, Any]) -> dict[str, Any]:
    sub, _email = _caller(event)
    with Session(get_engine()) as session:
        videos = [
            {**serialize_video(video), "event_name": event_name, "album_name": album_name}
            for video, event_name, album_name in VideoRepository(session).find_by_owner(sub)
        ]
    return json_response(
        200,
        {"success": True, "count": len(videos), "videos": videos},
        event=event,
    )


_ROUTES = (
    Route("GET", "/user/profile", _get_profile),
    Route("PATCH", "/user/profile", _update_profile),
    Route("POST", "/user/profile-photo-upload-url", _photo_upload_url),
    Route("GET", "/user/events", _my_events),
    Route("GET", "/user/tickets", _my_tickets),
    Route("GET", "/user/videos", _my_videos),
)
