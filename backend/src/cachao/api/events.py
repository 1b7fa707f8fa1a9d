"""Event API handlers.

Routes handled:
    GET    /events                     - List events (public)
    POST   /events                     - Create an event owned by the caller
    POST   /events/image-upload-url    - Presign an event cover upload
    GET    /events/{id}                - Get one event (public)
    PUT    /events/{id}                - Update an event (owner)
    DELETE /events/{id}                - Delete an event (owner)
"""

from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy.orm import Session

from cachao.api.auth_context import _require_event_owner, _require_user_sub
from cachao.api.common import Route, dispatch
from cachao.api.request import _parse_body, _query_param, _require_fields
from cachao.db.engine import get_engine
from cachao.db.models import Event
from cachao.db.repositories import EventRepository
from cachao.exceptions import NotFoundError, ValidationError
from cachao.services import storage
from cachao.utils import json_response, parse_datetime, parse_int, sanitize_string
from cachao.utils.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

_UPDATABLE_TEXT = {"name": 200, "description": 10000, "image_url": 500}


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Route event requests."""
    return dispatch(event, _ROUTES, logger)


def serialize_event(row: Event) -> dict[str, Any]:
    """Event dict with a readable cover image URL."""
    data = row.to_dict()
    data["image_url"] = storage.presign_read(row.image_url)
    return data


def _list_events(event: Mapping[str, Any]) -> dict[str, Any]:
    limit = parse_int(_query_param(event, "limit")) or 100
    if limit < 1 or limit > 500:
        raise ValidationError("limit must be between 1 and 500", field="limit")
    with Session(get_engine()) as session:
        rows = EventRepository(session).list_recent(limit)
        events = [serialize_event(row) for row in rows]
    return json_response(200, {"success": True, "events": events}, event=event)


def _get_event(event: Mapping[str, Any], event_id: int) -> dict[str, Any]:
    with Session(get_engine()) as session:
        row = EventRepository(session).get_by_id(event_id)
        if row is None:
            raise NotFoundError("Event", event_id)
        payload = serialize_event(row)
    return json_response(200, {"success": True, "event": payload}, event=event)


def _event_fields(body: Mapping[str, Any]) -> dict[str, Any]:
    """Collect the event columns present in ``body``."""
    fields: dict[str, Any] = {}
    for name, max_length in _UPDATABLE_TEXT.items():
        if name in body:
            fields[name] = sanitize_string(body.get(name), max_length=max_length)
    for name in ("start_date", "end_date"):
        if name in body:
            fields[name] = parse_datetime(body.get(name))
    if "name" in fields and not fields["name"]:
        raise ValidationError("name is required", field="name")
    if "start_date" in fields and fields["start_date"] is None:
        raise ValidationError("start_date is required", field="start_date")
    return fields


def _check_dates(row: Event) -> None:
    if row.end_date is not None and row.start_date is not None:
        if parse_datetime(row.end_date) < parse_datetime(row.start_date):
            raise ValidationError(
                "end_date must not be before start_date",
                field="end_date",
            )


def _create_event(event: Mapping[str, Any]) -> dict[str, Any]:
    sub = _require_user_sub(event)
    body = _parse_body(event)
    _require_fields(body, "name", "start_date")
    fields = _event_fields(body)

    with Session(get_engine()) as session:
        row = Event(cognito_sub=sub, **fields)
        _check_dates(row)
        row = EventRepository(session).create(row)
        session.commit()
        payload = serialize_event(row)

    logger.info("Event created", extra={"event_id": payload["id"]})
    return json_response(201, {"success": True, "event": payload}, event=event)


def _update_event(event: Mapping[str, Any], event_id: int) -> dict[str, Any]:
    sub = _require_user_sub(event)
    body = _parse_body(event)
    fields = _event_fields(body)

    with Session(get_engine()) as session:
        row = _require_event_owner(session, event_id, sub)
        for name, value in fields.items():
            setattr(row, name, value)
        _check_dates(row)
        row = EventRepository(session).update(row)
        session.commit()
        payload = serialize_event(row)

    return json_response(200, {"success": True, "event": payload}, event=event)


def _delete_event(event: Mapping[str, Any], event_id: int) -> dict[str, Any]:
    sub = _require_user_sub(event)
    with Session(get_engine()) as session:
        row = _require_event_owner(session, event_id, sub)
        image_url = row.image_url
        EventRepository(session).delete(row)
        session.commit()

    storage.delete_object_quietly(image_url)
    logger.info("Event deleted", extra={"event_id": event_id})
    return json_response(
        200,
        {"success": True, "message": "Event deleted successfully"},
        event=event,
    )


def _image_upload_url(event: Mapping[str, Any]) -> dict[str, Any]:
    """Presign an upload of an event cover image."""
    sub = _require_user_sub(event)
    body = _parse_body(event, required=False)
    filename = body.get("filename") or body.get("file_name") or "image.jpg"
    content_type = body.get("content_type") or "image/jpeg"
    if not str(content_type).startswith("image/"):
        raise ValidationError("content_type must be an image", field="content_type")

    key = storage.timestamped_key(f"events/images/{sub}", str(filename))
    upload_url = storage.presign_upload(key, str(content_type))
    return json_response(
        200,
        {
            "success": True,
            "upload_url": upload_url,
            "s3_key": key,
            "image_url": storage.object_url(key),
            "expires_in": storage.UPLOAD_URL_EXPIRES,
        },
        event=event,
    )


_ROUTES = (
    Route("POST", "/events/image-upload-url", _image_upload_url),
    Route("GET", "/events", _list_events),
    Route("POST", "/events", _create_event),
    Route("GET", "/events/{event_id}", _get_event),
    Route("PUT", "/events/{event_id}", _update_event),
    Route("DELETE", "/events/{event_id}", _delete_event),
)
