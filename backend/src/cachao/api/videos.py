"""Video and album API handlers.

Routes handled:
    POST   /videos/upload-url
    POST   /videos/confirm
    DELETE /videos
    POST   /videos/multipart/init
    POST   /videos/multipart/complete
    PATCH  /videos/{id}
    GET    /events/{id}/albums        (public)
    POST   /events/{id}/albums

Video files go straight from the browser to S3 through presigned URLs; the
database row records who uploaded what and where it lives.
"""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from cachao.api.auth_context import _get_caller, _require_user_sub
from cachao.api.common import Route, dispatch
from cachao.api.request import _parse_body, _path_id, _require_fields
from cachao.db.engine import get_engine
from cachao.db.models import Album, Video
from cachao.db.repositories import AlbumRepository, EventRepository, VideoRepository
from cachao.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from cachao.services import storage, thumbnails
from cachao.utils import json_response, parse_int, sanitize_string
from cachao.utils.parsers import parse_iso_date_or_none
from cachao.utils.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

DEFAULT_VIDEO_TYPE = "video/mp4"


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Route video and album requests."""
    return dispatch(event, _ROUTES, logger)


def serialize_video(row: Video) -> dict[str, Any]:
    data = row.to_dict()
    data["video_url"] = storage.presign_read(row.video_url)
    data["thumbnail_url"] = storage.presign_read(row.thumbnail_url)
    return data


def _title_from(filename: str) -> str:
    """File name without its extension."""
    base = os.path.basename(filename)
    stem, _ext = os.path.splitext(base)
    return (stem or base or "Untitled")[:255]


def _require_album(session: Session, event_id: int, album_id: int, sub: str) -> Album:
    """Load an event's album and check the caller created it."""
    album = AlbumRepository(session).get_for_event(event_id, album_id)
    if album is None:
        raise NotFoundError("Album", album_id)
    if album.cognito_sub != sub:
        raise AuthorizationError("No permission to upload to this album")
    return album


def _new_video(
    sub: str,
    event_id: int,
    album_id: int,
    key: str,
    title: str,
    mime_type: str,
    file_size: Optional[int],
) -> Video:
    return Video(
        cognito_sub=sub,
        event_id=event_id,
        album_id=album_id,
        title=title,
        video_url=storage.object_url(key),
        s3_key=key,
        mime_type=mime_type,
        file_size=file_size,
    )


def _upload_url(event: Mapping[str, Any]) -> dict[str, Any]:
    """Presign a single PUT upload; signed-in callers also get a video row."""
    body = _parse_body(event)
    _require_fields(body, "filename", "event_id", "album_id")
    filename = str(body["filename"])
    event_id = _path_id(body["event_id"], "event_id")
    album_id = _path_id(body["album_id"], "album_id")
    mime_type = str(body.get("mime_type") or DEFAULT_VIDEO_TYPE)
    file_size = parse_int(body.get("file_size"))

    key = storage.timestamped_key("videos", filename)
    expires_in = storage.upload_expiry(file_size)
    upload_url = storage.presign_upload(key, mime_type, expires_in=expires_in)

    sub, _email = _get_caller(event)
    video_id = None
    if sub:
        with Session(get_engine()) as session:
            _require_album(session, event_id, album_id, sub)
            video = VideoRepository(session).create(
                _new_video(sub, event_id, album_id, key, _title_from(filename), mime_type, file_size)
            )
            session.commit()
            video_id = video.id

    return json_response(
        200,
        {
            "success": True,
            "video_id": video_id,
            "upload_url": upload_url,
            "s3_key": key,
            "s3_url": storage.object_url(key),
            "expires_in": expires_in,
        },
        event=event,
    )


def _confirm_upload(event: Mapping[str, Any]) -> dict[str, Any]:
    """Return the row for an uploaded file, creating it if needed."""
    body = _parse_body(event)
    _require_fields(body, "s3_key")
    key = str(body["s3_key"])

    with Session(get_engine()) as session:
        repo = VideoRepository(session)
        existing = None
        if body.get("video_id"):
            existing = repo.get_by_id(_path_id(body["video_id"], "video_id"))
        if existing is None:
            existing = repo.find_by_s3_key(key)
        if existing is not None:
            if not existing.thumbnail_url:
                thumbnails.request_thumbnail(existing.id, existing.s3_key or key)
            return json_response(
                200,
                {"success": True, "video": serialize_video(existing)},
                event=event,
            )

        sub, _email = _get_caller(event)
        if not sub:
            raise AuthenticationError()
        if not body.get("event_id") or not body.get("album_id"):
            raise ValidationError("album_id and event_id required to create video record")
        event_id = _path_id(body["event_id"], "event_id")
        album_id = _path_id(body["album_id"], "album_id")
        _require_album(session, event_id, album_id, sub)

        video = repo.create(
            _new_video(
                sub,
                event_id,
                album_id,
                key,
                _title_from(key),
                str(body.get("mime_type") or DEFAULT_VIDEO_TYPE),
                parse_int(body.get("file_size")),
            )
        )
        session.commit()
        thumbnails.request_thumbnail(video.id, key)
        payload = serialize_video(video)
    return json_response(200, {"success": True, "video": payload}, event=event)


def _delete_videos(event: Mapping[str, Any]) -> dict[str, Any]:
    """Delete the caller's videos among ``video_ids``; others are skipped."""
    sub = _require_user_sub(event)
    body = _parse_body(event)
    raw_ids = body.get("video_ids")
    if not isinstance(raw_ids, list) or not raw_ids:
        raise ValidationError("video_ids array is required", field="video_ids")
    video_ids = [vid for vid in (parse_int(value) for value in raw_ids) if vid]

    with Session(get_engine()) as session:
        repo = VideoRepository(session)
        owned = repo.find_owned(video_ids, sub)
        if not owned:
            raise AuthorizationError("No permission to delete these videos")
        deleted_ids = [video.id for video in owned]
        locations = [video.s3_key or video.video_url for video in owned]
        repo.delete_ids(deleted_ids)
        session.commit()

    for location in locations:
        storage.delete_object_quietly(location)

    logger.info(f"Deleted {len(deleted_ids)} videos")
    return json_response(
        200,
        {
            "success": True,
            "deleted_count": len(deleted_ids),
            "deleted_ids": deleted_ids,
        },
        event=event,
    )


def _multipart_init(event: Mapping[str, Any]) -> dict[str, Any]:
    sub = _require_user_sub(event)
    body = _parse_body(event)
    _require_fields(body, "filename", "event_id", "album_id", "file_size")
    filename = str(body["filename"])
    event_id = _path_id(body["event_id"], "event_id")
    album_id = _path_id(body["album_id"], "album_id")
    file_size = parse_int(body["file_size"])
    if not file_size or file_size < 1:
        raise ValidationError("file_size must be positive", field="file_size")
    mime_type = str(body.get("mime_type") or DEFAULT_VIDEO_TYPE)

    with Session(get_engine()) as session:
        _require_album(session, event_id, album_id, sub)
        key = storage.timestamped_key("videos", filename)
        upload = storage.start_multipart_upload(key, mime_type, file_size)
        video = VideoRepository(session).create(
            _new_video(sub, event_id, album_id, key, _title_from(filename), mime_type, file_size)
        )
        session.commit()
        video_id = video.id

    logger.info(
        "Multipart upload started",
        extra={"video_id": video_id, "total_parts": upload["total_parts"]},
    )
    return json_response(
        200,
        {
            "success": True,
            "video_id": video_id,
            "s3_key": key,
            "s3_url": storage.object_url(key),
            **upload,
        },
        event=event,
    )


def _multipart_complete(event: Mapping[str, Any]) -> dict[str, Any]:
    body = _parse_body(event)
    _require_fields(body, "upload_id", "s3_key")
    parts = body.get("parts")
    if not isinstance(parts, list) or not parts:
        raise ValidationError("parts array is required", field="parts")
    for part in parts:
        if not isinstance(part, dict) or "PartNumber" not in part or "ETag" not in part:
            raise ValidationError("Each part needs PartNumber and ETag", field="parts")

    key = str(body["s3_key"])
    result = storage.complete_multipart_upload(key, str(body["upload_id"]), parts)
    return json_response(
        200,
        {
            "success": True,
            "s3_key": key,
            "s3_url": result.get("Location") or storage.object_url(key),
            "etag": result.get("ETag"),
        },
        event=event,
    )


def _update_video(event: Mapping[str, Any], video_id: int) -> dict[str, Any]:
    """Move a video to another album or recategorize it."""
    sub = _require_user_sub(event)
    body = _parse_body(event)

    with Session(get_engine()) as session:
        repo = VideoRepository(session)
        video = repo.get_by_id(video_id)
        if video is None:
            raise NotFoundError("Video", video_id)
        if video.cognito_sub != sub:
            raise AuthorizationError()

        changes: dict[str, Any] = {}
        if "album_id" in body:
            album_id = body.get("album_id")
            if album_id:
                album_id = _path_id(album_id, "album_id")
                if video.event_id is not None:
                    album = AlbumRepository(session).get_for_event(video.event_id, album_id)
                    if album is None:
                        raise NotFoundError("Album", album_id)
            changes["album_id"] = album_id or None
        if "category" in body:
            changes["category"] = sanitize_string(body.get("category"), max_length=100)
        if "title" in body:
            changes["title"] = sanitize_string(body.get("title"), max_length=255)

        video = repo.apply_changes(video, changes)
        session.commit()
        payload = serialize_video(video)
    return json_response(200, {"success": True, "video": payload}, event=event)


def _list_albums(event: Mapping[str, Any], event_id: int) -> dict[str, Any]:
    with Session(get_engine()) as session:
        albums = [row.to_dict() for row in AlbumRepository(session).find_by_event(event_id)]
    return json_response(200, {"success": True, "albums": albums}, event=event)


def _create_album(event: Mapping[str, Any], event_id: int) -> dict[str, Any]:
    sub = _require_user_sub(event)
    body = _parse_body(event)
    name = body.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Album name is required", field="name")
    name = sanitize_string(name, max_length=200)
    album_date = parse_iso_date_or_none(body.get("album_date"))

    with Session(get_engine()) as session:
        if not EventRepository(session).exists(event_id):
            raise NotFoundError("Event", event_id)
        repo = AlbumRepository(session)
        existing = repo.find_existing(event_id, name, album_date)
        if existing is not None:
            return json_response(
                200,
                {
                    "success": True,
                    "album": existing.to_dict(),
                    "message": "Album already exists",
                },
                event=event,
            )
        album = repo.create(
            Album(event_id=event_id, name=name, album_date=album_date, cognito_sub=sub)
        )
        session.commit()
        payload = album.to_dict()
    return json_response(201, {"success": True, "album": payload}, event=event)


_ROUTES = (
    Route("POST", "/videos/upload-url", _upload_url),
    Route("POST", "/videos/confirm", _confirm_upload),
    Route("DELETE", "/videos", _delete_videos),
    Route("POST", "/videos/multipart/init", _multipart_init),
    Route("POST", "/videos/multipart/complete", _multipart_complete),
    Route("PATCH", "/videos/{video_id}", _update_video),
    Route("GET", "/events/{event_id}/albums", _list_albums),
    Route("POST", "/events/{event_id}/albums", _create_album),
)
