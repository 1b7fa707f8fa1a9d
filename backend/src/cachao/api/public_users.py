"""Public user profiles and nickname management.

Routes handled:
    GET   /users/check-nickname/{nickname}
    GET   /users/{nickname}
    GET   /users/{nickname}/videos
    PATCH /user/nickname
"""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import unquote

from sqlalchemy.orm import Session

from cachao.api.auth_context import _get_caller
from cachao.api.common import Route, dispatch
from cachao.api.request import _parse_body
from cachao.api.schemas import PublicUserSchema, PublicVideoSchema
from cachao.db.engine import get_engine
from cachao.db.models import User
from cachao.db.repositories import UserRepository, VideoRepository
from cachao.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from cachao.services import storage
from cachao.utils import json_response
from cachao.utils.logging import configure_logging, get_logger
from cachao.utils.validators import nickname_problem, normalize_nickname

configure_logging()
logger = get_logger(__name__)

PUBLIC_VIDEO_LIMIT = 50


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Route public user requests."""
    return dispatch(event, _ROUTES, logger)


def _require_user(session: Session, nickname: str) -> User:
    user = UserRepository(session).find_by_nickname(normalize_nickname(unquote(nickname)))
    if user is None:
        raise NotFoundError("User", nickname)
    return user


def _check_nickname(event: Mapping[str, Any], nickname: str) -> dict[str, Any]:
    candidate = normalize_nickname(unquote(nickname))
    problem = nickname_problem(candidate)
    if problem:
        return json_response(
            200,
            {"success": True, "available": False, "reason": problem},
            event=event,
        )
    with Session(get_engine()) as session:
        taken = UserRepository(session).find_by_nickname(candidate) is not None
    return json_response(200, {"success": True, "available": not taken}, event=event)


def _public_profile(event: Mapping[str, Any], nickname: str) -> dict[str, Any]:
    with Session(get_engine()) as session:
        profile = PublicUserSchema.model_validate(_require_user(session, nickname))
    profile.photo_url = storage.presign_read(profile.photo_url)
    profile.cover_photo_url = storage.presign_read(profile.cover_photo_url)
    return json_response(
        200,
        {"success": True, "profile": profile.model_dump(mode="json")},
        event=event,
    )


def _public_videos(event: Mapping[str, Any], nickname: str) -> dict[str, Any]:
    with Session(get_engine()) as session:
        user = _require_user(session, nickname)
        rows = VideoRepository(session).find_by_owner(
            user.cognito_sub,
            limit=PUBLIC_VIDEO_LIMIT,
        )
        videos = []
        for video, event_name, _album_name in rows:
            item = PublicVideoSchema.model_validate(video)
            item.event_name = event_name
            item.video_url = storage.presign_read(video.video_url) or video.video_url
            item.thumbnail_url = storage.presign_read(video.thumbnail_url)
            videos.append(item.model_dump(mode="json"))
    return json_response(200, {"success": True, "videos": videos}, event=event)


def _set_nickname(event: Mapping[str, Any]) -> dict[str, Any]:
    sub, email = _get_caller(event)
    if not sub:
        raise AuthenticationError()
    body = _parse_body(event)
    nickname = normalize_nickname(body.get("nickname"))
    if not nickname:
        raise ValidationError("Nickname is required", field="nickname")
    problem = nickname_problem(nickname)
    if problem == "Reserved":
        raise ValidationError("Nickname is reserved", field="nickname")
    if problem:
        raise ValidationError("Invalid nickname format", field="nickname")

    with Session(get_engine()) as session:
        repo = UserRepository(session)
        if repo.nickname_taken(nickname, exclude_sub=sub):
            raise ConflictError("Nickname is already taken")
        user = repo.get_by_id(sub) or repo.upsert(sub, email, None)
        repo.apply_changes(user, {"nickname": nickname})
        session.commit()

    logger.info("Nickname updated")
    return json_response(200, {"success": True, "nickname": nickname}, event=event)


_ROUTES = (
    Route("GET", "/users/check-nickname/{nickname}", _check_nickname),
    Route("PATCH", "/user/nickname", _set_nickname),
    Route("GET", "/users/{nickname}/videos", _public_videos),
    Route("GET", "/users/{nickname}", _public_profile),
)
