"""Thumbnail Lambda, invoked directly with ``{video_id, s3_key}``."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from cachao.api.triggers import _payload
from cachao.db.engine import get_engine
from cachao.db.repositories import VideoRepository
from cachao.exceptions import ValidationError
from cachao.services import thumbnails
from cachao.utils import parse_int
from cachao.utils.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)


def generate_thumbnail_handler(event: Any, context: Any) -> dict[str, Any]:
    """Generate the thumbnail and store its URL on the video row.

    The row is looked up by id and then by S3 key; a missing row is only
    logged since the object may have been deleted meanwhile.
    """
    payload = _payload(event)
    video_id = parse_int(payload.get("video_id"))
    s3_key = str(payload.get("s3_key") or "").strip()
    if not video_id or not s3_key:
        raise ValidationError("video_id and s3_key are required")

    key, url = thumbnails.generate_thumbnail(s3_key)

    updated = False
    with Session(get_engine()) as session:
        repo = VideoRepository(session)
        video = repo.get_by_id(video_id) or repo.find_by_s3_key(s3_key)
        if video is not None:
            repo.apply_changes(video, {"thumbnail_url": url})
            session.commit()
            updated = True
    if not updated:
        logger.warning(
            "No video row for thumbnail",
            extra={"video_id": video_id, "s3_key": s3_key},
        )

    return {
        "success": True,
        "thumbnail_url": url,
        "thumbnail_key": key,
        "updated": updated,
    }
