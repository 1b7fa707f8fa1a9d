"""Video thumbnails: one ffmpeg frame per uploaded video.

The videos Lambda asks for a thumbnail with ``request_thumbnail`` once an
upload is confirmed; the thumbnail Lambda then runs ``generate_thumbnail``
and stores the URL on the video row.
"""

from __future__ import annotations

import json
import os
import re
import subprocess
import tempfile

from botocore.exceptions import BotoCoreError, ClientError

from cachao.exceptions import AppError
from cachao.services import storage
from cachao.services.aws_clients import get_lambda_client, get_s3_client
from cachao.utils.logging import get_logger

logger = get_logger(__name__)

THUMBNAIL_PREFIX = "thumbnails"
THUMBNAIL_WIDTH = 320
FRAME_OFFSET = "0.1"
FFMPEG_TIMEOUT = 120

_VIDEO_SUFFIX = re.compile(r"\.(mp4|mov|avi|mkv|webm)$", re.IGNORECASE)


class ThumbnailError(AppError):
    """Raised when a frame cannot be extracted from a video."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message, status_code=500, detail=detail)


def thumbnail_key(s3_key: str) -> str:
    """``videos/123-clip.mp4`` -> ``thumbnails/123-clip.jpg``."""
    name = s3_key.rsplit("/", 1)[-1] or "thumbnail.jpg"
    name = _VIDEO_SUFFIX.sub(".jpg", name)
    if not name.lower().endswith(".jpg"):
        name = f"{name}.jpg"
    return f"{THUMBNAIL_PREFIX}/{name}"


def extract_frame(video_path: str, thumbnail_path: str) -> None:
    """Write a scaled JPEG of the frame just after the start of the video."""
    command = [
        os.getenv("FFMPEG_PATH", "ffmpeg"),
        "-i",
        video_path,
        "-ss",
        FRAME_OFFSET,
        "-vframes",
        "1",
        "-vf",
        f"scale={THUMBNAIL_WIDTH}:-1",
        thumbnail_path,
        "-y",
    ]
    try:
        subprocess.run(command, check=True, capture_output=True, timeout=FFMPEG_TIMEOUT)
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or b"").decode("utf-8", errors="replace")[-500:]
        raise ThumbnailError("Failed to generate thumbnail", detail=stderr) from exc
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise ThumbnailError("Failed to generate thumbnail", detail=str(exc)) from exc
    if not os.path.exists(thumbnail_path):
        raise ThumbnailError("Thumbnail file was not created")


def generate_thumbnail(s3_key: str) -> tuple[str, str]:
    """Download ``s3_key``, extract a frame and upload it.

    Returns:
        The thumbnail object key and its S3 URL.
    """
    bucket = storage.bucket_name()
    s3 = get_s3_client()
    key = thumbnail_key(s3_key)
    suffix = os.path.splitext(s3_key)[1] or ".mp4"

    with tempfile.TemporaryDirectory(prefix="thumbnail-") as workdir:
        video_path = os.path.join(workdir, f"video{suffix}")
        thumbnail_path = os.path.join(workdir, "thumbnail.jpg")
        s3.download_file(bucket, s3_key, video_path)
        extract_frame(video_path, thumbnail_path)
        s3.upload_file(
            thumbnail_path,
            bucket,
            key,
            ExtraArgs={"ContentType": "image/jpeg"},
        )

    logger.info("Thumbnail uploaded", extra={"s3_key": s3_key, "thumbnail_key": key})
    return key, storage.object_url(key, bucket)


def request_thumbnail(video_id: int, s3_key: str) -> bool:
    """Invoke the thumbnail Lambda asynchronously; failures only log."""
    function_name = os.getenv("THUMBNAIL_FUNCTION_NAME")
    if not function_name:
        return False
    try:
        get_lambda_client().invoke(
            FunctionName=function_name,
            InvocationType="Event",
            Payload=json.dumps({"video_id": video_id, "s3_key": s3_key}).encode("utf-8"),
        )
    except (BotoCoreError, ClientError) as exc:
        logger.warning(f"Thumbnail request failed for video {video_id}: {exc}")
        return False
    return True
