"""S3 helpers for presigned uploads, multipart uploads and deletes."""

from __future__ import annotations

import math
import os
import time
from typing import Any, Optional
from urllib.parse import unquote, urlparse

from botocore.exceptions import BotoCoreError, ClientError

from cachao.exceptions import ConfigurationError
from cachao.services.aws_clients import default_region, get_s3_client
from cachao.utils.logging import get_logger
from cachao.utils.validators import sanitize_filename

logger = get_logger(__name__)

UPLOAD_URL_EXPIRES = 3600
LARGE_UPLOAD_URL_EXPIRES = 14400
LARGE_FILE_THRESHOLD = 100 * 1024 * 1024
MULTIPART_PART_SIZE = 100 * 1024 * 1024
READ_URL_EXPIRES = 3600


def bucket_name() -> str:
    """Return the media bucket name."""
    bucket = os.getenv("S3_BUCKET_NAME")
    if not bucket:
        raise ConfigurationError("S3_BUCKET_NAME")
    return bucket


def object_url(key: str, bucket: Optional[str] = None) -> str:
    """Return the virtual-hosted HTTPS URL of an object."""
    bucket = bucket or bucket_name()
    return f"https://{bucket}.s3.{default_region()}.amazonaws.com/{key}"


def timestamped_key(prefix: str, file_name: str) -> str:
    """Build ``{prefix}/{millis}-{sanitized name}``."""
    millis = int(time.time() * 1000)
    return f"{prefix.rstrip('/')}/{millis}-{sanitize_filename(file_name)}"


def upload_expiry(file_size: Optional[int]) -> int:
    """Longer presign expiry for files above the large-file threshold."""
    if file_size and file_size > LARGE_FILE_THRESHOLD:
        return LARGE_UPLOAD_URL_EXPIRES
    return UPLOAD_URL_EXPIRES


def presign_upload(
    key: str,
    content_type: str,
    expires_in: int = UPLOAD_URL_EXPIRES,
) -> str:
    """Return a presigned PUT URL for ``key``."""
    return get_s3_client().generate_presigned_url(
        "put_object",
        Params={
            "Bucket": bucket_name(),
            "Key": key,
            "ContentType": content_type,
        },
        ExpiresIn=expires_in,
    )


def extract_key(value: Optional[str]) -> Optional[str]:
    """Return the object key of a bucket URL, or ``value`` if it is a key.

    URLs on other hosts return None so external images are left alone.
    """
    if not value:
        return None
    if not value.startswith(("http://", "https://")):
        return value.lstrip("/")
    parsed = urlparse(value)
    bucket = os.getenv("S3_BUCKET_NAME")
    if not bucket or not parsed.netloc.startswith(f"{bucket}."):
        return None
    key = unquote(parsed.path.lstrip("/"))
    return key or None


def presign_read(value: Optional[str], expires_in: int = READ_URL_EXPIRES) -> Optional[str]:
    """Turn a stored bucket URL or key into a presigned GET URL.

    Values that do not point into the media bucket are returned unchanged.
    """
    key = extract_key(value)
    if key is None:
        return value
    try:
        return get_s3_client().generate_presigned_url(
            "get_object",
            Params={"Bucket": bucket_name(), "Key": key},
            ExpiresIn=expires_in,
        )
    except ConfigurationError:
        return value
    except (BotoCoreError, ClientError) as exc:
        logger.warning(f"Could not presign {key}: {exc}")
        return value


def delete_object_quietly(value: Optional[str]) -> bool:
    """Delete an object after its row is gone; failures only log a warning."""
    key = extract_key(value)
    if key is None:
        return False
    try:
        get_s3_client().delete_object(Bucket=bucket_name(), Key=key)
        return True
    except (BotoCoreError, ClientError, ConfigurationError) as exc:
        logger.warning(f"S3 delete failed for {key}: {exc}")
        return False


def start_multipart_upload(
    key: str,
    content_type: str,
    file_size: int,
) -> dict[str, Any]:
    """Create a multipart upload and presign one URL per part.

    Returns:
        Dict with ``upload_id``, ``total_parts``, ``part_size`` and ``parts``
        (``partNumber`` / ``upload_url`` pairs).
    """
    client = get_s3_client()
    bucket = bucket_name()
    response = client.create_multipart_upload(
        Bucket=bucket,
        Key=key,
        ContentType=content_type,
    )
    upload_id = response["UploadId"]
    total_parts = max(1, math.ceil(file_size / MULTIPART_PART_SIZE))
    parts = []
    for part_number in range(1, total_parts + 1):
        url = client.generate_presigned_url(
            "upload_part",
            Params={
                "Bucket": bucket,
                "Key": key,
                "UploadId": upload_id,
                "PartNumber": part_number,
            },
            ExpiresIn=UPLOAD_URL_EXPIRES,
        )
        parts.append({"partNumber": part_number, "upload_url": url})
    return {
        "upload_id": upload_id,
        "total_parts": total_parts,
        "part_size": MULTIPART_PART_SIZE,
        "parts": parts,
    }


def complete_multipart_upload(
    key: str,
    upload_id: str,
    parts: list[dict[str, Any]],
) -> dict[str, Any]:
    """Complete a multipart upload from ``PartNumber`` / ``ETag`` pairs."""
    ordered = sorted(
        ({"PartNumber": int(p["PartNumber"]), "ETag": p["ETag"]} for p in parts),
        key=lambda part: part["PartNumber"],
    )
    return get_s3_client().complete_multipart_upload(
        Bucket=bucket_name(),
        Key=key,
        UploadId=upload_id,
        MultipartUpload={"Parts": ordered},
    )
