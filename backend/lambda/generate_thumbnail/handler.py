"""Lambda entrypoint for video thumbnail generation."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from cachao.api.thumbnails import generate_thumbnail_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the thumbnail generator."""

    return _handler(event, context)
