"""Lambda entrypoint for video and album APIs."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from cachao.api.videos import lambda_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the video and album APIs handler."""

    return _handler(event, context)
