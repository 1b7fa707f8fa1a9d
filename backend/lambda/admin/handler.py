"""Lambda entrypoint for admin APIs."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from cachao.api.admin import lambda_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the admin APIs handler."""

    return _handler(event, context)
