"""Lambda entrypoint for staff, flight and accommodation APIs."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from cachao.api.staff import lambda_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the staff, flight and accommodation APIs handler."""

    return _handler(event, context)
