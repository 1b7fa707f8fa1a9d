"""Lambda entrypoint for ticket and discount APIs."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from cachao.api.tickets import lambda_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the ticket and discount APIs handler."""

    return _handler(event, context)
