"""Lambda entrypoint for Stripe EventBridge events."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from cachao.api.payments import eventbridge_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the Stripe EventBridge events handler."""

    return _handler(event, context)
