"""Lambda entrypoint for checkout and Stripe webhook APIs."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from cachao.api.payments import lambda_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the checkout and Stripe webhook APIs handler."""

    return _handler(event, context)
