"""Lambda entrypoint for Cognito post-confirmation trigger."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from cachao.api.triggers import post_confirmation_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the Cognito post-confirmation trigger handler."""

    return _handler(event, context)
