"""Lambda entrypoint for login and password recovery APIs."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from cachao.api.auth import lambda_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the login and password recovery APIs handler."""

    return _handler(event, context)
