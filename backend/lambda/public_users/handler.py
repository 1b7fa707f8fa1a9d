"""Lambda entrypoint for public user profile APIs."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from cachao.api.public_users import lambda_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the public user profile APIs handler."""

    return _handler(event, context)
