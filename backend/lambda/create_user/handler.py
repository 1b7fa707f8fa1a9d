"""Lambda entrypoint for asynchronous user provisioning."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from cachao.api.triggers import create_user_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the asynchronous user provisioning handler."""

    return _handler(event, context)
