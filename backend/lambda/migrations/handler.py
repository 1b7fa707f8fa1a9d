"""Lambda entrypoint for database migrations."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from cachao.db.migrate import lambda_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the migration runner."""

    return _handler(event, context)
