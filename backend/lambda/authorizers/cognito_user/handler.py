"""Lambda entrypoint for API Gateway Cognito authorizer."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from cachao.auth.authorizer import lambda_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the API Gateway Cognito authorizer handler."""

    return _handler(event, context)
