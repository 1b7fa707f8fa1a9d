"""Lambda entrypoint for the AWS / HTTP proxy.

Runs outside the VPC so it can reach public AWS endpoints (Cognito) and
the flight lookup API.
"""

from __future__ import annotations

from typing import Any, Mapping

from cachao.services.aws_proxy import proxy_handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    return proxy_handler(event, context)
