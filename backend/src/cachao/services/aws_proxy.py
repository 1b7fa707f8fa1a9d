"""Outbound proxy for in-VPC Lambdas.

``proxy_handler`` runs in a Lambda outside the VPC. It executes either an
allow-listed boto3 call (``type: "aws"``, gated by ``ALLOWED_ACTIONS``, a
comma-separated list of ``service:action``) or an allow-listed HTTP request
(``type: "http"``, gated by ``ALLOWED_HTTP_URLS``, a comma-separated list
of URL prefixes). Failures come back as ``{"error": {code, message}}``.

``invoke`` and ``http_invoke`` are the client side, used for example by
the flight lookup.
"""

from __future__ import annotations

import json
import os
import urllib.error
import urllib.request
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

from botocore.exceptions import BotoCoreError, ClientError

from cachao.exceptions import ConfigurationError
from cachao.services.aws_clients import get_client, get_lambda_client
from cachao.utils.logging import get_logger

logger = get_logger(__name__)

MAX_HTTP_TIMEOUT = 30


def _csv_env(name: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, "").split(",") if item.strip()]


def _error(code: str, message: str) -> dict[str, Any]:
    return {"error": {"code": code, "message": message}}


def proxy_handler(event: Mapping[str, Any], _context: Any) -> dict[str, Any]:
    """Dispatch on the request ``type``; ``aws`` is the default."""
    if event.get("type") == "http":
        return _handle_http(event)
    return _handle_aws(event)


def _handle_aws(event: Mapping[str, Any]) -> dict[str, Any]:
    service = str(event.get("service") or "")
    action = str(event.get("action") or "")
    params = event.get("params") or {}
    key = f"{service}:{action}"

    if key not in set(_csv_env("ALLOWED_ACTIONS")):
        logger.warning(f"Blocked disallowed AWS action: {key}")
        return _error("ActionNotAllowed", f"{key} is not in the proxy allow-list")

    client = get_client(service)
    method = getattr(client, action, None)
    if method is None:
        return _error("InvalidAction", f"{action} is not a valid method on {service}")

    logger.info(f"Proxying AWS {key}")
    try:
        result = method(**params)
    except ClientError as exc:
        code = exc.response.get("Error", {}).get("Code", "ClientError")
        logger.warning(f"Proxy AWS call {key} failed: {code}")
        return _error(code, str(exc))
    except BotoCoreError as exc:
        logger.warning(f"Proxy AWS call {key} failed: {exc}")
        return _error(type(exc).__name__, str(exc))

    result.pop("ResponseMetadata", None)
    return {"result": json.loads(json.dumps(result, default=str))}


def _handle_http(event: Mapping[str, Any]) -> dict[str, Any]:
    method = str(event.get("method") or "GET").upper()
    url = str(event.get("url") or "")
    headers: dict[str, str] = dict(event.get("headers") or {})
    body: Optional[str] = event.get("body")
    timeout = min(int(event.get("timeout") or 10), MAX_HTTP_TIMEOUT)

    if not url:
        return _error("MissingURL", "url is required")
    if urlparse(url).scheme not in ("http", "https"):
        return _error("InvalidURL", "Only http and https URLs are allowed")
    if not any(url.startswith(prefix) for prefix in _csv_env("ALLOWED_HTTP_URLS")):
        logger.warning(f"Blocked disallowed HTTP URL: {url}")
        return _error("URLNotAllowed", "URL is not in the proxy allow-list")

    logger.info(f"Proxying HTTP {method} {url}")
    request = urllib.request.Request(
        url,
        data=body.encode("utf-8") if body else None,
        headers=headers,
        method=method,
    )
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:  # nosec B310
            return {
                "result": {
                    "status": response.status,
                    "headers": dict(response.getheaders()),
                    "body": response.read().decode("utf-8", errors="replace"),
                }
            }
    except urllib.error.HTTPError as exc:
        return {
            "result": {
                "status": exc.code,
                "headers": dict(exc.headers) if exc.headers else {},
                "body": exc.read().decode("utf-8", errors="replace"),
            }
        }
    except (urllib.error.URLError, TimeoutError) as exc:
        logger.warning(f"HTTP request failed: {type(exc).__name__}: {exc}")
        return _error(type(exc).__name__, str(exc))


class AwsProxyError(Exception):
    """Raised when the proxy Lambda reports an error."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")


def _invoke_proxy(payload: dict[str, Any]) -> dict[str, Any]:
    function_arn = os.getenv("AWS_PROXY_FUNCTION_ARN")
    if not function_arn:
        raise ConfigurationError("AWS_PROXY_FUNCTION_ARN")

    response = get_lambda_client().invoke(
        FunctionName=function_arn,
        InvocationType="RequestResponse",
        Payload=json.dumps(payload).encode("utf-8"),
    )
    body = json.loads(response["Payload"].read())
    if response.get("FunctionError"):
        raise AwsProxyError("LambdaInvocationError", str(body))
    error = body.get("error")
    if error:
        raise AwsProxyError(error.get("code", "Unknown"), error.get("message", ""))
    return body.get("result", {})


def invoke(service: str, action: str, params: dict[str, Any]) -> dict[str, Any]:
    """Run a boto3 call through the proxy and return its response."""
    return _invoke_proxy(
        {"type": "aws", "service": service, "action": action, "params": params}
    )


def http_invoke(
    method: str,
    url: str,
    headers: Optional[dict[str, str]] = None,
    body: Optional[str] = None,
    timeout: int = 10,
) -> dict[str, Any]:
    """Make an HTTP request through the proxy.

    Returns:
        ``{"status": int, "headers": dict, "body": str}``. HTTP error
        statuses are returned, not raised.

    Raises:
        AwsProxyError: If the proxy itself fails.
    """
    return _invoke_proxy(
        {
            "type": "http",
            "method": method,
            "url": url,
            "headers": headers or {},
            "body": body,
            "timeout": timeout,
        }
    )
