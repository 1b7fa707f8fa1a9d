"""Structured logging utilities for Lambda functions.

Every Lambda module calls ``configure_logging()`` on import and logs
through ``get_logger(__name__)``. Records are emitted as one JSON object
per line so CloudWatch Logs Insights can filter on request id, service,
and extra fields.

SECURITY NOTES:
- Pass email addresses through mask_email() before logging them
- Use mask_pii() for names, nicknames and other user identifiers
- Never log passwords, tokens, Stripe secrets or presigned URLs
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from contextvars import ContextVar
from datetime import datetime
from datetime import timezone
from typing import Any
from typing import Mapping
from typing import MutableMapping
from typing import Optional


def mask_email(email: Optional[str]) -> str:
    """Mask an email address for safe logging.

    Examples:
        >>> mask_email("maria.lopez@example.com")
        'ma***@***.com'
        >>> mask_email("a@b.es")
        'a***@***.es'
    """
    if not email or "@" not in email:
        return "***"

    local, domain = email.rsplit("@", 1)
    domain_parts = domain.rsplit(".", 1)
    visible_local = local[:2] if len(local) > 2 else local[:1]
    tld = domain_parts[-1] if len(domain_parts) > 1 else ""

    return f"{visible_local}***@***.{tld}" if tld else f"{visible_local}***@***"


def mask_pii(value: Optional[str], visible_chars: int = 4) -> str:
    """Mask a PII value, keeping only the first few characters."""
    if not value:
        return "***"
    if len(value) <= visible_chars:
        return value[0] + "***"
    return value[:visible_chars] + "***"


request_id: ContextVar[str] = ContextVar("request_id", default="")
caller_sub: ContextVar[str] = ContextVar("caller_sub", default="")


class StructuredLogFormatter(logging.Formatter):
    """JSON formatter carrying service name and request context."""

    def __init__(self, service: Optional[str] = None):
        super().__init__()
        self._service = service

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self._service:
            log_data["service"] = self._service

        req_id = request_id.get()
        if req_id:
            log_data["request_id"] = req_id

        sub = caller_sub.get()
        if sub:
            log_data["caller"] = mask_pii(sub, 8)

        log_data["source"] = {
            "file": record.filename,
            "line": record.lineno,
            "function": record.funcName,
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info),
            }

        if hasattr(record, "extra") and isinstance(record.extra, dict):
            log_data["extra"] = record.extra

        return json.dumps(log_data, default=str)


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that nests caller-supplied fields under ``extra``."""

    def process(
        self,
        msg: str,
        kwargs: MutableMapping[str, Any],
    ) -> tuple[str, MutableMapping[str, Any]]:
        fields = dict(kwargs.get("extra") or {})
        if self.extra:
            fields.update(self.extra)
        kwargs["extra"] = {"extra": fields} if fields else {}
        return msg, kwargs


def configure_logging(
    level: Optional[str] = None,
    service: Optional[str] = None,
) -> None:
    """Configure structured logging for Lambda execution.

    Args:
        level: Log level name. Defaults to LOG_LEVEL or INFO.
        service: Service name stamped on every record. Defaults to
            SERVICE_NAME or the Lambda function name.
    """
    log_level: str = level or os.getenv("LOG_LEVEL") or "INFO"
    service_name = (
        service
        or os.getenv("SERVICE_NAME")
        or os.getenv("AWS_LAMBDA_FUNCTION_NAME")
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredLogFormatter(service_name))
    root_logger.addHandler(handler)

    for noisy in ("boto3", "botocore", "urllib3", "sqlalchemy.engine", "stripe"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str, **extra: Any) -> ContextLogger:
    """Return a context-aware logger for ``name``."""
    return ContextLogger(logging.getLogger(name), extra)


def set_request_context(
    req_id: Optional[str] = None,
    sub: Optional[str] = None,
) -> None:
    """Bind the API Gateway request id and caller subject to this invocation."""
    request_id.set(req_id or "")
    caller_sub.set(sub or "")


def clear_request_context() -> None:
    """Clear request context after an invocation."""
    request_id.set("")
    caller_sub.set("")


def log_lambda_event(logger: ContextLogger, event: Mapping[str, Any]) -> None:
    """Log the routing-relevant parts of an API Gateway event at DEBUG."""
    body = event.get("body") or ""
    logger.debug(
        "Lambda event received",
        extra={
            "http_method": event.get("httpMethod"),
            "path": event.get("path"),
            "query_params": event.get("queryStringParameters"),
            "body_length": len(body),
        },
    )


def log_response(
    logger: ContextLogger,
    status_code: int,
    duration_ms: Optional[float] = None,
) -> None:
    """Log the outgoing status, at WARNING for client and server errors."""
    fields: dict[str, Any] = {"status_code": status_code}
    if duration_ms is not None:
        fields["duration_ms"] = round(duration_ms, 2)

    level = logging.INFO if status_code < 400 else logging.WARNING
    logger.log(level, "Lambda response", extra=fields)
