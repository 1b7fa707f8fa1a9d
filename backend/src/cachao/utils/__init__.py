"""Utility modules for the backend application."""

from cachao.utils.parsers import (
    parse_bool,
    parse_date,
    parse_datetime,
    parse_decimal,
    parse_enum,
    parse_int,
)
from cachao.utils.responses import json_response
from cachao.utils.validators import (
    sanitize_string,
    validate_email,
    validate_range,
)
from cachao.utils.logging import (
    configure_logging,
    get_logger,
    mask_email,
    mask_pii,
    set_request_context,
    clear_request_context,
)

__all__ = [
    "clear_request_context",
    "configure_logging",
    "get_logger",
    "json_response",
    "mask_email",
    "mask_pii",
    "parse_bool",
    "parse_date",
    "parse_datetime",
    "parse_decimal",
    "parse_enum",
    "parse_int",
    "sanitize_string",
    "set_request_context",
    "validate_email",
    "validate_range",
]
