"""API Gateway request authorizer for signed-in Cognito users.

Tokens are verified against the user pool's JWKS; any valid user is
allowed and their sub, email and groups are passed on as context.
"""

from __future__ import annotations

from typing import Any

from cachao.auth.authorizer_helpers import extract_token, policy
from cachao.auth.jwt_validator import JWTValidationError, decode_and_verify_token
from cachao.utils.logging import configure_logging, get_logger, mask_pii

configure_logging()
logger = get_logger(__name__)


def lambda_handler(event: dict[str, Any], _context: Any) -> dict[str, Any]:
    """Return an Allow policy for a valid token, Deny otherwise."""
    headers = event.get("headers") or {}
    method_arn = event.get("methodArn", "")

    token = extract_token(headers)
    if not token:
        logger.warning("Missing or invalid Authorization header")
        return policy("Deny", method_arn, "anonymous", {"reason": "missing_token"})

    try:
        claims = decode_and_verify_token(token)
    except JWTValidationError as exc:
        logger.warning(f"JWT validation failed: {exc.message} (reason: {exc.reason})")
        return policy("Deny", method_arn, "invalid", {"reason": exc.reason})
    except Exception as exc:
        logger.warning(f"Token validation failed: {type(exc).__name__}")
        return policy("Deny", method_arn, "invalid", {"reason": "invalid_token"})

    logger.info(f"Access granted for user {mask_pii(claims.sub, 8)}")
    return policy(
        "Allow",
        method_arn,
        claims.sub,
        {
            "userSub": claims.sub,
            "email": claims.email,
            "groups": ",".join(claims.groups),
        },
    )
