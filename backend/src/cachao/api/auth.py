"""Password login and recovery against the Cognito user pool.

Routes handled:
    POST /auth/login
    POST /auth/forgot-password
    POST /auth/confirm-forgot-password
    POST /auth/resend-verification-code
"""

from __future__ import annotations

from typing import Any, Mapping

from botocore.exceptions import ClientError

from cachao.api.common import Route, dispatch
from cachao.api.request import _parse_body, _require_fields
from cachao.services import identity
from cachao.utils import json_response, validate_email
from cachao.utils.logging import configure_logging, get_logger, mask_email

configure_logging()
logger = get_logger(__name__)


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Route auth requests."""
    return dispatch(event, _ROUTES, logger)


def _email(body: Mapping[str, Any]) -> str:
    _require_fields(body, "email")
    return validate_email(str(body["email"]))


def _login(event: Mapping[str, Any]) -> dict[str, Any]:
    body = _parse_body(event)
    email = _email(body)
    _require_fields(body, "password")

    result = identity.login(
        email,
        str(body["password"]),
        new_password=body.get("new_password") or body.get("newPassword"),
        challenge_session=body.get("session"),
    )
    if "challenge" in result:
        logger.info("Login challenge issued", extra={"email": mask_email(email)})
        return json_response(
            200,
            {
                "success": False,
                "challenge": result["challenge"],
                "session": result["session"],
                "requires_new_password": result["challenge"] == identity.NEW_PASSWORD_REQUIRED,
                "message": "New password required. Please provide a new password.",
            },
            event=event,
        )

    logger.info("Login succeeded", extra={"email": mask_email(email)})
    return json_response(
        200,
        {"success": True, "tokens": result["tokens"], "message": "Login successful"},
        event=event,
    )


def _forgot_password(event: Mapping[str, Any]) -> dict[str, Any]:
    email = _email(_parse_body(event))
    identity.forgot_password(email)
    return json_response(
        200,
        {
            "success": True,
            "message": (
                "If an account exists with this email, "
                "a password reset code has been sent."
            ),
        },
        event=event,
    )


def _confirm_forgot_password(event: Mapping[str, Any]) -> dict[str, Any]:
    body = _parse_body(event)
    email = _email(body)
    _require_fields(body, "code", "new_password")
    identity.confirm_forgot_password(email, str(body["code"]), str(body["new_password"]))
    return json_response(
        200,
        {"success": True, "message": "Password has been reset successfully."},
        event=event,
    )


def _resend_verification_code(event: Mapping[str, Any]) -> dict[str, Any]:
    email = _email(_parse_body(event))
    try:
        identity.resend_verification_code(email)
    except ClientError as exc:
        raise identity.map_cognito_error(exc) from exc
    return json_response(
        200,
        {
            "success": True,
            "message": "A new temporary password has been sent to your email.",
        },
        event=event,
    )


_ROUTES = (
    Route("POST", "/auth/login", _login),
    Route("POST", "/auth/forgot-password", _forgot_password),
    Route("POST", "/auth/confirm-forgot-password", _confirm_forgot_password),
    Route("POST", "/auth/resend-verification-code", _resend_verification_code),
)
