"""Non-HTTP user provisioning entrypoints.

``create_user_handler`` is invoked asynchronously (see
``identity.invoke_create_user``); ``post_confirmation_handler`` is the
Cognito post-confirmation trigger.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from sqlalchemy.orm import Session

from cachao.db.engine import get_engine
from cachao.db.repositories import UserRepository
from cachao.exceptions import ValidationError
from cachao.services import identity
from cachao.utils import sanitize_string, validate_email
from cachao.utils.logging import configure_logging, get_logger, mask_email

configure_logging()
logger = get_logger(__name__)

CONFIRM_SIGN_UP = "PostConfirmation_ConfirmSignUp"


def _payload(event: Any) -> dict[str, Any]:
    if isinstance(event, (str, bytes)):
        try:
            event = json.loads(event)
        except json.JSONDecodeError as exc:
            raise ValidationError("Invalid JSON payload") from exc
    if not isinstance(event, Mapping):
        raise ValidationError("Payload must be an object")
    return dict(event)


def create_user_handler(event: Any, context: Any) -> dict[str, Any]:
    """Find or create the Cognito user and store the profile row."""
    payload = _payload(event)
    email = validate_email(str(payload.get("email") or ""))
    name = sanitize_string(payload.get("name"), max_length=200)
    if not name:
        raise ValidationError("name is required", field="name")

    sub, created = identity.ensure_user(email, name)
    with Session(get_engine()) as session:
        UserRepository(session).upsert(sub, email, name)
        session.commit()

    logger.info(
        "User provisioned",
        extra={"email": mask_email(email), "created": created},
    )
    return {"success": True, "cognito_sub": sub, "created": created}


def _display_name(attributes: Mapping[str, Any]) -> str:
    name = sanitize_string(attributes.get("name"), max_length=200)
    if name:
        return name
    email = attributes.get("email") or ""
    return email.split("@", 1)[0] or "User"


def post_confirmation_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Insert the user row after sign-up confirmation.

    Failures are logged but never block the sign-up; the event is always
    returned to Cognito.
    """
    if event.get("triggerSource") != CONFIRM_SIGN_UP:
        return event

    attributes = (event.get("request") or {}).get("userAttributes") or {}
    sub = attributes.get("sub") or event.get("userName")
    email = attributes.get("email")
    if not sub:
        logger.warning("Post-confirmation event missing user identifiers")
        return event

    try:
        with Session(get_engine()) as session:
            UserRepository(session).upsert(sub, email, _display_name(attributes))
            session.commit()
        logger.info("User row created", extra={"email": mask_email(email)})
    except Exception as exc:
        logger.error(
            "Failed to store confirmed user",
            extra={"email": mask_email(email), "error": type(exc).__name__},
        )
    return event
