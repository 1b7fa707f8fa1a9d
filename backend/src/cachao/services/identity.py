"""Cognito user pool operations.

Wraps the boto3 ``cognito-idp`` calls used by the auth and admin APIs and
the user-creation trigger. Cognito ``ClientError`` codes are translated
into ``AppError`` subclasses so handlers only deal with one hierarchy.
"""

from __future__ import annotations

import json
import os
import secrets
import string
from typing import Any, Optional

from botocore.exceptions import ClientError

from cachao.exceptions import (
    AppError,
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from cachao.services.aws_clients import get_cognito_idp_client, get_lambda_client
from cachao.utils.logging import get_logger, mask_email

logger = get_logger(__name__)

NEW_PASSWORD_REQUIRED = "NEW_PASSWORD_REQUIRED"

_ERROR_MAP: dict[str, tuple[int, str]] = {
    "NotAuthorizedException": (401, "Incorrect email or password"),
    "UserNotFoundException": (401, "User not found"),
    "UserNotConfirmedException": (403, "User account is not confirmed"),
    "PasswordResetRequiredException": (403, "Password reset required"),
    "CodeMismatchException": (400, "Invalid verification code"),
    "ExpiredCodeException": (400, "Verification code has expired"),
    "InvalidPasswordException": (400, "Password does not meet requirements"),
    "TooManyRequestsException": (429, "Too many requests. Please try again later."),
    "LimitExceededException": (429, "Too many requests. Please try again later."),
}


def _user_pool_id() -> str:
    value = os.getenv("COGNITO_USER_POOL_ID")
    if not value:
        raise ConfigurationError("COGNITO_USER_POOL_ID")
    return value


def _client_id() -> str:
    value = os.getenv("COGNITO_CLIENT_ID")
    if not value:
        raise ConfigurationError("COGNITO_CLIENT_ID")
    return value


def error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


def map_cognito_error(exc: ClientError) -> AppError:
    """Translate a Cognito ``ClientError`` into an ``AppError``."""
    code = error_code(exc)
    status, message = _ERROR_MAP.get(code, (500, "Identity provider error"))
    if status == 401:
        return AuthenticationError(message)
    if status == 403:
        return AuthorizationError(message)
    if status == 429:
        return RateLimitError(message)
    if status == 400:
        return ValidationError(message)
    return AppError(message, status_code=500, detail=code or None)


def _tokens(result: dict[str, Any]) -> dict[str, Any]:
    return {
        "id_token": result.get("IdToken"),
        "access_token": result.get("AccessToken"),
        "refresh_token": result.get("RefreshToken"),
        "expires_in": result.get("ExpiresIn"),
        "token_type": result.get("TokenType", "Bearer"),
    }


def login(
    email: str,
    password: str,
    new_password: Optional[str] = None,
    challenge_session: Optional[str] = None,
) -> dict[str, Any]:
    """Authenticate with USER_PASSWORD_AUTH.

    When Cognito answers with ``NEW_PASSWORD_REQUIRED`` the challenge is
    completed with ``new_password`` if one was given; otherwise the
    challenge and its session are returned for the client to finish.

    Returns:
        ``{"tokens": {...}}`` or ``{"challenge": ..., "session": ...}``.
    """
    client = get_cognito_idp_client()
    client_id = _client_id()
    try:
        if challenge_session and new_password:
            response = client.respond_to_auth_challenge(
                ClientId=client_id,
                ChallengeName=NEW_PASSWORD_REQUIRED,
                Session=challenge_session,
                ChallengeResponses={"USERNAME": email, "NEW_PASSWORD": new_password},
            )
        else:
            response = client.initiate_auth(
                AuthFlow="USER_PASSWORD_AUTH",
                ClientId=client_id,
                AuthParameters={"USERNAME": email, "PASSWORD": password},
            )
            if response.get("ChallengeName") == NEW_PASSWORD_REQUIRED and new_password:
                response = client.respond_to_auth_challenge(
                    ClientId=client_id,
                    ChallengeName=NEW_PASSWORD_REQUIRED,
                    Session=response.get("Session"),
                    ChallengeResponses={
                        "USERNAME": email,
                        "NEW_PASSWORD": new_password,
                    },
                )
    except ClientError as exc:
        logger.info(
            "Login rejected",
            extra={"email": mask_email(email), "code": error_code(exc)},
        )
        raise map_cognito_error(exc) from exc

    if response.get("ChallengeName"):
        return {
            "challenge": response["ChallengeName"],
            "session": response.get("Session"),
        }

    result = response.get("AuthenticationResult")
    if not result:
        raise AppError("Authentication failed - no tokens received")
    return {"tokens": _tokens(result)}


def forgot_password(email: str) -> None:
    """Start the reset flow; unknown users are not revealed to the caller."""
    try:
        get_cognito_idp_client().forgot_password(ClientId=_client_id(), Username=email)
    except ClientError as exc:
        if error_code(exc) == "UserNotFoundException":
            logger.info("Password reset for unknown user", extra={"email": mask_email(email)})
            return
        raise map_cognito_error(exc) from exc


def confirm_forgot_password(email: str, code: str, new_password: str) -> None:
    try:
        get_cognito_idp_client().confirm_forgot_password(
            ClientId=_client_id(),
            Username=email,
            ConfirmationCode=code,
            Password=new_password,
        )
    except ClientError as exc:
        raise map_cognito_error(exc) from exc


def find_user_by_email(email: str) -> Optional[dict[str, Any]]:
    """Return the first Cognito user whose email attribute matches."""
    escaped = email.replace('"', '\\"')
    response = get_cognito_idp_client().list_users(
        UserPoolId=_user_pool_id(),
        Filter=f'email = "{escaped}"',
        Limit=1,
    )
    users = response.get("Users") or []
    return users[0] if users else None


def user_attribute(user: dict[str, Any], name: str) -> Optional[str]:
    """Read an attribute from a ``list_users`` or ``admin_create_user`` user."""
    for attribute in user.get("Attributes") or user.get("UserAttributes") or []:
        if attribute.get("Name") == name:
            return attribute.get("Value")
    return None


def _require_user(email: str) -> dict[str, Any]:
    user = find_user_by_email(email)
    if user is None:
        raise NotFoundError("User", email)
    return user


def resend_verification_code(email: str) -> None:
    """Send a fresh temporary password to a user who never confirmed.

    Raises:
        NotFoundError: If no user has this email.
        ValidationError: If the user is already confirmed.
    """
    client = get_cognito_idp_client()
    user_pool_id = _user_pool_id()
    username = _require_user(email).get("Username") or email
    details = client.admin_get_user(UserPoolId=user_pool_id, Username=username)
    if details.get("UserStatus") == "CONFIRMED":
        raise ValidationError("User is already confirmed")
    client.admin_reset_user_password(UserPoolId=user_pool_id, Username=username)


def generate_temporary_password(length: int = 12) -> str:
    """Random password satisfying the default Cognito policy."""
    alphabet = string.ascii_letters + string.digits + "!@#$%^&*"
    required = [
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.digits),
        secrets.choice("!@#$%^&*"),
    ]
    rest = [secrets.choice(alphabet) for _ in range(max(0, length - len(required)))]
    chars = required + rest
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


def admin_reset_password(email: str) -> str:
    """Set a temporary password the user must change at next login.

    Returns:
        The temporary password.
    """
    username = _require_user(email).get("Username") or email
    temporary = generate_temporary_password()
    get_cognito_idp_client().admin_set_user_password(
        UserPoolId=_user_pool_id(),
        Username=username,
        Password=temporary,
        Permanent=False,
    )
    logger.info("Temporary password set", extra={"email": mask_email(email)})
    return temporary


def mark_email_verified(email: str) -> None:
    username = _require_user(email).get("Username") or email
    get_cognito_idp_client().admin_update_user_attributes(
        UserPoolId=_user_pool_id(),
        Username=username,
        UserAttributes=[{"Name": "email_verified", "Value": "true"}],
    )


def ensure_user(email: str, name: str) -> tuple[str, bool]:
    """Find the Cognito user for ``email`` or create one.

    New users get a temporary password through Cognito's welcome email.

    Returns:
        ``(cognito_sub, created)``.
    """
    existing = find_user_by_email(email)
    if existing is not None:
        sub = user_attribute(existing, "sub") or existing.get("Username")
        return str(sub), False

    response = get_cognito_idp_client().admin_create_user(
        UserPoolId=_user_pool_id(),
        Username=email,
        UserAttributes=[
            {"Name": "email", "Value": email},
            {"Name": "email_verified", "Value": "true"},
            {"Name": "name", "Value": name},
        ],
        TemporaryPassword=generate_temporary_password(),
        DesiredDeliveryMediums=["EMAIL"],
    )
    user = response.get("User") or {}
    sub = user_attribute(user, "sub")
    if not sub:
        raise AppError("Cognito did not return a user sub")
    logger.info("Created Cognito user", extra={"email": mask_email(email)})
    return sub, True


def invoke_create_user(email: str, name: str) -> None:
    """Ask the create-user Lambda to provision a user asynchronously."""
    function_name = os.getenv("CREATE_USER_FUNCTION_NAME")
    if not function_name:
        raise ConfigurationError("CREATE_USER_FUNCTION_NAME")
    get_lambda_client().invoke(
        FunctionName=function_name,
        InvocationType="Event",
        Payload=json.dumps({"email": email, "name": name}).encode("utf-8"),
    )
    logger.info("Create-user Lambda invoked", extra={"email": mask_email(email)})
