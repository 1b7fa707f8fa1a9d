"""Verification of Cognito-issued JWTs.

Signatures are checked against the user pool's JWKS with RS256, and the
issuer, expiry and ``token_use`` claims are enforced before any claim is
trusted.
"""

from __future__ import annotations

import base64
import json
import os
import time
from dataclasses import dataclass
from typing import Any, Optional

import jwt
from jwt import PyJWKClient, PyJWKClientError

from cachao.utils.logging import get_logger

logger = get_logger(__name__)

JWKS_CACHE_TTL = 3600
_COGNITO_ISSUER_PREFIX = "https://cognito-idp."

_jwks_clients: dict[str, tuple[PyJWKClient, float]] = {}


@dataclass
class TokenClaims:
    """Claims of a verified token."""

    sub: str
    email: str
    groups: list[str]
    exp: int
    iss: str
    token_use: str
    raw_claims: dict[str, Any]


class JWTValidationError(Exception):
    """Raised when a token cannot be trusted.

    ``reason`` is a short machine-readable code passed to API Gateway in
    deny policies.
    """

    def __init__(self, message: str, reason: str = "invalid_token"):
        super().__init__(message)
        self.message = message
        self.reason = reason


def _unverified_issuer(token: str) -> str:
    """Read ``iss`` from the payload to pick the JWKS; not trusted."""
    parts = token.split(".")
    if len(parts) != 3:
        raise JWTValidationError("Invalid JWT format: expected 3 parts")
    payload = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(payload).decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as exc:
        raise JWTValidationError("Invalid JWT format: could not decode payload") from exc
    if not isinstance(claims, dict):
        raise JWTValidationError("Invalid JWT format: payload is not an object")
    return str(claims.get("iss") or "")


def _pool_from_issuer(issuer: str) -> Optional[tuple[str, str]]:
    """Split ``https://cognito-idp.{region}.amazonaws.com/{pool}``."""
    if not issuer.startswith(_COGNITO_ISSUER_PREFIX):
        return None
    remainder = issuer[len(_COGNITO_ISSUER_PREFIX):]
    region, sep, pool_id = remainder.partition(".amazonaws.com/")
    if not sep or not region or not pool_id:
        return None
    return region, pool_id.rstrip("/")


def _jwks_client(region: str, user_pool_id: str) -> PyJWKClient:
    cache_key = f"{region}:{user_pool_id}"
    cached = _jwks_clients.get(cache_key)
    now = time.time()
    if cached and now - cached[1] < JWKS_CACHE_TTL:
        return cached[0]
    url = (
        f"https://cognito-idp.{region}.amazonaws.com/"
        f"{user_pool_id}/.well-known/jwks.json"
    )
    client = PyJWKClient(url, cache_keys=True, lifespan=JWKS_CACHE_TTL)
    _jwks_clients[cache_key] = (client, now)
    return client


def _resolve_pool(
    token: str,
    user_pool_id: Optional[str],
    region: Optional[str],
) -> tuple[str, str]:
    user_pool_id = user_pool_id or os.getenv("COGNITO_USER_POOL_ID")
    region = region or os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION")
    if user_pool_id and region:
        return region, user_pool_id
    from_issuer = _pool_from_issuer(_unverified_issuer(token))
    if from_issuer is None:
        raise JWTValidationError(
            "Cannot determine the Cognito user pool",
            reason="misconfigured",
        )
    return region or from_issuer[0], user_pool_id or from_issuer[1]


def _groups(claim: Any) -> list[str]:
    if isinstance(claim, str):
        return [group.strip() for group in claim.split(",") if group.strip()]
    if isinstance(claim, list):
        return [str(group) for group in claim]
    return []


def decode_and_verify_token(
    token: str,
    user_pool_id: Optional[str] = None,
    region: Optional[str] = None,
    verify_expiration: bool = True,
) -> TokenClaims:
    """Verify a Cognito ID or access token and return its claims.

    The user pool comes from the arguments, then ``COGNITO_USER_POOL_ID``
    and ``AWS_REGION``, then the token's own issuer. Audience is not
    checked because ID and access tokens carry it differently; the issuer
    pins the pool.

    Raises:
        JWTValidationError: If the token is malformed, badly signed,
            expired, issued elsewhere or not an id/access token.
    """
    region, user_pool_id = _resolve_pool(token, user_pool_id, region)
    expected_issuer = f"https://cognito-idp.{region}.amazonaws.com/{user_pool_id}"

    try:
        signing_key = _jwks_client(region, user_pool_id).get_signing_key_from_jwt(token)
    except (PyJWKClientError, jwt.DecodeError) as exc:
        logger.warning(f"Failed to get signing key: {exc}")
        raise JWTValidationError("Could not retrieve signing key") from exc

    try:
        decoded = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            issuer=expected_issuer,
            options={
                "verify_exp": verify_expiration,
                "verify_aud": False,
                "require": ["sub", "iss", "exp", "token_use"],
            },
        )
    except jwt.ExpiredSignatureError as exc:
        raise JWTValidationError("Token has expired", reason="token_expired") from exc
    except jwt.InvalidIssuerError as exc:
        raise JWTValidationError("Invalid token issuer", reason="invalid_issuer") from exc
    except jwt.InvalidSignatureError as exc:
        raise JWTValidationError(
            "Invalid token signature",
            reason="invalid_signature",
        ) from exc
    except jwt.MissingRequiredClaimError as exc:
        raise JWTValidationError(f"Missing required claim: {exc}") from exc
    except jwt.InvalidTokenError as exc:
        raise JWTValidationError("Token verification failed") from exc

    token_use = decoded.get("token_use", "")
    if token_use not in ("id", "access"):
        raise JWTValidationError(f"Invalid token_use: {token_use}")

    return TokenClaims(
        sub=decoded.get("sub", ""),
        email=decoded.get("email", ""),
        groups=_groups(decoded.get("cognito:groups", [])),
        exp=decoded.get("exp", 0),
        iss=decoded.get("iss", ""),
        token_use=token_use,
        raw_claims=decoded,
    )


def clear_jwks_cache() -> None:
    """Drop cached JWKS clients (useful in tests)."""
    _jwks_clients.clear()
