"""Cognito token verification and authorizer helpers."""

from cachao.auth.jwt_validator import (
    JWTValidationError,
    TokenClaims,
    decode_and_verify_token,
)

__all__ = [
    "JWTValidationError",
    "TokenClaims",
    "decode_and_verify_token",
]
