"""Tests for JWT verification and the API Gateway authorizer."""

from __future__ import annotations

import sys
import time
from pathlib import Path
from types import SimpleNamespace

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

sys.path.append(str(Path(__file__).resolve().parents[1] / "backend" / "src"))

from cachao.auth import authorizer  # noqa: E402
from cachao.auth.authorizer_helpers import extract_token, policy  # noqa: E402
from cachao.auth.jwt_validator import (  # noqa: E402
    JWTValidationError,
    TokenClaims,
    decode_and_verify_token,
)

ISSUER = "https://cognito-idp.eu-west-1.amazonaws.com/eu-west-1_TestPool"
METHOD_ARN = "arn:aws:execute-api:eu-west-1:123456789012:abc123/Prod/GET/user/profile"


@pytest.fixture(scope="module")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def jwks(mocker, signing_key):
    client = mocker.MagicMock()
    client.get_signing_key_from_jwt.return_value = SimpleNamespace(key=signing_key.public_key())
    mocker.patch("cachao.auth.jwt_validator._jwks_client", return_value=client)
    return client


def make_token(private_key, **overrides) -> str:
    claims = {
        "sub": "user-sub-1",
        "email": "ana@example.com",
        "iss": ISSUER,
        "exp": int(time.time()) + 600,
        "token_use": "id",
        "cognito:groups": ["admin"],
    }
    claims.update(overrides)
    claims = {key: value for key, value in claims.items() if value is not None}
    return jwt.encode(claims, private_key, algorithm="RS256")


class TestDecodeAndVerify:
    def test_valid_token(self, jwks, signing_key) -> None:
        claims = decode_and_verify_token(make_token(signing_key))
        assert claims.sub == "user-sub-1"
        assert claims.email == "ana@example.com"
        assert claims.groups == ["admin"]
        assert claims.token_use == "id"

    def test_expired(self, jwks, signing_key) -> None:
        with pytest.raises(JWTValidationError) as exc_info:
            decode_and_verify_token(make_token(signing_key, exp=int(time.time()) - 60))
        assert exc_info.value.reason == "token_expired"

    def test_wrong_issuer(self, jwks, signing_key) -> None:
        token = make_token(signing_key, iss="https://cognito-idp.eu-west-1.amazonaws.com/other")
        with pytest.raises(JWTValidationError) as exc_info:
            decode_and_verify_token(token)
        assert exc_info.value.reason == "invalid_issuer"

    def test_wrong_key(self, jwks) -> None:
        other_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        with pytest.raises(JWTValidationError) as exc_info:
            decode_and_verify_token(make_token(other_key))
        assert exc_info.value.reason == "invalid_signature"

    def test_refresh_tokens_are_rejected(self, jwks, signing_key) -> None:
        with pytest.raises(JWTValidationError):
            decode_and_verify_token(make_token(signing_key, token_use="refresh"))

    def test_token_use_is_required(self, jwks, signing_key) -> None:
        with pytest.raises(JWTValidationError):
            decode_and_verify_token(make_token(signing_key, token_use=None))

    def test_pool_from_issuer(self, jwks, signing_key, monkeypatch) -> None:
        monkeypatch.delenv("COGNITO_USER_POOL_ID")
        monkeypatch.delenv("AWS_REGION")
        monkeypatch.delenv("AWS_DEFAULT_REGION", raising=False)
        assert decode_and_verify_token(make_token(signing_key)).iss == ISSUER

    def test_garbage(self, monkeypatch) -> None:
        monkeypatch.delenv("COGNITO_USER_POOL_ID")
        with pytest.raises(JWTValidationError):
            decode_and_verify_token("not-a-token")


class TestHelpers:
    @pytest.mark.parametrize(
        ("headers", "expected"),
        [
            ({"Authorization": "Bearer abc"}, "abc"),
            ({"authorization": "abc"}, "abc"),
            ({"Authorization": "Bearer "}, None),
            ({}, None),
        ],
    )
    def test_extract_token(self, headers, expected) -> None:
        assert extract_token(headers) == expected

    def test_allow_policy_covers_stage(self) -> None:
        document = policy("Allow", METHOD_ARN, "sub", {})
        resource = document["policyDocument"]["Statement"][0]["Resource"]
        assert resource == "arn:aws:execute-api:eu-west-1:123456789012:abc123/Prod/*"

    def test_deny_policy_is_exact(self) -> None:
        document = policy("Deny", METHOD_ARN, "anonymous", {})
        assert document["policyDocument"]["Statement"][0]["Resource"] == METHOD_ARN


class TestAuthorizer:
    def _event(self, token=None) -> dict:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        return {"headers": headers, "methodArn": METHOD_ARN}

    def test_missing_token(self) -> None:
        result = authorizer.lambda_handler(self._event(), None)
        assert result["policyDocument"]["Statement"][0]["Effect"] == "Deny"
        assert result["context"] == {"reason": "missing_token"}

    def test_allow(self, mocker) -> None:
        mocker.patch(
            "cachao.auth.authorizer.decode_and_verify_token",
            return_value=TokenClaims(
                sub="user-sub-1",
                email="ana@example.com",
                groups=["admin", "staff"],
                exp=0,
                iss=ISSUER,
                token_use="id",
                raw_claims={},
            ),
        )

        result = authorizer.lambda_handler(self._event("a.b.c"), None)

        assert result["principalId"] == "user-sub-1"
        assert result["policyDocument"]["Statement"][0]["Effect"] == "Allow"
        assert result["context"] == {
            "userSub": "user-sub-1",
            "email": "ana@example.com",
            "groups": "admin,staff",
        }

    def test_invalid_token(self, mocker) -> None:
        mocker.patch(
            "cachao.auth.authorizer.decode_and_verify_token",
            side_effect=JWTValidationError("expired", reason="token_expired"),
        )
        result = authorizer.lambda_handler(self._event("a.b.c"), None)
        assert result["context"] == {"reason": "token_expired"}

    def test_unexpected_error_denies(self, mocker) -> None:
        mocker.patch(
            "cachao.auth.authorizer.decode_and_verify_token",
            side_effect=RuntimeError("jwks down"),
        )
        result = authorizer.lambda_handler(self._event("a.b.c"), None)
        assert result["policyDocument"]["Statement"][0]["Effect"] == "Deny"
        assert result["context"] == {"reason": "invalid_token"}
