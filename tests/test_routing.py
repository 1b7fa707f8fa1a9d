"""Tests for request parsing, routing and caller identity helpers."""

from __future__ import annotations

import base64
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / "backend" / "src"))

from conftest import body_of, make_event  # noqa: E402

from cachao.api.auth_context import (  # noqa: E402
    _get_caller,
    _is_admin,
    _require_admin,
    _require_user_sub,
)
from cachao.api.common import Route, dispatch  # noqa: E402
from cachao.api.request import (  # noqa: E402
    _decode_cursor,
    _encode_cursor,
    _normalize_path,
    _parse_body,
    _parse_cursor,
    _path_id,
)
from cachao.auth.jwt_validator import JWTValidationError, TokenClaims  # noqa: E402
from cachao.exceptions import (  # noqa: E402
    AuthenticationError,
    AuthorizationError,
    CursorError,
    NotFoundError,
    ValidationError,
)
from cachao.utils.logging import get_logger  # noqa: E402

logger = get_logger(__name__)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("/events/3", "/events/3"),
        ("/Prod/events/3/", "/events/3"),
        ("/v1/events", "/events"),
        ("/Prod/v2/user/profile", "/user/profile"),
        ("", "/"),
    ],
)
def test_normalize_path(raw: str, expected: str) -> None:
    assert _normalize_path(raw) == expected


def test_parse_body_variants() -> None:
    assert _parse_body({"body": '{"a": 1}'}) == {"a": 1}
    assert _parse_body({"body": None}, required=False) == {}
    with pytest.raises(ValidationError):
        _parse_body({"body": None})
    with pytest.raises(ValidationError):
        _parse_body({"body": "[1, 2]"})
    with pytest.raises(ValidationError):
        _parse_body({"body": "{nope"})


def test_parse_body_base64() -> None:
    encoded = base64.b64encode(b'{"name": "Ana"}').decode("ascii")
    event = {"body": encoded, "isBase64Encoded": True}
    assert _parse_body(event) == {"name": "Ana"}


def test_path_id() -> None:
    assert _path_id("12", "event_id") == 12
    for bad in ("0", "-1", "abc", None):
        with pytest.raises(ValidationError):
            _path_id(bad, "event_id")


def test_cursor_roundtrip() -> None:
    cursor = _encode_cursor(42)
    assert _decode_cursor(cursor) == {"id": "42"}
    assert _parse_cursor(cursor) == 42
    assert _parse_cursor(None) is None
    with pytest.raises(CursorError):
        _parse_cursor("not-a-cursor")


class TestDispatch:
    def _routes(self, calls: list) -> tuple[Route, ...]:
        def get_item(event, item_id):
            calls.append(item_id)
            return {"statusCode": 200, "body": "{}"}

        def fail_validation(event):
            raise ValidationError("name is required", field="name")

        def fail_missing(event):
            raise NotFoundError("Event", 9)

        def fail_value(event):
            raise ValueError("Invalid decimal: x")

        def fail_crash(event):
            raise RuntimeError("boom")

        return (
            Route("GET", "/items/{item_id}", get_item),
            Route("POST", "/validation", fail_validation),
            Route("GET", "/missing", fail_missing),
            Route("GET", "/value", fail_value),
            Route("GET", "/crash", fail_crash),
        )

    def test_path_ids_become_ints(self) -> None:
        calls: list = []
        response = dispatch(make_event("GET", "/v1/items/7"), self._routes(calls), logger)
        assert response["statusCode"] == 200
        assert calls == [7]

    def test_bad_path_id_is_400(self) -> None:
        response = dispatch(make_event("GET", "/items/zero"), self._routes([]), logger)
        assert response["statusCode"] == 400

    def test_unknown_route_is_404(self) -> None:
        response = dispatch(make_event("DELETE", "/items/7"), self._routes([]), logger)
        assert response["statusCode"] == 404
        assert "Route not found" in body_of(response)["error"]

    def test_preflight(self) -> None:
        response = dispatch(make_event("OPTIONS", "/anything"), self._routes([]), logger)
        assert response["statusCode"] == 200
        assert "Access-Control-Allow-Origin" in response["headers"]

    def test_body_requires_json_content_type(self) -> None:
        event = make_event("POST", "/validation", {"x": 1}, headers={"Content-Type": "text/plain"})
        response = dispatch(event, self._routes([]), logger)
        assert response["statusCode"] == 400
        assert body_of(response)["error"] == "Content-Type must be application/json"

    @pytest.mark.parametrize(
        ("method", "path", "status"),
        [
            ("POST", "/validation", 400),
            ("GET", "/missing", 404),
            ("GET", "/value", 400),
            ("GET", "/crash", 500),
        ],
    )
    def test_errors_map_to_status(self, method: str, path: str, status: int) -> None:
        response = dispatch(make_event(method, path, {} if method == "POST" else None), self._routes([]), logger)
        assert response["statusCode"] == status
        assert "error" in body_of(response)


class TestCallerIdentity:
    def test_claims_identify_caller(self) -> None:
        event = make_event("GET", "/", sub="abc", email="a@example.com")
        assert _get_caller(event) == ("abc", "a@example.com")

    def test_lambda_authorizer_context(self) -> None:
        event = {
            "requestContext": {
                "authorizer": {"userSub": "xyz", "email": "x@example.com", "groups": "admin"}
            }
        }
        assert _get_caller(event) == ("xyz", "x@example.com")
        assert _is_admin(event)

    def test_anonymous(self) -> None:
        assert _get_caller(make_event("GET", "/")) == (None, None)
        with pytest.raises(AuthenticationError):
            _require_user_sub(make_event("GET", "/"))

    def test_bearer_token_is_verified(self, mocker) -> None:
        claims = TokenClaims(
            sub="tok-sub",
            email="t@example.com",
            groups=[],
            exp=0,
            iss="",
            token_use="id",
            raw_claims={},
        )
        verify = mocker.patch(
            "cachao.api.auth_context.decode_and_verify_token",
            return_value=claims,
        )
        event = make_event("GET", "/", headers={"Authorization": "Bearer abc.def.ghi"})
        assert _get_caller(event) == ("tok-sub", "t@example.com")
        verify.assert_called_once_with("abc.def.ghi")

    def test_invalid_bearer_token_is_anonymous(self, mocker) -> None:
        mocker.patch(
            "cachao.api.auth_context.decode_and_verify_token",
            side_effect=JWTValidationError("expired", reason="token_expired"),
        )
        event = make_event("GET", "/", headers={"Authorization": "Bearer abc.def.ghi"})
        assert _get_caller(event) == (None, None)

    def test_require_admin(self) -> None:
        assert _require_admin(make_event("GET", "/", sub="a", groups="admin,staff")) == "a"
        with pytest.raises(AuthorizationError):
            _require_admin(make_event("GET", "/", sub="a", groups="staff"))
        with pytest.raises(AuthenticationError):
            _require_admin(make_event("GET", "/"))
