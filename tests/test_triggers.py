"""Tests for the create-user and post-confirmation entrypoints."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / "backend" / "src"))

from cachao.api.triggers import create_user_handler, post_confirmation_handler  # noqa: E402
from cachao.db.models import User  # noqa: E402
from cachao.exceptions import ValidationError  # noqa: E402


def confirmation_event(**attributes) -> dict:
    return {
        "triggerSource": "PostConfirmation_ConfirmSignUp",
        "userName": "user-name-1",
        "request": {"userAttributes": attributes},
        "response": {},
    }


class TestCreateUser:
    def test_creates_cognito_user_and_row(self, test_engine, db_session, mocker) -> None:
        ensure = mocker.patch(
            "cachao.services.identity.ensure_user",
            return_value=("sub-new", True),
        )

        result = create_user_handler(
            json.dumps({"email": "new@example.com", "name": " New Dancer "}),
            None,
        )

        assert result == {"success": True, "cognito_sub": "sub-new", "created": True}
        ensure.assert_called_once_with("new@example.com", "New Dancer")
        user = db_session.get(User, "sub-new")
        assert user.email == "new@example.com"
        assert user.name == "New Dancer"

    def test_existing_user_is_refreshed(self, test_engine, db_session, mocker) -> None:
        db_session.add(User(cognito_sub="sub-old", email="old@example.com", name="Old"))
        db_session.commit()
        mocker.patch("cachao.services.identity.ensure_user", return_value=("sub-old", False))

        result = create_user_handler({"email": "old@example.com", "name": "Renamed"}, None)

        assert result["created"] is False
        db_session.expire_all()
        assert db_session.get(User, "sub-old").name == "Renamed"

    @pytest.mark.parametrize(
        "payload",
        ["not json", ["a", "list"], {"email": "x@example.com"}],
    )
    def test_rejects_bad_payloads(self, payload) -> None:
        with pytest.raises(ValidationError):
            create_user_handler(payload, None)

    def test_rejects_bad_email(self) -> None:
        with pytest.raises(ValueError):
            create_user_handler({"email": "nope", "name": "X"}, None)


class TestPostConfirmation:
    def test_stores_user(self, test_engine, db_session) -> None:
        event = confirmation_event(sub="sub-1", email="maria.lopez@example.com")

        assert post_confirmation_handler(event, None) is event

        user = db_session.get(User, "sub-1")
        assert user.email == "maria.lopez@example.com"
        assert user.name == "maria.lopez"

    def test_prefers_name_attribute(self, test_engine, db_session) -> None:
        post_confirmation_handler(confirmation_event(sub="sub-2", email="a@example.com", name="Maria"), None)
        assert db_session.get(User, "sub-2").name == "Maria"

    def test_falls_back_to_user_name(self, test_engine, db_session) -> None:
        post_confirmation_handler(confirmation_event(email="b@example.com"), None)
        assert db_session.get(User, "user-name-1").name == "b"

    def test_other_triggers_are_ignored(self, test_engine, db_session) -> None:
        event = confirmation_event(sub="sub-3", email="c@example.com")
        event["triggerSource"] = "PostConfirmation_ConfirmForgotPassword"

        assert post_confirmation_handler(event, None) is event
        assert db_session.get(User, "sub-3") is None

    def test_database_errors_do_not_block_sign_up(self, mocker) -> None:
        mocker.patch("cachao.api.triggers.get_engine", side_effect=RuntimeError("db down"))
        event = confirmation_event(sub="sub-4", email="d@example.com")
        assert post_confirmation_handler(event, None) is event
