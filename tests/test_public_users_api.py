"""Tests for public profiles and nickname handlers."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / "backend" / "src"))

from conftest import OTHER_SUB, OWNER_SUB, body_of, make_event  # noqa: E402

from cachao.api.public_users import lambda_handler  # noqa: E402
from cachao.db.models import User, Video  # noqa: E402


def call(method, path, body=None, sub=None):
    return lambda_handler(make_event(method, path, body, sub=sub), None)


@pytest.fixture
def dancer(db_session):
    user = User(
        cognito_sub=OWNER_SUB,
        email="owner@example.com",
        name="Maria",
        nickname="salsaqueen",
        bio="Dancing since 2010",
        dance_styles=["salsa"],
    )
    db_session.add(user)
    db_session.commit()
    return user


class TestCheckNickname:
    def test_available(self, test_engine) -> None:
        assert body_of(call("GET", "/users/check-nickname/NewDancer"))["available"] is True

    def test_taken_is_case_insensitive(self, test_engine, dancer) -> None:
        assert body_of(call("GET", "/users/check-nickname/SalsaQueen"))["available"] is False

    @pytest.mark.parametrize(("nickname", "reason"), [("ab", "Invalid format"), ("admin", "Reserved")])
    def test_unusable(self, test_engine, nickname, reason) -> None:
        body = body_of(call("GET", f"/users/check-nickname/{nickname}"))
        assert body["available"] is False
        assert body["reason"] == reason


class TestSetNickname:
    def test_creates_user_row(self, test_engine, db_session) -> None:
        response = call("PATCH", "/user/nickname", {"nickname": "Bachatero"}, sub=OTHER_SUB)

        assert body_of(response)["nickname"] == "bachatero"
        assert db_session.get(User, OTHER_SUB).nickname == "bachatero"

    def test_conflict(self, test_engine, dancer) -> None:
        response = call("PATCH", "/user/nickname", {"nickname": "salsaqueen"}, sub=OTHER_SUB)
        assert response["statusCode"] == 409

    def test_keeping_own_nickname(self, test_engine, dancer) -> None:
        response = call("PATCH", "/user/nickname", {"nickname": "SALSAQUEEN"}, sub=OWNER_SUB)
        assert response["statusCode"] == 200

    @pytest.mark.parametrize(
        ("nickname", "error"),
        [
            ("", "Nickname is required"),
            ("support", "Nickname is reserved"),
            ("no spaces", "Invalid nickname format"),
        ],
    )
    def test_rejected(self, test_engine, nickname, error) -> None:
        response = call("PATCH", "/user/nickname", {"nickname": nickname}, sub=OTHER_SUB)
        assert response["statusCode"] == 400
        assert body_of(response)["error"] == error

    def test_requires_sign_in(self, test_engine) -> None:
        assert call("PATCH", "/user/nickname", {"nickname": "x_y_z"})["statusCode"] == 401


class TestPublicProfile:
    def test_profile_hides_private_fields(self, test_engine, dancer, mock_s3) -> None:
        profile = body_of(call("GET", "/users/SalsaQueen"))["profile"]
        assert profile["nickname"] == "salsaqueen"
        assert profile["bio"] == "Dancing since 2010"
        assert "email" not in profile
        assert "cognito_sub" not in profile

    def test_unknown_user(self, test_engine) -> None:
        response = call("GET", "/users/nobody")
        assert response["statusCode"] == 404
        assert body_of(response)["error"] == "User not found"

    def test_videos(self, test_engine, db_session, dancer, sample_album, mock_s3) -> None:
        db_session.add(
            Video(
                cognito_sub=dancer.cognito_sub,
                event_id=sample_album.event_id,
                album_id=sample_album.id,
                title="Shines",
                video_url="videos/1-shines.mp4",
                s3_key="videos/1-shines.mp4",
            )
        )
        db_session.commit()

        videos = body_of(call("GET", "/users/salsaqueen/videos"))["videos"]
        assert videos[0]["title"] == "Shines"
        assert videos[0]["event_name"] == "Cachao Summer Festival"
        assert videos[0]["video_url"] == "https://signed.test/get_object/videos/1-shines.mp4"
