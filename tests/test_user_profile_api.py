"""Tests for the signed-in user's profile and dashboard lists."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1] / "backend" / "src"))

from conftest import OWNER_EMAIL, OWNER_SUB, body_of, make_event  # noqa: E402

from cachao.api.user_profile import lambda_handler  # noqa: E402
from cachao.db.models import (  # noqa: E402
    Event,
    EventStaff,
    OrderStatus,
    StaffRole,
    TicketOrder,
    User,
    Video,
)

DANCER_SUB = "dancer-sub-0003"
DANCER_EMAIL = "Ana@Example.com"


def call(method, path, body=None, sub=DANCER_SUB, email=DANCER_EMAIL):
    return lambda_handler(make_event(method, path, body, sub=sub, email=email), None)


class TestProfile:
    def test_first_read_creates_profile(self, test_engine, db_session, mock_s3) -> None:
        response = call("GET", "/user/profile")

        profile = body_of(response)["profile"]
        assert profile["cognito_sub"] == DANCER_SUB
        assert profile["name"] == "Ana"
        assert db_session.get(User, DANCER_SUB) is not None

    def test_requires_sign_in(self, test_engine) -> None:
        response = lambda_handler(make_event("GET", "/user/profile"), None)
        assert response["statusCode"] == 401

    def test_update(self, test_engine, mock_s3) -> None:
        response = call(
            "PATCH",
            "/user/profile",
            {
                "bio": " Salsa on2 ",
                "dance_styles": ["salsa", "bachata"],
                "photo_url": "users/dancer/photos/1-me.jpg",
            },
        )

        profile = body_of(response)["profile"]
        assert profile["bio"] == "Salsa on2"
        assert profile["dance_styles"] == ["salsa", "bachata"]
        assert profile["photo_url"] == "https://signed.test/get_object/users/dancer/photos/1-me.jpg"

    def test_dance_styles_must_be_list(self, test_engine) -> None:
        response = call("PATCH", "/user/profile", {"dance_styles": "salsa"})
        assert response["statusCode"] == 400

    def test_photo_upload_url(self, test_engine, mock_s3) -> None:
        response = call(
            "POST",
            "/user/profile-photo-upload-url",
            {"filename": "me.png", "file_size": 2048, "mime_type": "image/png"},
        )
        assert body_of(response)["s3_key"].startswith(f"users/{DANCER_SUB}/photos/")

    def test_photo_upload_needs_size(self, test_engine, mock_s3) -> None:
        response = call("POST", "/user/profile-photo-upload-url", {"filename": "me.png", "file_size": 0})
        assert response["statusCode"] == 400


class TestDashboard:
    def test_events_merge_owned_and_staffed(self, test_engine, db_session, sample_event, mock_s3) -> None:
        mine = Event(
            name="Dancer Weekender",
            start_date=datetime(2031, 1, 10, tzinfo=timezone.utc),
            cognito_sub=DANCER_SUB,
        )
        db_session.add(mine)
        db_session.add(
            EventStaff(
                event_id=sample_event.id,
                name="Ana",
                email=" ana@example.com",
                role=StaffRole.ARTIST,
            )
        )
        db_session.commit()

        response = call("GET", "/user/events")

        body = body_of(response)
        assert body["count"] == 2
        assert [(e["name"], e["user_role"]) for e in body["events"]] == [
            ("Dancer Weekender", "owner"),
            ("Cachao Summer Festival", "artist"),
        ]

    def test_tickets_match_sub_or_email(self, test_engine, db_session, sample_ticket, mock_s3) -> None:
        common = {
            "event_id": sample_ticket.event_id,
            "ticket_id": sample_ticket.id,
            "quantity": 1,
            "unit_price": Decimal("100.00"),
            "discount_amount": Decimal("0.00"),
            "total_amount": Decimal("100.00"),
            "status": OrderStatus.PAID,
        }
        db_session.add_all(
            [
                TicketOrder(cognito_sub=DANCER_SUB, email="other@example.com", **common),
                TicketOrder(cognito_sub=None, email="ana@example.com", **common),
                TicketOrder(cognito_sub=OWNER_SUB, email=OWNER_EMAIL, **common),
            ]
        )
        db_session.commit()

        body = body_of(call("GET", "/user/tickets"))
        assert body["count"] == 2
        assert {order["ticket_name"] for order in body["orders"]} == {"Full Pass"}
        assert body["orders"][0]["event_name"] == "Cachao Summer Festival"

    def test_videos(self, test_engine, db_session, sample_album, mock_s3) -> None:
        db_session.add(
            Video(
                cognito_sub=DANCER_SUB,
                event_id=sample_album.event_id,
                album_id=sample_album.id,
                title="Shines",
                video_url="videos/1-shines.mp4",
                s3_key="videos/1-shines.mp4",
            )
        )
        db_session.commit()

        body = body_of(call("GET", "/user/videos"))
        assert body["count"] == 1
        assert body["videos"][0]["album_name"] == "Saturday Social"
        assert body["videos"][0]["event_name"] == "Cachao Summer Festival"
