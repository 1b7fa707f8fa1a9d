"""Tests for staff, flight and accommodation handlers."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / "backend" / "src"))

from conftest import OTHER_SUB, OWNER_SUB, body_of, make_event  # noqa: E402

from cachao.api.staff import lambda_handler  # noqa: E402
from cachao.db.models import Accommodation, EventStaff, StaffFlight, StaffRole  # noqa: E402


def call(method, path, body=None, sub=None, query=None):
    return lambda_handler(make_event(method, path, body, sub=sub, query=query), None)


@pytest.fixture
def hotel(db_session, sample_event):
    row = Accommodation(event_id=sample_event.id, name="Hotel Central", max_guests=2)
    db_session.add(row)
    db_session.commit()
    return row


class TestStaff:
    def test_owner_adds_staff(self, test_engine, sample_event, mock_s3) -> None:
        response = call(
            "POST",
            f"/events/{sample_event.id}/staff",
            {
                "name": "Luis Bachata",
                "email": " luis@example.com ",
                "role": "artist",
                "phone": "612 345 678",
                "country": "Spain",
                "styles": ["bachata", "kizomba"],
            },
            sub=OWNER_SUB,
        )
        assert response["statusCode"] == 201
        staff = body_of(response)["staff"]
        assert staff["email"] == "luis@example.com"
        assert staff["phone"] == "+34612345678"
        assert staff["role"] == "artist"

    @pytest.mark.parametrize("missing", ["name", "email", "role"])
    def test_required_fields(self, test_engine, sample_event, missing) -> None:
        body = {"name": "Luis", "email": "luis@example.com", "role": "staff"}
        del body[missing]
        response = call("POST", f"/events/{sample_event.id}/staff", body, sub=OWNER_SUB)
        assert response["statusCode"] == 400
        assert body_of(response)["error"] == f"{missing} is required"

    def test_unknown_role(self, test_engine, sample_event) -> None:
        response = call(
            "POST",
            f"/events/{sample_event.id}/staff",
            {"name": "Luis", "email": "luis@example.com", "role": "dj"},
            sub=OWNER_SUB,
        )
        assert response["statusCode"] == 400

    def test_list_is_public(self, test_engine, sample_staff, mock_s3) -> None:
        response = call("GET", f"/events/{sample_staff.event_id}/staff")
        assert [row["name"] for row in body_of(response)["staff"]] == ["Ana Salsa"]

    @pytest.mark.parametrize(("value", "expected"), [("false", False), ("true", True), (0, False)])
    def test_is_public_flag(self, test_engine, sample_staff, mock_s3, value, expected) -> None:
        path = f"/events/{sample_staff.event_id}/staff/{sample_staff.id}"
        response = call("PUT", path, {"is_public": value}, sub=OWNER_SUB)
        assert body_of(response)["staff"]["is_public"] is expected

    def test_non_owner_cannot_update(self, test_engine, sample_staff) -> None:
        path = f"/events/{sample_staff.event_id}/staff/{sample_staff.id}"
        assert call("PUT", path, {"bio": "x"}, sub=OTHER_SUB)["statusCode"] == 403

    def test_update_and_delete(self, test_engine, db_session, sample_staff, mock_s3) -> None:
        staff_id = sample_staff.id
        path = f"/events/{sample_staff.event_id}/staff/{staff_id}"
        updated = call("PUT", path, {"role": "staff", "city": "Madrid"}, sub=OWNER_SUB)
        assert body_of(updated)["staff"]["role"] == "staff"
        assert body_of(updated)["staff"]["city"] == "Madrid"

        deleted = call("DELETE", path, sub=OWNER_SUB)
        assert body_of(deleted)["message"] == "Staff member deleted"
        db_session.expire_all()
        assert db_session.get(EventStaff, staff_id) is None

    def test_staff_of_another_event_is_not_found(self, test_engine, db_session, sample_event, sample_staff) -> None:
        from cachao.db.models import Event

        other = Event(name="Other", start_date=sample_event.start_date, cognito_sub=OWNER_SUB)
        db_session.add(other)
        db_session.commit()

        response = call("PUT", f"/events/{other.id}/staff/{sample_staff.id}", {"bio": "x"}, sub=OWNER_SUB)
        assert response["statusCode"] == 404

    def test_artist_profile_hides_contact_details(self, test_engine, sample_staff, mock_s3) -> None:
        response = call("GET", f"/artists/{sample_staff.id}")
        artist = body_of(response)["artist"]
        assert artist["name"] == "Ana Salsa"
        assert artist["role"] == "artist"
        for private in ("email", "phone", "notes"):
            assert private not in artist

    def test_missing_artist(self, test_engine) -> None:
        response = call("GET", "/artists/404")
        assert response["statusCode"] == 404
        assert body_of(response)["error"] == "Artist not found"

    def test_image_upload_url(self, test_engine, mock_s3) -> None:
        response = call("POST", "/events/staff/image-upload-url", {"filename": "me.jpg"}, sub=OWNER_SUB)
        assert body_of(response)["s3_key"].startswith(f"events/staff/{OWNER_SUB}/")


class TestFlights:
    def test_staff_flight_lifecycle(self, test_engine, sample_staff) -> None:
        base = f"/events/{sample_staff.event_id}/staff/{sample_staff.id}/flights"
        created = call(
            "POST",
            base,
            {
                "flight_number": "ib 3170",
                "departure_datetime": "2030-07-09T10:00:00Z",
                "arrival_airport": "MAD",
            },
            sub=OWNER_SUB,
        )
        assert created["statusCode"] == 201
        flight = body_of(created)["flight"]
        assert flight["flight_number"] == "IB3170"
        assert flight["flight_type"] == "arrival"

        updated = call("PUT", f"{base}/{flight['id']}", {"flight_type": "departure"}, sub=OWNER_SUB)
        assert body_of(updated)["flight"]["flight_type"] == "departure"

        listed = body_of(call("GET", base))["flights"]
        assert [row["id"] for row in listed] == [flight["id"]]

        deleted = call("DELETE", f"{base}/{flight['id']}", sub=OWNER_SUB)
        assert body_of(deleted)["message"] == "Flight deleted"
        assert body_of(call("GET", base))["flights"] == []

    def test_event_flights_include_staff(self, test_engine, db_session, sample_staff) -> None:
        db_session.add(
            StaffFlight(event_id=sample_staff.event_id, staff_id=sample_staff.id, flight_number="UX1094")
        )
        db_session.commit()

        response = call("GET", f"/events/{sample_staff.event_id}/flights")
        flight = body_of(response)["flights"][0]
        assert flight["staff_name"] == "Ana Salsa"
        assert flight["staff_role"] == "artist"

    def test_event_flight_needs_staff_of_event(self, test_engine, sample_event) -> None:
        response = call(
            "POST",
            f"/events/{sample_event.id}/flights",
            {"staff_id": 999, "flight_number": "UX1094"},
            sub=OWNER_SUB,
        )
        assert response["statusCode"] == 404

    def test_lookup_requires_sign_in(self, test_engine) -> None:
        response = call("GET", "/flights/lookup", query={"flight_number": "UX1094", "date": "2030-07-09"})
        assert response["statusCode"] == 401

    def test_lookup(self, test_engine, mocker) -> None:
        lookup = mocker.patch(
            "cachao.api.staff.lookup_flight",
            return_value=[{"flight_number": "UX1094", "airline": "Air Europa"}],
        )
        response = call(
            "GET",
            "/flights/lookup",
            sub=OWNER_SUB,
            query={"flight_number": " UX1094 ", "date": "2030-07-09"},
        )
        assert body_of(response)["flights"][0]["airline"] == "Air Europa"
        lookup.assert_called_once_with("UX1094", "2030-07-09")

    def test_lookup_requires_date(self, test_engine) -> None:
        response = call("GET", "/flights/lookup", sub=OWNER_SUB, query={"flight_number": "UX1094"})
        assert response["statusCode"] == 400
        assert body_of(response)["error"] == "date is required"


class TestAccommodations:
    def test_create_requires_name(self, test_engine, sample_event) -> None:
        response = call("POST", f"/events/{sample_event.id}/accommodations", {"address": "x"}, sub=OWNER_SUB)
        assert response["statusCode"] == 400

    def test_create_and_update(self, test_engine, sample_event) -> None:
        created = call(
            "POST",
            f"/events/{sample_event.id}/accommodations",
            {"name": "Hostal Sol", "cost_per_night": "55.5", "check_in_date": "2030-07-09"},
            sub=OWNER_SUB,
        )
        accommodation = body_of(created)["accommodation"]
        assert accommodation["cost_per_night"] == 55.5
        assert accommodation["check_in_date"] == "2030-07-09"

        updated = call(
            "PUT",
            f"/events/{sample_event.id}/accommodations/{accommodation['id']}",
            {"max_guests": 4},
            sub=OWNER_SUB,
        )
        assert body_of(updated)["accommodation"]["max_guests"] == 4

    def test_assign_and_unassign(self, test_engine, hotel, sample_staff) -> None:
        base = f"/events/{hotel.event_id}/accommodations/{hotel.id}"
        assigned = call("POST", f"{base}/assign", {"staff_id": sample_staff.id}, sub=OWNER_SUB)
        assert assigned["statusCode"] == 201

        again = call("POST", f"{base}/assign", {"staff_id": sample_staff.id}, sub=OWNER_SUB)
        assert again["statusCode"] == 409

        listed = body_of(call("GET", f"/events/{hotel.event_id}/accommodations"))["accommodations"]
        assert listed[0]["assignments"][0]["staff_name"] == "Ana Salsa"

        mine = body_of(
            call("GET", f"/events/{hotel.event_id}/staff/{sample_staff.id}/accommodations")
        )["accommodations"]
        assert [row["name"] for row in mine] == ["Hotel Central"]

        removed = call("DELETE", f"{base}/assign/{sample_staff.id}", sub=OWNER_SUB)
        assert removed["statusCode"] == 200
        listed = body_of(call("GET", f"/events/{hotel.event_id}/accommodations"))["accommodations"]
        assert listed[0]["assignments"] == []

    def test_delete_removes_assignments(self, test_engine, db_session, hotel, sample_staff) -> None:
        hotel_id = hotel.id
        base = f"/events/{hotel.event_id}/accommodations/{hotel_id}"
        call("POST", f"{base}/assign", {"staff_id": sample_staff.id}, sub=OWNER_SUB)

        response = call("DELETE", base, sub=OWNER_SUB)
        assert body_of(response)["message"] == "Accommodation deleted"
        db_session.expire_all()
        assert db_session.get(Accommodation, hotel_id) is None

    def test_unknown_accommodation(self, test_engine, sample_event) -> None:
        response = call("DELETE", f"/events/{sample_event.id}/accommodations/77", sub=OWNER_SUB)
        assert response["statusCode"] == 404


def test_staff_role_values() -> None:
    assert [role.value for role in StaffRole] == ["staff", "artist"]
