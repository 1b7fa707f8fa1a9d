"""Staff, flight and accommodation API handlers.

Routes handled:
    POST   /events/staff/image-upload-url
    GET    /events/{id}/staff                          (public)
    POST   /events/{id}/staff
    PUT    /events/{id}/staff/{staffId}
    DELETE /events/{id}/staff/{staffId}
    GET    /artists/{id}                               (public)
    GET    /events/{id}/staff/{staffId}/flights
    POST   /events/{id}/staff/{staffId}/flights
    PUT    /events/{id}/staff/{staffId}/flights/{flightId}
    DELETE /events/{id}/staff/{staffId}/flights/{flightId}
    GET    /events/{id}/flights
    POST   /events/{id}/flights
    DELETE /events/{id}/flights/{flightId}
    GET    /flights/lookup?flight_number=&date=
    GET    /events/{id}/accommodations
    POST   /events/{id}/accommodations
    PUT    /events/{id}/accommodations/{accId}
    DELETE /events/{id}/accommodations/{accId}
    POST   /events/{id}/accommodations/{accId}/assign
    DELETE /events/{id}/accommodations/{accId}/assign/{staffId}
    GET    /events/{id}/staff/{staffId}/accommodations

Every write requires the caller to own the event.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping

from sqlalchemy.orm import Session

from cachao.api.auth_context import _require_event_owner, _require_user_sub
from cachao.api.common import Route, dispatch
from cachao.api.request import _parse_body, _path_id, _query_param, _require_fields
from cachao.api.schemas import ArtistProfileSchema
from cachao.db.engine import get_engine
from cachao.db.models import (
    Accommodation,
    AccommodationAssignment,
    EventStaff,
    FlightType,
    StaffFlight,
    StaffRole,
)
from cachao.db.repositories import (
    AccommodationRepository,
    AssignmentRepository,
    EventStaffRepository,
    StaffFlightRepository,
)
from cachao.exceptions import ConflictError, NotFoundError, ValidationError
from cachao.services import storage
from cachao.services.flights import lookup_flight
from cachao.utils import (
    json_response,
    parse_date,
    parse_datetime,
    parse_decimal,
    parse_bool,
    parse_enum,
    parse_int,
    sanitize_string,
    validate_email,
)
from cachao.utils.logging import configure_logging, get_logger, mask_email
from cachao.utils.validators import country_code, normalize_phone

configure_logging()
logger = get_logger(__name__)

_STAFF_TEXT = {
    "name": 200,
    "image_url": 500,
    "bio": 10000,
    "instagram_url": 500,
    "tiktok_url": 500,
    "youtube_url": 500,
    "website_url": 500,
    "country": 100,
    "city": 100,
    "partner_name": 200,
    "notes": 10000,
}
_FLIGHT_TEXT = {
    "flight_number": 20,
    "airline": 100,
    "departure_airport": 100,
    "arrival_airport": 100,
    "notes": 10000,
}
_ACCOMMODATION_TEXT = {
    "name": 200,
    "address": 500,
    "room_type": 100,
    "notes": 10000,
    "booking_reference": 100,
}


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Route staff, flight and accommodation requests."""
    return dispatch(event, _ROUTES, logger)


def _text_fields(body: Mapping[str, Any], limits: Mapping[str, int]) -> dict[str, Any]:
    return {
        name: sanitize_string(body.get(name), max_length=max_length)
        for name, max_length in limits.items()
        if name in body
    }


def _typed_fields(
    body: Mapping[str, Any],
    names: tuple[str, ...],
    parser: Callable[[Any], Any],
) -> dict[str, Any]:
    return {name: parser(body.get(name)) for name in names if name in body}


# --- Staff -----------------------------------------------------------------


def serialize_staff(row: EventStaff) -> dict[str, Any]:
    data = row.to_dict()
    data["image_url"] = storage.presign_read(row.image_url)
    return data


def _staff_fields(body: Mapping[str, Any]) -> dict[str, Any]:
    """Collect staff columns from a request body."""
    fields = _text_fields(body, _STAFF_TEXT)
    if "name" in fields and not fields["name"]:
        raise ValidationError("name is required", field="name")
    if "email" in body:
        fields["email"] = validate_email(body.get("email"))
    if "role" in body:
        role = parse_enum(body.get("role"), StaffRole)
        if role is None:
            raise ValidationError("role is required", field="role")
        fields["role"] = role
    if "phone" in body:
        region = country_code(body.get("country"))
        fields["phone"] = normalize_phone(body.get("phone"), region)
    if "partner_id" in body:
        partner_id = body.get("partner_id")
        fields["partner_id"] = _path_id(partner_id, "partner_id") if partner_id else None
    if "is_public" in body:
        fields["is_public"] = bool(parse_bool(body.get("is_public")))
    if "styles" in body:
        styles = body.get("styles")
        if styles is not None and not isinstance(styles, list):
            raise ValidationError("styles must be a list", field="styles")
        fields["styles"] = styles
    return fields


def _list_staff(event: Mapping[str, Any], event_id: int) -> dict[str, Any]:
    with Session(get_engine()) as session:
        rows = EventStaffRepository(session).find_by_event(event_id)
        staff = [serialize_staff(row) for row in rows]
    return json_response(200, {"success": True, "staff": staff}, event=event)


def _create_staff(event: Mapping[str, Any], event_id: int) -> dict[str, Any]:
    sub = _require_user_sub(event)
    body = _parse_body(event)
    _require_fields(body, "name", "email", "role")
    fields = _staff_fields(body)

    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        row = EventStaffRepository(session).create(EventStaff(event_id=event_id, **fields))
        session.commit()
        payload = serialize_staff(row)

    logger.info(
        "Staff member added",
        extra={"event_id": event_id, "email": mask_email(fields["email"])},
    )
    return json_response(201, {"success": True, "staff": payload}, event=event)


def _update_staff(event: Mapping[str, Any], event_id: int, staff_id: int) -> dict[str, Any]:
    sub = _require_user_sub(event)
    fields = _staff_fields(_parse_body(event))

    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        repo = EventStaffRepository(session)
        row = repo.get_for_event(event_id, staff_id)
        if row is None:
            raise NotFoundError("Staff member", staff_id)
        row = repo.apply_changes(row, fields)
        session.commit()
        payload = serialize_staff(row)
    return json_response(200, {"success": True, "staff": payload}, event=event)


def _delete_staff(event: Mapping[str, Any], event_id: int, staff_id: int) -> dict[str, Any]:
    sub = _require_user_sub(event)
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        repo = EventStaffRepository(session)
        row = repo.get_for_event(event_id, staff_id)
        if row is None:
            raise NotFoundError("Staff member", staff_id)
        image_url = row.image_url
        repo.delete(row)
        session.commit()

    storage.delete_object_quietly(image_url)
    return json_response(
        200,
        {"success": True, "message": "Staff member deleted"},
        event=event,
    )


def _get_artist(event: Mapping[str, Any], artist_id: int) -> dict[str, Any]:
    """Public artist profile without contact details."""
    with Session(get_engine()) as session:
        row = EventStaffRepository(session).get_by_id(artist_id)
        if row is None:
            raise NotFoundError("Artist", artist_id)
        artist = ArtistProfileSchema.model_validate(row)
        artist.image_url = storage.presign_read(row.image_url)
    return json_response(
        200,
        {"success": True, "artist": artist.model_dump(mode="json")},
        event=event,
    )


def _staff_image_upload_url(event: Mapping[str, Any]) -> dict[str, Any]:
    sub = _require_user_sub(event)
    body = _parse_body(event, required=False)
    filename = str(body.get("filename") or "photo.jpg")
    content_type = str(body.get("content_type") or "image/jpeg")
    if not content_type.startswith("image/"):
        raise ValidationError("content_type must be an image", field="content_type")

    key = storage.timestamped_key(f"events/staff/{sub}", filename)
    return json_response(
        200,
        {
            "success": True,
            "upload_url": storage.presign_upload(key, content_type),
            "s3_key": key,
            "image_url": storage.object_url(key),
            "expires_in": storage.UPLOAD_URL_EXPIRES,
        },
        event=event,
    )


# --- Flights ---------------------------------------------------------------


def _flight_fields(body: Mapping[str, Any]) -> dict[str, Any]:
    fields = _text_fields(body, _FLIGHT_TEXT)
    if "flight_number" in fields:
        if not fields["flight_number"]:
            raise ValidationError("flight_number is required", field="flight_number")
        fields["flight_number"] = fields["flight_number"].replace(" ", "").upper()
    fields.update(
        _typed_fields(body, ("departure_datetime", "arrival_datetime"), parse_datetime)
    )
    if "flight_type" in body:
        fields["flight_type"] = (
            parse_enum(body.get("flight_type"), FlightType) or FlightType.ARRIVAL
        )
    return fields


def _require_staff(session: Session, event_id: int, staff_id: int) -> EventStaff:
    row = EventStaffRepository(session).get_for_event(event_id, staff_id)
    if row is None:
        raise NotFoundError("Staff member", staff_id)
    return row


def _insert_flight(
    event: Mapping[str, Any],
    event_id: int,
    staff_id: int,
    fields: dict[str, Any],
) -> dict[str, Any]:
    sub = _require_user_sub(event)
    fields.setdefault("flight_type", FlightType.ARRIVAL)
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        _require_staff(session, event_id, staff_id)
        row = StaffFlightRepository(session).create(
            StaffFlight(event_id=event_id, staff_id=staff_id, **fields)
        )
        session.commit()
        payload = row.to_dict()
    return json_response(201, {"success": True, "flight": payload}, event=event)


def _list_staff_flights(
    event: Mapping[str, Any],
    event_id: int,
    staff_id: int,
) -> dict[str, Any]:
    with Session(get_engine()) as session:
        rows = StaffFlightRepository(session).find_by_staff(event_id, staff_id)
        flights = [row.to_dict() for row in rows]
    return json_response(200, {"success": True, "flights": flights}, event=event)


def _create_staff_flight(
    event: Mapping[str, Any],
    event_id: int,
    staff_id: int,
) -> dict[str, Any]:
    body = _parse_body(event)
    _require_fields(body, "flight_number")
    return _insert_flight(event, event_id, staff_id, _flight_fields(body))


def _update_staff_flight(
    event: Mapping[str, Any],
    event_id: int,
    staff_id: int,
    flight_id: int,
) -> dict[str, Any]:
    sub = _require_user_sub(event)
    fields = _flight_fields(_parse_body(event))
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        repo = StaffFlightRepository(session)
        row = repo.get_for_event(event_id, flight_id, staff_id=staff_id)
        if row is None:
            raise NotFoundError("Flight", flight_id)
        row = repo.apply_changes(row, fields)
        session.commit()
        payload = row.to_dict()
    return json_response(200, {"success": True, "flight": payload}, event=event)


def _remove_flight(
    event: Mapping[str, Any],
    event_id: int,
    flight_id: int,
    staff_id: int | None = None,
) -> dict[str, Any]:
    sub = _require_user_sub(event)
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        repo = StaffFlightRepository(session)
        row = repo.get_for_event(event_id, flight_id, staff_id=staff_id)
        if row is None:
            raise NotFoundError("Flight", flight_id)
        repo.delete(row)
        session.commit()
    return json_response(200, {"success": True, "message": "Flight deleted"}, event=event)


def _delete_staff_flight(
    event: Mapping[str, Any],
    event_id: int,
    staff_id: int,
    flight_id: int,
) -> dict[str, Any]:
    return _remove_flight(event, event_id, flight_id, staff_id=staff_id)


def _list_event_flights(event: Mapping[str, Any], event_id: int) -> dict[str, Any]:
    with Session(get_engine()) as session:
        rows = StaffFlightRepository(session).find_by_event_with_staff(event_id)
        flights = [
            {**flight.to_dict(), "staff_name": name, "staff_role": role}
            for flight, name, role in rows
        ]
    return json_response(200, {"success": True, "flights": flights}, event=event)


def _create_event_flight(event: Mapping[str, Any], event_id: int) -> dict[str, Any]:
    body = _parse_body(event)
    _require_fields(body, "staff_id", "flight_number")
    staff_id = _path_id(body.get("staff_id"), "staff_id")
    return _insert_flight(event, event_id, staff_id, _flight_fields(body))


def _delete_event_flight(
    event: Mapping[str, Any],
    event_id: int,
    flight_id: int,
) -> dict[str, Any]:
    return _remove_flight(event, event_id, flight_id)


def _lookup_flight(event: Mapping[str, Any]) -> dict[str, Any]:
    _require_user_sub(event)
    flight_number = (_query_param(event, "flight_number") or "").strip()
    if not flight_number:
        raise ValidationError("flight_number is required", field="flight_number")
    flight_date = parse_date(_query_param(event, "date"))
    if flight_date is None:
        raise ValidationError("date is required", field="date")

    flights = lookup_flight(flight_number, flight_date.isoformat())
    return json_response(200, {"success": True, "flights": flights}, event=event)


# --- Accommodations --------------------------------------------------------


def _accommodation_fields(body: Mapping[str, Any]) -> dict[str, Any]:
    fields = _text_fields(body, _ACCOMMODATION_TEXT)
    if "name" in fields and not fields["name"]:
        raise ValidationError("name is required", field="name")
    fields.update(_typed_fields(body, ("check_in_date", "check_out_date"), parse_date))
    fields.update(_typed_fields(body, ("max_guests",), parse_int))
    fields.update(_typed_fields(body, ("cost_per_night",), parse_decimal))
    return fields


def _require_accommodation(
    session: Session,
    event_id: int,
    accommodation_id: int,
) -> Accommodation:
    row = AccommodationRepository(session).get_for_event(event_id, accommodation_id)
    if row is None:
        raise NotFoundError("Accommodation", accommodation_id)
    return row


def _list_accommodations(event: Mapping[str, Any], event_id: int) -> dict[str, Any]:
    with Session(get_engine()) as session:
        rows = AccommodationRepository(session).find_by_event(event_id)
        assignments: dict[int, list[dict[str, Any]]] = {row.id: [] for row in rows}
        for assignment, name, role in AssignmentRepository(
            session
        ).find_by_accommodations(list(assignments)):
            assignments[assignment.accommodation_id].append(
                {**assignment.to_dict(), "staff_name": name, "staff_role": role}
            )
        accommodations = [
            {**row.to_dict(), "assignments": assignments[row.id]} for row in rows
        ]
    return json_response(
        200,
        {"success": True, "accommodations": accommodations},
        event=event,
    )


def _create_accommodation(event: Mapping[str, Any], event_id: int) -> dict[str, Any]:
    sub = _require_user_sub(event)
    body = _parse_body(event)
    _require_fields(body, "name")
    fields = _accommodation_fields(body)
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        row = AccommodationRepository(session).create(
            Accommodation(event_id=event_id, **fields)
        )
        session.commit()
        payload = row.to_dict()
    return json_response(
        201,
        {"success": True, "accommodation": payload},
        event=event,
    )


def _update_accommodation(
    event: Mapping[str, Any],
    event_id: int,
    accommodation_id: int,
) -> dict[str, Any]:
    sub = _require_user_sub(event)
    fields = _accommodation_fields(_parse_body(event))
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        row = _require_accommodation(session, event_id, accommodation_id)
        row = AccommodationRepository(session).apply_changes(row, fields)
        session.commit()
        payload = row.to_dict()
    return json_response(
        200,
        {"success": True, "accommodation": payload},
        event=event,
    )


def _delete_accommodation(
    event: Mapping[str, Any],
    event_id: int,
    accommodation_id: int,
) -> dict[str, Any]:
    sub = _require_user_sub(event)
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        row = _require_accommodation(session, event_id, accommodation_id)
        AssignmentRepository(session).delete_for_accommodation(accommodation_id)
        AccommodationRepository(session).delete(row)
        session.commit()
    return json_response(
        200,
        {"success": True, "message": "Accommodation deleted"},
        event=event,
    )


def _assign_accommodation(
    event: Mapping[str, Any],
    event_id: int,
    accommodation_id: int,
) -> dict[str, Any]:
    sub = _require_user_sub(event)
    body = _parse_body(event)
    _require_fields(body, "staff_id")
    staff_id = _path_id(body.get("staff_id"), "staff_id")

    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        _require_accommodation(session, event_id, accommodation_id)
        _require_staff(session, event_id, staff_id)
        repo = AssignmentRepository(session)
        if repo.find_one(accommodation_id, staff_id) is not None:
            raise ConflictError("Staff already assigned to this accommodation")
        repo.create(
            AccommodationAssignment(
                accommodation_id=accommodation_id,
                staff_id=staff_id,
                check_in_date=parse_date(body.get("check_in_date")),
                check_out_date=parse_date(body.get("check_out_date")),
                notes=sanitize_string(body.get("notes"), max_length=10000),
            )
        )
        session.commit()
    return json_response(
        201,
        {"success": True, "message": "Staff assigned to accommodation"},
        event=event,
    )


def _unassign_accommodation(
    event: Mapping[str, Any],
    event_id: int,
    accommodation_id: int,
    staff_id: int,
) -> dict[str, Any]:
    sub = _require_user_sub(event)
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        _require_accommodation(session, event_id, accommodation_id)
        repo = AssignmentRepository(session)
        assignment = repo.find_one(accommodation_id, staff_id)
        if assignment is not None:
            repo.delete(assignment)
        session.commit()
    return json_response(
        200,
        {"success": True, "message": "Staff unassigned from accommodation"},
        event=event,
    )


def _list_staff_accommodations(
    event: Mapping[str, Any],
    event_id: int,
    staff_id: int,
) -> dict[str, Any]:
    with Session(get_engine()) as session:
        rows = AccommodationRepository(session).find_for_staff(event_id, staff_id)
        accommodations = [
            {
                **accommodation.to_dict(),
                "assigned_check_in": assignment.check_in_date,
                "assigned_check_out": assignment.check_out_date,
                "assignment_notes": assignment.notes,
            }
            for accommodation, assignment in rows
        ]
    return json_response(
        200,
        {"success": True, "accommodations": accommodations},
        event=event,
    )


_ROUTES = (
    Route("POST", "/events/staff/image-upload-url", _staff_image_upload_url),
    Route("GET", "/flights/lookup", _lookup_flight),
    Route("GET", "/artists/{artist_id}", _get_artist),
    Route("GET", "/events/{event_id}/staff", _list_staff),
    Route("POST", "/events/{event_id}/staff", _create_staff),
    Route("PUT", "/events/{event_id}/staff/{staff_id}", _update_staff),
    Route("DELETE", "/events/{event_id}/staff/{staff_id}", _delete_staff),
    Route("GET", "/events/{event_id}/staff/{staff_id}/flights", _list_staff_flights),
    Route("POST", "/events/{event_id}/staff/{staff_id}/flights", _create_staff_flight),
    Route(
        "PUT",
        "/events/{event_id}/staff/{staff_id}/flights/{flight_id}",
        _update_staff_flight,
    ),
    Route(
        "DELETE",
        "/events/{event_id}/staff/{staff_id}/flights/{flight_id}",
        _delete_staff_flight,
    ),
    Route(
        "GET",
        "/events/{event_id}/staff/{staff_id}/accommodations",
        _list_staff_accommodations,
    ),
    Route("GET", "/events/{event_id}/flights", _list_event_flights),
    Route("POST", "/events/{event_id}/flights", _create_event_flight),
    Route("DELETE", "/events/{event_id}/flights/{flight_id}", _delete_event_flight),
    Route("GET", "/events/{event_id}/accommodations", _list_accommodations),
    Route("POST", "/events/{event_id}/accommodations", _create_accommodation),
    Route(
        "PUT",
        "/events/{event_id}/accommodations/{accommodation_id}",
        _update_accommodation,
    ),
    Route(
        "DELETE",
        "/events/{event_id}/accommodations/{accommodation_id}",
        _delete_accommodation,
    ),
    Route(
        "POST",
        "/events/{event_id}/accommodations/{accommodation_id}/assign",
        _assign_accommodation,
    ),
    Route(
        "DELETE",
        "/events/{event_id}/accommodations/{accommodation_id}/assign/{staff_id}",
        _unassign_accommodation,
    ),
)
