"""Ticket, discount, discount code and order API handlers.

Routes handled:
    GET    /events/{id}/tickets                               (public)
    POST   /events/{id}/tickets
    PUT    /events/{id}/tickets/{ticketId}
    DELETE /events/{id}/tickets/{ticketId}
    POST   /events/{id}/tickets/{ticketId}/image-upload-url
    GET    /events/{id}/tickets/{ticketId}/price              (public quote)
    GET    /events/{id}/tickets/{ticketId}/discounts          (public)
    POST   /events/{id}/tickets/{ticketId}/discounts
    PUT    /events/{id}/tickets/{ticketId}/discounts/{discountId}
    DELETE /events/{id}/tickets/{ticketId}/discounts/{discountId}
    GET    /events/{id}/discount-codes
    POST   /events/{id}/discount-codes
    PUT    /events/{id}/discount-codes/{codeId}
    DELETE /events/{id}/discount-codes/{codeId}
    GET    /events/{id}/ticket-orders
    PATCH  /events/{id}/ticket-orders/{orderId}/validate
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping

from sqlalchemy.orm import Session

from cachao.api.auth_context import _require_event_owner, _require_user_sub
from cachao.api.common import Route, dispatch
from cachao.api.request import _parse_body, _query_param, _require_fields
from cachao.api.schemas import PriceQuoteSchema
from cachao.db.engine import get_engine
from cachao.db.models import DiscountCode, DiscountType, Ticket, TicketDiscount
from cachao.db.repositories import (
    DiscountCodeRepository,
    TicketDiscountRepository,
    TicketOrderRepository,
    TicketRepository,
)
from cachao.exceptions import ConflictError, NotFoundError, ValidationError
from cachao.services import storage
from cachao.services.pricing import price_ticket
from cachao.utils import (
    json_response,
    parse_bool,
    parse_date,
    parse_datetime,
    parse_decimal,
    parse_enum,
    parse_int,
    sanitize_string,
)
from cachao.utils.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

_HUNDRED = Decimal(100)


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Route ticket requests."""
    return dispatch(event, _ROUTES, logger)


def _non_negative(value: Any, field: str) -> Decimal:
    amount = parse_decimal(value)
    if amount is None:
        raise ValidationError(f"{field} is required", field=field)
    if amount < 0:
        raise ValidationError(f"{field} must not be negative", field=field)
    return amount


def _optional_cap(value: Any, field: str) -> int | None:
    """Parse an optional limit; 0 and empty mean unlimited."""
    count = parse_int(value)
    if count is not None and count < 0:
        raise ValidationError(f"{field} must not be negative", field=field)
    return count or None


def _discount_fields(body: Mapping[str, Any], current: Any = None) -> dict[str, Any]:
    """Parse ``discount_type`` / ``discount_value`` shared by both discount kinds.

    ``current`` is the row being updated, so a percentage cap is checked
    against whichever of type and value the request leaves unchanged.
    """
    fields: dict[str, Any] = {}
    if "discount_type" in body:
        discount_type = parse_enum(body.get("discount_type"), DiscountType)
        if discount_type is None:
            raise ValidationError("discount_type is required", field="discount_type")
        fields["discount_type"] = discount_type
    if "discount_value" in body:
        fields["discount_value"] = _non_negative(
            body.get("discount_value"),
            "discount_value",
        )

    discount_type = fields.get("discount_type", getattr(current, "discount_type", None))
    discount_value = fields.get(
        "discount_value",
        getattr(current, "discount_value", None),
    )
    if (
        discount_type == DiscountType.PERCENTAGE
        and discount_value is not None
        and Decimal(discount_value) > _HUNDRED
    ):
        raise ValidationError(
            "Percentage discount cannot exceed 100",
            field="discount_value",
        )
    return fields


# --- Tickets ---------------------------------------------------------------


def serialize_ticket(row: Ticket) -> dict[str, Any]:
    data = row.to_dict()
    data["image_url"] = storage.presign_read(row.image_url)
    return data


def _ticket_fields(body: Mapping[str, Any]) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    if "name" in body:
        fields["name"] = sanitize_string(body.get("name"), max_length=200)
        if not fields["name"]:
            raise ValidationError("name is required", field="name")
    if "description" in body:
        fields["description"] = sanitize_string(body.get("description"), max_length=5000)
    if "image_url" in body:
        fields["image_url"] = sanitize_string(body.get("image_url"), max_length=500)
    if "price" in body:
        fields["price"] = _non_negative(body.get("price"), "price")
    if "max_quantity" in body:
        fields["max_quantity"] = _optional_cap(body.get("max_quantity"), "max_quantity")
    if "is_active" in body:
        fields["is_active"] = bool(parse_bool(body.get("is_active")))
    return fields


def _require_ticket(session: Session, event_id: int, ticket_id: int) -> Ticket:
    row = TicketRepository(session).get_for_event(event_id, ticket_id)
    if row is None:
        raise NotFoundError("Ticket", ticket_id)
    return row


def _list_tickets(event: Mapping[str, Any], event_id: int) -> dict[str, Any]:
    with Session(get_engine()) as session:
        tickets = [
            serialize_ticket(row)
            for row in TicketRepository(session).find_by_event(event_id)
        ]
    return json_response(200, {"success": True, "tickets": tickets}, event=event)


def _create_ticket(event: Mapping[str, Any], event_id: int) -> dict[str, Any]:
    sub = _require_user_sub(event)
    body = _parse_body(event)
    _require_fields(body, "name", "price")
    fields = _ticket_fields(body)
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        row = TicketRepository(session).create(Ticket(event_id=event_id, **fields))
        session.commit()
        payload = serialize_ticket(row)
    logger.info("Ticket created", extra={"event_id": event_id, "ticket_id": payload["id"]})
    return json_response(201, {"success": True, "ticket": payload}, event=event)


def _update_ticket(event: Mapping[str, Any], event_id: int, ticket_id: int) -> dict[str, Any]:
    sub = _require_user_sub(event)
    fields = _ticket_fields(_parse_body(event))
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        row = _require_ticket(session, event_id, ticket_id)
        row = TicketRepository(session).apply_changes(row, fields)
        session.commit()
        payload = serialize_ticket(row)
    return json_response(200, {"success": True, "ticket": payload}, event=event)


def _delete_ticket(event: Mapping[str, Any], event_id: int, ticket_id: int) -> dict[str, Any]:
    sub = _require_user_sub(event)
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        row = _require_ticket(session, event_id, ticket_id)
        image_url = row.image_url
        TicketRepository(session).delete(row)
        session.commit()
    storage.delete_object_quietly(image_url)
    return json_response(200, {"success": True, "message": "Ticket deleted"}, event=event)


def _ticket_image_upload_url(
    event: Mapping[str, Any],
    event_id: int,
    ticket_id: int,
) -> dict[str, Any]:
    sub = _require_user_sub(event)
    body = _parse_body(event)
    _require_fields(body, "filename")
    content_type = str(body.get("mime_type") or body.get("content_type") or "image/jpeg")

    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        _require_ticket(session, event_id, ticket_id)

    key = storage.timestamped_key(
        f"events/{event_id}/tickets/{ticket_id}",
        str(body["filename"]),
    )
    return json_response(
        200,
        {
            "success": True,
            "upload_url": storage.presign_upload(key, content_type),
            "s3_key": key,
            "s3_url": storage.object_url(key),
            "expires_in": storage.UPLOAD_URL_EXPIRES,
        },
        event=event,
    )


def _quote_price(event: Mapping[str, Any], event_id: int, ticket_id: int) -> dict[str, Any]:
    """Price a prospective purchase without creating an order."""
    quantity = parse_int(_query_param(event, "quantity"))
    if quantity is None:
        quantity = 1
    if quantity < 1:
        raise ValidationError("quantity must be at least 1", field="quantity")
    with Session(get_engine()) as session:
        ticket = _require_ticket(session, event_id, ticket_id)
        breakdown = price_ticket(
            session,
            ticket,
            quantity,
            discount_code=_query_param(event, "discount_code"),
        )
    quote = PriceQuoteSchema(ticket_id=ticket_id, **breakdown.to_dict())
    return json_response(
        200,
        {"success": True, "price": quote.model_dump()},
        event=event,
    )


# --- Date-bound ticket discounts -------------------------------------------


def _ticket_discount_fields(
    body: Mapping[str, Any],
    current: TicketDiscount | None = None,
) -> dict[str, Any]:
    fields = _discount_fields(body, current)
    if "valid_until" in body:
        valid_until = parse_date(body.get("valid_until"))
        if valid_until is None:
            raise ValidationError("valid_until is required", field="valid_until")
        fields["valid_until"] = valid_until
    if "is_active" in body:
        fields["is_active"] = bool(parse_bool(body.get("is_active")))
    return fields


def _list_discounts(event: Mapping[str, Any], event_id: int, ticket_id: int) -> dict[str, Any]:
    with Session(get_engine()) as session:
        _require_ticket(session, event_id, ticket_id)
        discounts = [
            row.to_dict()
            for row in TicketDiscountRepository(session).find_by_ticket(ticket_id)
        ]
    return json_response(200, {"success": True, "discounts": discounts}, event=event)


def _create_discount(event: Mapping[str, Any], event_id: int, ticket_id: int) -> dict[str, Any]:
    sub = _require_user_sub(event)
    body = _parse_body(event)
    _require_fields(body, "discount_type", "discount_value", "valid_until")
    fields = _ticket_discount_fields(body)
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        _require_ticket(session, event_id, ticket_id)
        row = TicketDiscountRepository(session).create(
            TicketDiscount(ticket_id=ticket_id, **fields)
        )
        session.commit()
        payload = row.to_dict()
    return json_response(201, {"success": True, "discount": payload}, event=event)


def _require_discount(
    session: Session,
    event_id: int,
    ticket_id: int,
    discount_id: int,
) -> TicketDiscount:
    _require_ticket(session, event_id, ticket_id)
    row = TicketDiscountRepository(session).get_for_ticket(ticket_id, discount_id)
    if row is None:
        raise NotFoundError("Discount", discount_id)
    return row


def _update_discount(
    event: Mapping[str, Any],
    event_id: int,
    ticket_id: int,
    discount_id: int,
) -> dict[str, Any]:
    sub = _require_user_sub(event)
    body = _parse_body(event)
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        row = _require_discount(session, event_id, ticket_id, discount_id)
        row = TicketDiscountRepository(session).apply_changes(
            row,
            _ticket_discount_fields(body, row),
        )
        session.commit()
        payload = row.to_dict()
    return json_response(200, {"success": True, "discount": payload}, event=event)


def _delete_discount(
    event: Mapping[str, Any],
    event_id: int,
    ticket_id: int,
    discount_id: int,
) -> dict[str, Any]:
    sub = _require_user_sub(event)
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        row = _require_discount(session, event_id, ticket_id, discount_id)
        TicketDiscountRepository(session).delete(row)
        session.commit()
    return json_response(200, {"success": True, "message": "Discount deleted"}, event=event)


# --- Discount codes --------------------------------------------------------


def _code_fields(body: Mapping[str, Any], current: DiscountCode | None = None) -> dict[str, Any]:
    fields = _discount_fields(body, current)
    if "code" in body:
        code = sanitize_string(body.get("code"), max_length=50)
        if not code:
            raise ValidationError("code is required", field="code")
        fields["code"] = code.upper()
    if "max_uses" in body:
        fields["max_uses"] = _optional_cap(body.get("max_uses"), "max_uses")
    for name in ("valid_from", "valid_until"):
        if name in body:
            fields[name] = parse_datetime(body.get(name))
    if "is_active" in body:
        fields["is_active"] = bool(parse_bool(body.get("is_active")))
    return fields


def _check_code_free(
    session: Session,
    event_id: int,
    code: str | None,
    code_id: int | None = None,
) -> None:
    if not code:
        return
    existing = DiscountCodeRepository(session).find_by_code(event_id, code)
    if existing is not None and existing.id != code_id:
        raise ConflictError("Discount code already exists for this event")


def _require_code(session: Session, event_id: int, code_id: int) -> DiscountCode:
    row = DiscountCodeRepository(session).get_for_event(event_id, code_id)
    if row is None:
        raise NotFoundError("Discount code", code_id)
    return row


def _list_codes(event: Mapping[str, Any], event_id: int) -> dict[str, Any]:
    sub = _require_user_sub(event)
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        codes = [
            row.to_dict()
            for row in DiscountCodeRepository(session).find_by_event(event_id)
        ]
    return json_response(200, {"success": True, "discount_codes": codes}, event=event)


def _create_code(event: Mapping[str, Any], event_id: int) -> dict[str, Any]:
    sub = _require_user_sub(event)
    body = _parse_body(event)
    _require_fields(body, "code", "discount_type", "discount_value")
    fields = _code_fields(body)
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        _check_code_free(session, event_id, fields["code"])
        row = DiscountCodeRepository(session).create(
            DiscountCode(event_id=event_id, **fields)
        )
        session.commit()
        payload = row.to_dict()
    logger.info("Discount code created", extra={"event_id": event_id, "code_id": payload["id"]})
    return json_response(201, {"success": True, "discount_code": payload}, event=event)


def _update_code(event: Mapping[str, Any], event_id: int, code_id: int) -> dict[str, Any]:
    sub = _require_user_sub(event)
    body = _parse_body(event)
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        row = _require_code(session, event_id, code_id)
        fields = _code_fields(body, row)
        _check_code_free(session, event_id, fields.get("code"), code_id)
        row = DiscountCodeRepository(session).apply_changes(row, fields)
        session.commit()
        payload = row.to_dict()
    return json_response(200, {"success": True, "discount_code": payload}, event=event)


def _delete_code(event: Mapping[str, Any], event_id: int, code_id: int) -> dict[str, Any]:
    sub = _require_user_sub(event)
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        row = _require_code(session, event_id, code_id)
        DiscountCodeRepository(session).delete(row)
        session.commit()
    return json_response(
        200,
        {"success": True, "message": "Discount code deleted"},
        event=event,
    )


# --- Orders ----------------------------------------------------------------


def _list_orders(event: Mapping[str, Any], event_id: int) -> dict[str, Any]:
    sub = _require_user_sub(event)
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        orders = [
            {**order.to_dict(), "ticket_name": ticket_name}
            for order, ticket_name in TicketOrderRepository(session).find_by_event(event_id)
        ]
    return json_response(200, {"success": True, "orders": orders}, event=event)


def _validate_order(event: Mapping[str, Any], event_id: int, order_id: int) -> dict[str, Any]:
    """Mark an order as checked in at the door (or undo it)."""
    sub = _require_user_sub(event)
    body = _parse_body(event)
    _require_fields(body, "validated")
    validated = parse_bool(body.get("validated"))
    with Session(get_engine()) as session:
        _require_event_owner(session, event_id, sub)
        repo = TicketOrderRepository(session)
        order = repo.get_for_event(event_id, order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        order = repo.apply_changes(order, {"validated": bool(validated)})
        session.commit()
        payload = order.to_dict()
    return json_response(200, {"success": True, "order": payload}, event=event)


_ROUTES = (
    Route("GET", "/events/{event_id}/tickets", _list_tickets),
    Route("POST", "/events/{event_id}/tickets", _create_ticket),
    Route("PUT", "/events/{event_id}/tickets/{ticket_id}", _update_ticket),
    Route("DELETE", "/events/{event_id}/tickets/{ticket_id}", _delete_ticket),
    Route(
        "POST",
        "/events/{event_id}/tickets/{ticket_id}/image-upload-url",
        _ticket_image_upload_url,
    ),
    Route("GET", "/events/{event_id}/tickets/{ticket_id}/price", _quote_price),
    Route("GET", "/events/{event_id}/tickets/{ticket_id}/discounts", _list_discounts),
    Route("POST", "/events/{event_id}/tickets/{ticket_id}/discounts", _create_discount),
    Route(
        "PUT",
        "/events/{event_id}/tickets/{ticket_id}/discounts/{discount_id}",
        _update_discount,
    ),
    Route(
        "DELETE",
        "/events/{event_id}/tickets/{ticket_id}/discounts/{discount_id}",
        _delete_discount,
    ),
    Route("GET", "/events/{event_id}/discount-codes", _list_codes),
    Route("POST", "/events/{event_id}/discount-codes", _create_code),
    Route("PUT", "/events/{event_id}/discount-codes/{code_id}", _update_code),
    Route("DELETE", "/events/{event_id}/discount-codes/{code_id}", _delete_code),
    Route("GET", "/events/{event_id}/ticket-orders", _list_orders),
    Route(
        "PATCH",
        "/events/{event_id}/ticket-orders/{order_id}/validate",
        _validate_order,
    ),
)
