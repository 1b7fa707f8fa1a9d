"""Ticket checkout and Stripe webhook handlers.

Routes handled:
    POST /events/{id}/tickets/{ticketId}/checkout
    POST /tickets/checkout          (event_id and ticket_id in the body)
    POST /webhooks/stripe

``eventbridge_handler`` consumes the same Stripe events delivered through an
EventBridge partner event bus.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

import stripe
from sqlalchemy.orm import Session

from cachao.api.auth_context import _get_caller
from cachao.api.common import Route, dispatch
from cachao.api.request import _header, _parse_body, _path_id, _raw_body, _require_fields
from cachao.db.engine import get_engine
from cachao.db.models import OrderStatus, TicketOrder
from cachao.db.repositories import EventRepository, TicketOrderRepository, TicketRepository
from cachao.exceptions import ConfigurationError, NotFoundError, ValidationError
from cachao.services import payments
from cachao.services.pricing import price_ticket
from cachao.utils import json_response, parse_int, validate_email
from cachao.utils.logging import configure_logging, get_logger, mask_email

configure_logging()
logger = get_logger(__name__)


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Route checkout and webhook requests."""
    return dispatch(event, _ROUTES, logger)


def _checkout(
    event: Mapping[str, Any],
    event_id: int,
    ticket_id: int,
    body: Mapping[str, Any],
) -> dict[str, Any]:
    """Create a pending order and a Stripe Checkout Session for it."""
    quantity = parse_int(body.get("quantity"))
    if quantity is None:
        quantity = 1
    if quantity < 1:
        raise ValidationError("quantity must be at least 1", field="quantity")

    sub, token_email = _get_caller(event)
    email = body.get("email") or token_email
    if not email:
        raise ValidationError("email is required", field="email")
    email = validate_email(email)

    with Session(get_engine()) as session:
        ticket = TicketRepository(session).get_for_event(event_id, ticket_id)
        if ticket is None:
            raise NotFoundError("Ticket", ticket_id)
        if not ticket.is_active:
            raise ValidationError("Ticket is not available for purchase")
        if ticket.max_quantity:
            remaining = ticket.max_quantity - (ticket.sold_quantity or 0)
            if quantity > remaining:
                raise ValidationError(f"Only {max(remaining, 0)} tickets available")

        owner_event = EventRepository(session).get_by_id(event_id)
        if owner_event is None:
            raise NotFoundError("Event", event_id)

        breakdown = price_ticket(session, ticket, quantity, body.get("discount_code"))
        orders = TicketOrderRepository(session)
        order = orders.create(
            TicketOrder(
                event_id=event_id,
                ticket_id=ticket_id,
                cognito_sub=sub,
                email=email,
                quantity=quantity,
                unit_price=breakdown.unit_price,
                discount_amount=breakdown.discount_amount,
                discount_code_id=breakdown.discount_code_id,
                total_amount=breakdown.total_amount,
                status=OrderStatus.PENDING,
            )
        )

        success_url, cancel_url = payments.return_urls(
            event_id,
            _header(event, "origin"),
            success_url=body.get("success_url"),
            cancel_url=body.get("cancel_url"),
        )
        checkout = payments.create_checkout_session(
            order,
            ticket,
            owner_event,
            success_url,
            cancel_url,
        )
        orders.apply_changes(order, {"stripe_checkout_session_id": checkout.id})
        session.commit()
        order_id = order.id

    logger.info(
        "Checkout session created",
        extra={
            "order_id": order_id,
            "event_id": event_id,
            "guest": sub is None,
            "email": mask_email(email),
        },
    )
    return json_response(
        200,
        {
            "success": True,
            "checkout_url": checkout.url,
            "session_id": checkout.id,
            "order_id": order_id,
        },
        event=event,
    )


def _checkout_from_path(
    event: Mapping[str, Any],
    event_id: int,
    ticket_id: int,
) -> dict[str, Any]:
    return _checkout(event, event_id, ticket_id, _parse_body(event, required=False))


def _checkout_from_body(event: Mapping[str, Any]) -> dict[str, Any]:
    body = _parse_body(event)
    _require_fields(body, "event_id", "ticket_id")
    return _checkout(
        event,
        _path_id(body["event_id"], "event_id"),
        _path_id(body["ticket_id"], "ticket_id"),
        body,
    )


def _stripe_webhook(event: Mapping[str, Any]) -> dict[str, Any]:
    """Verify and apply a Stripe webhook delivery."""
    try:
        payments.webhook_secret()
    except ConfigurationError:
        logger.error("STRIPE_WEBHOOK_SECRET is not configured")
        return json_response(500, {"error": "Webhook secret not configured"}, event=event)

    signature = _header(event, "stripe-signature")
    if not signature:
        raise ValidationError("Missing Stripe-Signature header")

    raw = _raw_body(event)
    try:
        payments.construct_event(raw, signature)
    except (stripe.SignatureVerificationError, ValueError) as exc:
        logger.warning(f"Stripe webhook verification failed: {exc}")
        return json_response(
            400,
            {"error": "Invalid signature", "detail": str(exc)},
            event=event,
        )

    stripe_event = json.loads(raw)
    logger.info(
        "Stripe webhook received",
        extra={"stripe_event_id": stripe_event.get("id"), "type": stripe_event.get("type")},
    )
    with Session(get_engine()) as session:
        payments.process_stripe_event(session, stripe_event)
    return json_response(200, {"received": True}, event=event)


def eventbridge_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Apply a Stripe event delivered by EventBridge.

    Errors propagate so EventBridge retries the delivery.
    """
    detail: Optional[Mapping[str, Any]] = event.get("detail")
    if event.get("source") != "stripe.com" and not str(event.get("source", "")).startswith(
        "aws.partner/stripe.com"
    ):
        logger.warning(f"Ignoring EventBridge event from {event.get('source')}")
        return {"received": False}
    if not detail:
        raise ValueError("EventBridge event has no detail")

    logger.info(
        "Stripe EventBridge event received",
        extra={"stripe_event_id": detail.get("id"), "type": detail.get("type")},
    )
    try:
        with Session(get_engine()) as session:
            handled = payments.process_stripe_event(session, detail)
    except Exception:
        logger.exception("Failed to process Stripe EventBridge event")
        raise
    return {"received": True, "handled": handled}


_ROUTES = (
    Route("POST", "/webhooks/stripe", _stripe_webhook),
    Route("POST", "/tickets/checkout", _checkout_from_body),
    Route(
        "POST",
        "/events/{event_id}/tickets/{ticket_id}/checkout",
        _checkout_from_path,
    ),
)
