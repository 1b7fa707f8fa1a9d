"""Stripe checkout and webhook processing."""

from __future__ import annotations

import os
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping, Optional

import stripe
from sqlalchemy.orm import Session

from cachao.db.models import Event, OrderStatus, Ticket, TicketOrder
from cachao.db.repositories import (
    DiscountCodeRepository,
    TicketOrderRepository,
    TicketRepository,
)
from cachao.exceptions import ConfigurationError, PaymentError
from cachao.services.secrets import get_setting
from cachao.utils.logging import get_logger, mask_email

logger = get_logger(__name__)

DEFAULT_FRONTEND_URL = "https://cachao.io"


def _api_key() -> str:
    key = get_setting("STRIPE_SECRET_KEY", "STRIPE_SECRET_ARN", "secret_key")
    if not key:
        raise ConfigurationError("STRIPE_SECRET_KEY")
    return key


def webhook_secret() -> str:
    secret = os.getenv("STRIPE_WEBHOOK_SECRET")
    if not secret:
        raise ConfigurationError("STRIPE_WEBHOOK_SECRET")
    return secret


def to_minor_units(amount: Decimal) -> int:
    """Convert a currency amount to integer cents."""
    return int((Decimal(amount) * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def return_urls(
    event_id: int,
    origin: Optional[str],
    success_url: Optional[str] = None,
    cancel_url: Optional[str] = None,
) -> tuple[str, str]:
    """Build the success and cancel URLs for a checkout session."""
    base = (origin or os.getenv("FRONTEND_URL") or DEFAULT_FRONTEND_URL).rstrip("/")
    success = success_url or (
        f"{base}/events/{event_id}?payment=success"
        "&session_id={CHECKOUT_SESSION_ID}"
    )
    cancel = cancel_url or f"{base}/events/{event_id}?payment=cancelled"
    return success, cancel


def create_checkout_session(
    order: TicketOrder,
    ticket: Ticket,
    event: Event,
    success_url: str,
    cancel_url: str,
) -> Any:
    """Create a Stripe Checkout Session for a pending order.

    Raises:
        PaymentError: If Stripe rejects the request.
    """
    currency = os.getenv("CHECKOUT_CURRENCY", "eur").lower()
    try:
        return stripe.checkout.Session.create(
            api_key=_api_key(),
            mode="payment",
            payment_method_types=["card"],
            customer_email=order.email,
            line_items=[
                {
                    "price_data": {
                        "currency": currency,
                        "product_data": {
                            "name": f"{ticket.name} - {event.name}",
                            "description": f"Ticket for {event.name}",
                        },
                        "unit_amount": to_minor_units(order.unit_price),
                    },
                    "quantity": order.quantity,
                }
            ],
            metadata={
                "order_id": str(order.id),
                "event_id": str(event.id),
                "ticket_id": str(ticket.id),
            },
            success_url=success_url,
            cancel_url=cancel_url,
        )
    except stripe.StripeError as exc:
        logger.error(
            "Stripe checkout session creation failed",
            extra={"order_id": order.id, "stripe_error": str(exc)},
        )
        raise PaymentError("Payment provider error", detail=str(exc)) from exc


def construct_event(payload: str, signature: str) -> Any:
    """Verify a webhook payload against its ``Stripe-Signature`` header.

    Raises:
        stripe.SignatureVerificationError: If the signature does not match.
        ValueError: If the payload is not valid JSON.
    """
    return stripe.Webhook.construct_event(payload, signature, webhook_secret())


def _order_from_session(
    session: Session,
    checkout: Mapping[str, Any],
) -> Optional[TicketOrder]:
    repo = TicketOrderRepository(session)
    metadata = checkout.get("metadata") or {}
    order_id = metadata.get("order_id")
    if order_id:
        order = repo.get_by_id(int(order_id))
        if order is not None:
            return order
    session_id = checkout.get("id")
    if session_id:
        return repo.find_by_checkout_session(str(session_id))
    return None


def _mark_paid(session: Session, order: TicketOrder, checkout: Mapping[str, Any]) -> None:
    if order.status == OrderStatus.PAID:
        logger.info("Order already paid", extra={"order_id": order.id})
        return

    details = checkout.get("customer_details") or {}
    email = checkout.get("customer_email") or details.get("email")

    order.status = OrderStatus.PAID
    order.stripe_payment_intent_id = checkout.get("payment_intent")
    if email:
        order.email = email
    TicketOrderRepository(session).update(order)
    TicketRepository(session).increment_sold(order.ticket_id, order.quantity)
    if order.discount_code_id is not None:
        DiscountCodeRepository(session).increment_used(order.discount_code_id)
    logger.info(
        "Order paid",
        extra={"order_id": order.id, "email": mask_email(order.email)},
    )


def _mark_unpaid(session: Session, order: TicketOrder, status: OrderStatus) -> None:
    if order.status != OrderStatus.PENDING:
        return
    order.status = status
    TicketOrderRepository(session).update(order)
    logger.info(
        "Order closed without payment",
        extra={"order_id": order.id, "status": status.value},
    )


def process_stripe_event(session: Session, stripe_event: Mapping[str, Any]) -> bool:
    """Apply a Stripe event to the matching order.

    Returns:
        True when an order was found for a handled event type.
    """
    event_type = stripe_event.get("type")
    checkout = (stripe_event.get("data") or {}).get("object") or {}
    handlers = {
        "checkout.session.completed": lambda o: _mark_paid(session, o, checkout),
        "checkout.session.expired": lambda o: _mark_unpaid(
            session, o, OrderStatus.CANCELLED
        ),
        "checkout.session.async_payment_failed": lambda o: _mark_unpaid(
            session, o, OrderStatus.FAILED
        ),
    }
    handler = handlers.get(str(event_type))
    if handler is None:
        logger.info(f"Ignoring Stripe event type {event_type}")
        return False

    order = _order_from_session(session, checkout)
    if order is None:
        logger.warning(
            "No order for Stripe checkout session",
            extra={"event_type": event_type, "session_id": checkout.get("id")},
        )
        return False

    handler(order)
    session.commit()
    return True
