"""
Thin wrapper around the Razorpay client.

Nothing here touches the database; see `payments.py` for how gateway results
are applied to bookings.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import razorpay
from razorpay.errors import BadRequestError, GatewayError, ServerError, SignatureVerificationError
from django.conf import settings

from .pricing import to_minor_units

logger = logging.getLogger(__name__)

# requests' exceptions derive from OSError
CLIENT_ERRORS = (BadRequestError, GatewayError, ServerError, OSError)

EVENT_STATUSES = {
    "payment.captured": "captured",
    "payment.failed": "failed",
    "payment.authorized": "authorized",
    "order.paid": "captured",
    "refund.processed": "refunded",
}


class PaymentGatewayError(Exception):
    """The gateway could not be reached or rejected the request."""


def get_client():
    return razorpay.Client(auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET))


def from_minor_units(amount):
    return (Decimal(int(amount or 0)) / 100).quantize(Decimal("0.01"))


def create_order(booking):
    data = {
        "amount": to_minor_units(booking.total_amount),
        "currency": settings.PAYMENT_CURRENCY,
        "receipt": f"booking_{booking.pk}",
        "payment_capture": 1,
        "notes": {"booking_id": str(booking.pk)},
    }
    try:
        order = get_client().order.create(data=data)
    except CLIENT_ERRORS as exc:
        logger.warning("Razorpay order creation failed for booking %s: %s", booking.pk, exc)
        raise PaymentGatewayError(str(exc)) from exc
    logger.info("Razorpay order %s created for booking %s", order.get("id"), booking.pk)
    return order


def checkout_params(booking, order):
    """Options the client passes to the Razorpay checkout widget."""
    user = booking.user
    return {
        "key": settings.RAZORPAY_KEY_ID,
        "amount": order.get("amount", to_minor_units(booking.total_amount)),
        "currency": order.get("currency", settings.PAYMENT_CURRENCY),
        "name": settings.PAYMENT_MERCHANT_NAME,
        "description": f"Booking #{booking.pk}: {booking.bike.name}",
        "order_id": order["id"],
        "prefill": {
            "name": user.full_name,
            "email": user.email,
            "contact": user.phone_number or "",
        },
        "notes": {"booking_id": str(booking.pk)},
    }


def verify_payment_signature(order_id, payment_id, signature):
    try:
        get_client().utility.verify_payment_signature({
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": signature,
        })
    except SignatureVerificationError:
        return False
    return True


def verify_webhook_signature(body, signature):
    """`body` is the raw request body (bytes or str)."""
    if not signature:
        return False
    if isinstance(body, bytes):
        body = body.decode("utf-8")
    try:
        get_client().utility.verify_webhook_signature(body, signature, settings.RAZORPAY_WEBHOOK_SECRET)
    except SignatureVerificationError:
        return False
    return True


def fetch_payment(payment_id):
    try:
        return get_client().payment.fetch(payment_id)
    except CLIENT_ERRORS as exc:
        logger.warning("Razorpay payment fetch failed for %s: %s", payment_id, exc)
        raise PaymentGatewayError(str(exc)) from exc


@dataclass
class PaymentEvent:
    payment_id: str
    status: str
    amount: Decimal
    currency: str
    order_id: str = ""
    method: str = ""
    timestamp: datetime = None
    notes: dict = field(default_factory=dict)
    event: str = ""
    raw: dict = field(default_factory=dict)

    @property
    def booking_id(self):
        value = (self.notes or {}).get("booking_id")
        try:
            return int(value)
        except (TypeError, ValueError):
            return None


def _timestamp(entity):
    value = entity.get("updated_at") or entity.get("created_at")
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=dt_timezone.utc)


def parse_webhook_event(data):
    """
    Normalize a Razorpay webhook body into a PaymentEvent.
    Returns None for events that are not handled or carry no entity.
    """
    event = (data or {}).get("event")
    status = EVENT_STATUSES.get(event)
    if status is None:
        logger.info("Unhandled Razorpay webhook event: %s", event)
        return None

    payload = data.get("payload") or {}
    kind = event.split(".", 1)[0]
    entity = (payload.get(kind) or {}).get("entity")
    if not entity:
        logger.warning("Razorpay webhook %s without %s entity", event, kind)
        return None

    if kind == "order":
        payment_id = entity["id"]
        order_id = entity["id"]
    elif kind == "refund":
        payment_id = entity.get("payment_id", "")
        order_id = ""
    else:
        payment_id = entity["id"]
        order_id = entity.get("order_id") or ""

    # order.paid also ships the payment entity; prefer its id and method
    method = entity.get("method") or ""
    if kind == "order":
        payment_entity = (payload.get("payment") or {}).get("entity") or {}
        if payment_entity.get("id"):
            payment_id = payment_entity["id"]
            method = payment_entity.get("method") or ""

    return PaymentEvent(
        payment_id=payment_id,
        order_id=order_id,
        status=status,
        amount=from_minor_units(entity.get("amount")),
        currency=entity.get("currency") or settings.PAYMENT_CURRENCY,
        method=method,
        timestamp=_timestamp(entity),
        notes=entity.get("notes") or {},
        event=event,
        raw=entity,
    )
