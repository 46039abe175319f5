"""
Applying payment outcomes to bookings.

Every entry point here assumes the outcome has already been authenticated
(checkout signature, webhook signature, or test mode).
"""
import logging
import uuid

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .models import Booking, Payment

logger = logging.getLogger(__name__)

BOOKING_PAYMENT_STATUS = {
    Payment.Status.CAPTURED: Booking.PAYMENT_COMPLETED,
    Payment.Status.FAILED: Booking.PAYMENT_FAILED,
    Payment.Status.REFUNDED: Booking.PAYMENT_REFUNDED,
}


def record_payment(booking, status, transaction_id, amount=None, order_id="", method="",
                   gateway_response=None, currency=None):
    """Create or update the Payment row for a gateway transaction."""
    defaults = {
        "status": status,
        "amount": booking.total_amount if amount is None else amount,
        "currency": currency or settings.PAYMENT_CURRENCY,
        "order_id": order_id or booking.razorpay_order_id,
        "method": method or "",
        "gateway_response": gateway_response or {},
    }
    if not transaction_id:
        return Payment.objects.create(booking=booking, transaction_id="", **defaults)
    payment, created = Payment.objects.update_or_create(
        booking=booking, transaction_id=transaction_id, defaults=defaults,
    )
    return payment


@transaction.atomic
def confirm_booking_payment(booking, payment_id, method="", order_id="", gateway_response=None,
                            amount=None, paid_at=None):
    booking = Booking.objects.select_for_update().get(pk=booking.pk)
    booking.mark_paid(payment_id, method, when=paid_at)
    if booking.status == Booking.CANCELLED:
        # status stays cancelled; the window is not re-checked
        logger.warning("Payment %s captured for cancelled booking %s, refund required", payment_id, booking.pk)
    payment = record_payment(
        booking,
        Payment.Status.CAPTURED,
        payment_id,
        amount=amount,
        order_id=order_id,
        method=method,
        gateway_response=gateway_response,
    )
    logger.info("Payment %s captured for booking %s", payment_id, booking.pk)
    return booking, payment


def simulate_payment(booking):
    transaction_id = f"test_{uuid.uuid4().hex[:8]}"
    return confirm_booking_payment(
        booking,
        transaction_id,
        method="test",
        gateway_response={"simulated": True},
    )


def find_booking_for_event(event):
    if event.booking_id is not None:
        booking = Booking.objects.filter(pk=event.booking_id).first()
        if booking is not None:
            return booking
    if event.order_id:
        booking = Booking.objects.filter(razorpay_order_id=event.order_id).first()
        if booking is not None:
            return booking
    if event.payment_id:
        payment = Payment.objects.select_related("booking").filter(transaction_id=event.payment_id).first()
        if payment is not None:
            return payment.booking
    return None


@transaction.atomic
def apply_event(event):
    """Apply a verified webhook event. Returns the booking, or None if it cannot be matched."""
    booking = find_booking_for_event(event)
    if booking is None:
        logger.warning(
            "Razorpay %s for payment %s matches no booking", event.event, event.payment_id,
        )
        return None

    if event.status == Payment.Status.CAPTURED:
        if booking.is_paid and booking.payment_id == event.payment_id:
            logger.info("Duplicate capture for booking %s ignored", booking.pk)
            return booking
        booking, _ = confirm_booking_payment(
            booking,
            event.payment_id,
            method=event.method,
            order_id=event.order_id,
            gateway_response=event.raw,
            amount=event.amount,
            paid_at=event.timestamp,
        )
        return booking

    if event.status == Payment.Status.REFUNDED:
        existing = Payment.objects.filter(booking=booking, transaction_id=event.payment_id).first()
        if existing is not None:
            existing.status = Payment.Status.REFUNDED
            existing.gateway_response = {**existing.gateway_response, "refund": event.raw}
            existing.save(update_fields=["status", "gateway_response", "updated_at"])
        else:
            record_payment(
                booking, Payment.Status.REFUNDED, event.payment_id, amount=event.amount,
                currency=event.currency, gateway_response=event.raw,
            )
    else:
        record_payment(
            booking, event.status, event.payment_id, amount=event.amount,
            order_id=event.order_id, method=event.method, currency=event.currency,
            gateway_response=event.raw,
        )

    new_status = BOOKING_PAYMENT_STATUS.get(event.status)
    # an authorization, or a late failure after capture, leaves the booking alone
    if new_status and not (new_status == Booking.PAYMENT_FAILED and booking.is_paid):
        booking.payment_status = new_status
        booking.save(update_fields=["payment_status", "updated_at"])
    logger.info("Razorpay %s applied to booking %s", event.event, booking.pk)
    return booking


def refresh_payment(payment, remote):
    """Copy status and method from a fetched Razorpay payment entity."""
    status = remote.get("status")
    if status in Payment.Status.values:
        payment.status = status
    payment.method = remote.get("method") or payment.method
    payment.gateway_response = remote
    payment.save(update_fields=["status", "method", "gateway_response", "updated_at"])

    booking_status = BOOKING_PAYMENT_STATUS.get(payment.status)
    booking = payment.booking
    if booking_status == Booking.PAYMENT_COMPLETED and not booking.is_paid:
        booking.mark_paid(payment.transaction_id, payment.method, when=timezone.now())
    elif booking_status == Booking.PAYMENT_REFUNDED or (booking_status == Booking.PAYMENT_FAILED and not booking.is_paid):
        booking.payment_status = booking_status
        booking.save(update_fields=["payment_status", "updated_at"])
    return payment
