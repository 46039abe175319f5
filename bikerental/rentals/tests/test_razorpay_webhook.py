import hashlib
import hmac
import json
from decimal import Decimal
from unittest import mock

from django.urls import reverse
from rest_framework.test import APITestCase

from bikerental.rentals.factories import BookingFactory, PaymentFactory
from bikerental.rentals.models import Booking, Payment

WEBHOOK_SECRET = "test-webhook-secret"


def payment_event(event, booking, payment_id="pay_WH1", amount_paise=50000, **entity):
    body = {
        "entity": "event",
        "event": event,
        "payload": {
            "payment": {
                "entity": {
                    "id": payment_id,
                    "entity": "payment",
                    "amount": amount_paise,
                    "currency": "INR",
                    "status": event.split(".")[1],
                    "order_id": booking.razorpay_order_id or "order_WH1",
                    "method": "card",
                    "notes": {"booking_id": str(booking.pk)},
                    "created_at": 1735700000,
                    **entity,
                }
            }
        },
    }
    return body


class RazorpayWebhookTests(APITestCase):

    def setUp(self):
        self.url = reverse("razorpay-webhook")
        self.booking = BookingFactory(total_amount=Decimal("500"), razorpay_order_id="order_WH1")

    def _post(self, data, secret=WEBHOOK_SECRET, signature=None):
        body = json.dumps(data).encode()
        if signature is None:
            signature = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
        return self.client.post(
            self.url, data=body, content_type="application/json",
            HTTP_X_RAZORPAY_SIGNATURE=signature,
        )

    def test_payment_captured_confirms_booking(self):
        r = self._post(payment_event("payment.captured", self.booking))
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data, {"received": True})

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.CONFIRMED)
        self.assertEqual(self.booking.payment_status, Booking.PAYMENT_COMPLETED)
        self.assertEqual(self.booking.payment_id, "pay_WH1")
        self.assertEqual(self.booking.payment_method, "card")

        payment = Payment.objects.get(booking=self.booking)
        self.assertEqual(payment.status, Payment.Status.CAPTURED)
        self.assertEqual(payment.amount, Decimal("500.00"))

    def test_duplicate_capture_is_idempotent(self):
        self._post(payment_event("payment.captured", self.booking))
        r = self._post(payment_event("payment.captured", self.booking))
        self.assertEqual(r.status_code, 200)
        self.assertEqual(Payment.objects.filter(booking=self.booking).count(), 1)

    def test_booking_matched_by_order_id_without_notes(self):
        r = self._post(payment_event("payment.captured", self.booking, notes={}))
        self.assertEqual(r.status_code, 200)
        self.booking.refresh_from_db()
        self.assertTrue(self.booking.is_paid)

    def test_order_paid_uses_payment_entity(self):
        data = {
            "event": "order.paid",
            "payload": {
                "order": {"entity": {
                    "id": "order_WH1", "amount": 50000, "currency": "INR",
                    "notes": {"booking_id": str(self.booking.pk)},
                }},
                "payment": {"entity": {"id": "pay_ORD1", "method": "upi", "amount": 50000}},
            },
        }
        r = self._post(data)
        self.assertEqual(r.status_code, 200)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_id, "pay_ORD1")
        self.assertEqual(self.booking.payment_method, "upi")

    def test_payment_failed_marks_booking_failed(self):
        r = self._post(payment_event("payment.failed", self.booking, payment_id="pay_FAIL"))
        self.assertEqual(r.status_code, 200)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, Booking.PAYMENT_FAILED)
        self.assertEqual(self.booking.status, Booking.PENDING)
        self.assertEqual(Payment.objects.get(transaction_id="pay_FAIL").status, Payment.Status.FAILED)

    def test_late_failure_does_not_undo_capture(self):
        paid = BookingFactory(paid=True, razorpay_order_id="order_PAID")
        self._post(payment_event("payment.failed", paid, payment_id="pay_RETRY"))
        paid.refresh_from_db()
        self.assertTrue(paid.is_paid)

    def test_capture_for_cancelled_booking_keeps_it_cancelled(self):
        cancelled = BookingFactory(status=Booking.CANCELLED, razorpay_order_id="order_LATE")
        BookingFactory(bike=cancelled.bike, start_at=cancelled.start_at, end_at=cancelled.end_at,
                       status=Booking.CONFIRMED)

        with self.assertLogs("bikerental.rentals.payments", level="WARNING") as logs:
            r = self._post(payment_event("payment.captured", cancelled, payment_id="pay_LATE"))
        self.assertEqual(r.status_code, 200)
        self.assertIn("refund required", logs.output[0])

        cancelled.refresh_from_db()
        self.assertEqual(cancelled.status, Booking.CANCELLED)
        self.assertEqual(cancelled.payment_status, Booking.PAYMENT_COMPLETED)
        self.assertEqual(Payment.objects.get(transaction_id="pay_LATE").status, Payment.Status.CAPTURED)
        occupying = Booking.objects.filter(
            bike=cancelled.bike, start_at=cancelled.start_at, status__in=Booking.OCCUPYING_STATUSES,
        )
        self.assertEqual(occupying.count(), 1)

    def test_authorized_only_records_payment(self):
        self._post(payment_event("payment.authorized", self.booking, payment_id="pay_AUTH"))
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, Booking.PAYMENT_PENDING)
        self.assertEqual(Payment.objects.get(transaction_id="pay_AUTH").status, Payment.Status.AUTHORIZED)

    def test_refund_marks_payment_refunded(self):
        payment = PaymentFactory()
        data = {
            "event": "refund.processed",
            "payload": {"refund": {"entity": {
                "id": "rfnd_1", "payment_id": payment.transaction_id,
                "amount": 50000, "currency": "INR", "notes": {},
            }}},
        }
        r = self._post(data)
        self.assertEqual(r.status_code, 200)
        payment.refresh_from_db()
        payment.booking.refresh_from_db()
        self.assertEqual(payment.status, Payment.Status.REFUNDED)
        self.assertEqual(payment.booking.payment_status, Booking.PAYMENT_REFUNDED)
        self.assertEqual(payment.gateway_response["refund"]["id"], "rfnd_1")

    def test_invalid_signature_rejected_without_side_effects(self):
        r = self._post(payment_event("payment.captured", self.booking), secret="wrong-secret")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.data, {"error": "Invalid signature"})
        self.booking.refresh_from_db()
        self.assertFalse(self.booking.is_paid)

    def test_missing_signature_rejected(self):
        r = self._post(payment_event("payment.captured", self.booking), signature="")
        self.assertEqual(r.status_code, 400)

    def test_unknown_event_acknowledged(self):
        r = self._post({"event": "subscription.charged", "payload": {}})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data, {"received": True})

    def test_unmatched_payment_acknowledged(self):
        orphan = payment_event("payment.captured", self.booking, notes={}, order_id="order_NOPE",
                               id="pay_ORPHAN")
        r = self._post(orphan)
        self.assertEqual(r.status_code, 200)
        self.booking.refresh_from_db()
        self.assertFalse(self.booking.is_paid)

    def test_processing_error_returns_500(self):
        with mock.patch("bikerental.rentals.payments.apply_event", side_effect=RuntimeError("db gone")):
            r = self._post(payment_event("payment.captured", self.booking))
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.data, {"error": "Webhook processing failed"})

    def test_get_not_allowed(self):
        r = self.client.get(self.url)
        self.assertEqual(r.status_code, 405)
