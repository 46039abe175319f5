import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from bikerental.rentals.factories import (
    BikeFactory, BookingFactory, UserFactory, VerificationFactory, opening_time,
)
from bikerental.rentals.models import Bike, Booking, Verification
from bikerental.rentals.verification_flow import Step


@pytest.mark.django_db
class TestBookingAPI:
    def setup_method(self):
        # force_authenticate instead of JWT
        self.client = APIClient()
        self.rider = UserFactory()
        self.other = UserFactory()
        self.bike = BikeFactory(location="Malpe, Udupi")
        self.verification = VerificationFactory(user=self.rider, completed=True)
        self.start = opening_time(5, 9)
        self.list_url = reverse("rentals:booking-list")

    # ---------- helpers ----------
    def _auth(self, user):
        self.client.force_authenticate(user=user)

    def _payload(self, **overrides):
        payload = {
            "bike": self.bike.id,
            "start_at": self.start.isoformat(),
            "end_at": (self.start + timedelta(hours=24)).isoformat(),
            "verification_token": str(self.verification.token),
        }
        payload.update(overrides)
        return payload

    def _detail(self, booking, action=None):
        if action is None:
            return reverse("rentals:booking-detail", args=[booking.pk])
        return reverse(f"rentals:booking-{action}", args=[booking.pk])

    # ---------- creation ----------
    def test_create_prices_server_side_and_consumes_verification(self):
        self._auth(self.rider)
        resp = self.client.post(self.list_url, self._payload(total_amount="1.00"), format="json")
        assert resp.status_code == 201, resp.data
        assert resp.data["total_hours"] == 24
        assert Decimal(resp.data["total_amount"]) == Decimal("500")
        assert resp.data["status"] == Booking.PENDING
        assert resp.data["payment_status"] == Booking.PAYMENT_PENDING
        assert resp.data["pickup_location"] == "Malpe, Udupi"
        assert resp.data["can_pay"] is True
        assert "verification_token" not in resp.data

        booking = Booking.objects.get(pk=resp.data["id"])
        assert booking.user == self.rider
        assert booking.verification == self.verification

    def test_round_trip_reads_back_same_window(self):
        self._auth(self.rider)
        created = self.client.post(self.list_url, self._payload(extra_helmet=True), format="json")
        assert created.status_code == 201, created.data

        resp = self.client.get(self._detail(Booking.objects.get(pk=created.data["id"])))
        assert resp.status_code == 200
        booking = Booking.objects.get(pk=created.data["id"])
        assert booking.start_at == self.start
        assert booking.end_at == self.start + timedelta(hours=24)
        assert Decimal(resp.data["total_amount"]) == Decimal("550")
        assert resp.data["bike_name"] == self.bike.name

    def test_verification_token_required(self):
        self._auth(self.rider)
        payload = self._payload()
        payload.pop("verification_token")
        resp = self.client.post(self.list_url, payload, format="json")
        assert resp.status_code == 400
        assert "verification" in str(resp.data["verification_token"]).lower()

    def test_verification_token_is_single_use(self):
        self._auth(self.rider)
        assert self.client.post(self.list_url, self._payload(), format="json").status_code == 201
        later = self.start + timedelta(days=3)
        resp = self.client.post(
            self.list_url,
            self._payload(start_at=later.isoformat(), end_at=(later + timedelta(hours=4)).isoformat()),
            format="json",
        )
        assert resp.status_code == 400
        assert "already used" in str(resp.data["verification_token"])

    def test_someone_elses_token_rejected(self):
        self._auth(self.other)
        resp = self.client.post(self.list_url, self._payload(), format="json")
        assert resp.status_code == 400
        assert "invalid verification token" in str(resp.data).lower()

    def test_unfinished_verification_rejected(self):
        unfinished = VerificationFactory(user=self.rider, step=Step.AGE_VERIFICATION, token=uuid.uuid4())
        self._auth(self.rider)
        resp = self.client.post(self.list_url, self._payload(verification_token=str(unfinished.token)),
                                format="json")
        assert resp.status_code == 400
        assert "invalid verification token" in str(resp.data).lower()

    def test_verification_can_be_switched_off(self, settings):
        settings.BOOKING_REQUIRE_VERIFICATION = False
        self._auth(self.other)
        payload = self._payload()
        payload.pop("verification_token")
        resp = self.client.post(self.list_url, payload, format="json")
        assert resp.status_code == 201, resp.data

    def test_window_rules_enforced(self):
        self._auth(self.rider)
        early = opening_time(5, 5)
        resp = self.client.post(
            self.list_url,
            self._payload(start_at=early.isoformat(), end_at=(early + timedelta(hours=24)).isoformat()),
            format="json",
        )
        assert resp.status_code == 400
        assert "07:00" in str(resp.data["start_at"])

        resp = self.client.post(
            self.list_url, self._payload(end_at=self.start.isoformat()), format="json",
        )
        assert resp.status_code == 400
        assert "after start" in str(resp.data["end_at"])

    def test_missing_times_rejected(self):
        self._auth(self.rider)
        payload = self._payload()
        payload.pop("end_at")
        resp = self.client.post(self.list_url, payload, format="json")
        assert resp.status_code == 400
        assert "end_at is required." in str(resp.data["end_at"])

    def test_unavailable_bike_cannot_be_booked(self):
        self.bike.status = Bike.Status.MAINTENANCE
        self.bike.save()
        self._auth(self.rider)
        resp = self.client.post(self.list_url, self._payload(), format="json")
        assert resp.status_code == 400
        assert "bike" in resp.data

    def test_overlapping_booking_rejected(self):
        BookingFactory(bike=self.bike, user=self.other, start_at=self.start + timedelta(hours=6),
                       end_at=self.start + timedelta(hours=30))
        self._auth(self.rider)
        resp = self.client.post(self.list_url, self._payload(), format="json")
        assert resp.status_code == 400
        assert "already booked" in str(resp.data).lower()
        assert Verification.objects.get(pk=self.verification.pk).is_consumed is False

    def test_back_to_back_booking_allowed(self):
        BookingFactory(bike=self.bike, user=self.other, start_at=self.start - timedelta(hours=24),
                       end_at=self.start)
        self._auth(self.rider)
        resp = self.client.post(self.list_url, self._payload(), format="json")
        assert resp.status_code == 201, resp.data

    def test_cancelled_booking_does_not_block(self):
        BookingFactory(bike=self.bike, user=self.other, start_at=self.start,
                       end_at=self.start + timedelta(hours=24), status=Booking.CANCELLED)
        self._auth(self.rider)
        resp = self.client.post(self.list_url, self._payload(), format="json")
        assert resp.status_code == 201, resp.data

    def test_anonymous_cannot_book(self):
        resp = self.client.post(self.list_url, self._payload(), format="json")
        assert resp.status_code == 401

    # ---------- listing & visibility ----------
    def test_list_shows_only_own_bookings(self):
        mine = BookingFactory(user=self.rider)
        BookingFactory(user=self.other)
        self._auth(self.rider)
        resp = self.client.get(self.list_url)
        assert resp.status_code == 200
        assert [b["id"] for b in resp.data] == [mine.id]

    def test_other_riders_booking_is_not_found(self):
        booking = BookingFactory(user=self.other)
        self._auth(self.rider)
        assert self.client.get(self._detail(booking)).status_code == 404
        assert self.client.post(self._detail(booking, "cancel")).status_code == 404

    def test_staff_sees_all_bookings(self):
        BookingFactory(user=self.rider)
        BookingFactory(user=self.other)
        staff = UserFactory(is_staff=True)
        self._auth(staff)
        resp = self.client.get(self.list_url)
        assert len(resp.data) == 2

    def test_filter_by_status(self):
        BookingFactory(user=self.rider, status=Booking.CANCELLED)
        pending = BookingFactory(user=self.rider)
        self._auth(self.rider)
        resp = self.client.get(self.list_url, {"status": "pending"})
        assert [b["id"] for b in resp.data] == [pending.id]

    # ---------- modification ----------
    def test_modify_window_reprices(self):
        booking = BookingFactory(user=self.rider, bike=self.bike, start_at=self.start,
                                 end_at=self.start + timedelta(hours=24))
        self._auth(self.rider)
        resp = self.client.patch(
            self._detail(booking),
            {"end_at": (self.start + timedelta(hours=30)).isoformat()},
            format="json",
        )
        assert resp.status_code == 200, resp.data
        assert resp.data["total_hours"] == 30
        assert Decimal(resp.data["total_amount"]) == Decimal("632")

    def test_paid_booking_keeps_window_and_amount(self):
        booking = BookingFactory(user=self.rider, bike=self.bike, paid=True, start_at=self.start,
                                 end_at=self.start + timedelta(hours=24))
        self._auth(self.rider)
        resp = self.client.patch(
            self._detail(booking),
            {"end_at": (self.start + timedelta(hours=72)).isoformat(), "extra_helmet": True},
            format="json",
        )
        assert resp.status_code == 400
        assert "end_at" in resp.data
        assert "extra_helmet" in resp.data
        booking.refresh_from_db()
        assert booking.end_at == self.start + timedelta(hours=24)
        assert booking.total_amount == Decimal("500")

    def test_paid_booking_details_still_editable(self):
        booking = BookingFactory(user=self.rider, bike=self.bike, paid=True, start_at=self.start,
                                 end_at=self.start + timedelta(hours=24))
        self._auth(self.rider)
        resp = self.client.patch(
            self._detail(booking),
            {"drop_location": "Manipal, Udupi", "end_at": booking.end_at.isoformat()},
            format="json",
        )
        assert resp.status_code == 200, resp.data
        assert resp.data["drop_location"] == "Manipal, Udupi"
        assert Decimal(resp.data["total_amount"]) == Decimal("500")
        assert resp.data["status"] == Booking.CONFIRMED

    def test_moving_start_past_end_requires_new_end(self):
        booking = BookingFactory(user=self.rider, bike=self.bike, start_at=self.start,
                                 end_at=self.start + timedelta(hours=4))
        self._auth(self.rider)
        resp = self.client.patch(
            self._detail(booking), {"start_at": (self.start + timedelta(days=2)).isoformat()}, format="json",
        )
        assert resp.status_code == 400
        assert "end_at is required." in str(resp.data["end_at"])

    def test_modify_into_other_booking_rejected(self):
        BookingFactory(bike=self.bike, user=self.other, start_at=self.start + timedelta(days=2),
                       end_at=self.start + timedelta(days=3))
        booking = BookingFactory(user=self.rider, bike=self.bike, start_at=self.start,
                                 end_at=self.start + timedelta(hours=24))
        self._auth(self.rider)
        resp = self.client.patch(
            self._detail(booking), {"end_at": (self.start + timedelta(days=2, hours=2)).isoformat()},
            format="json",
        )
        assert resp.status_code == 400
        assert "already booked" in str(resp.data).lower()

    def test_moving_within_own_window_is_not_a_conflict(self):
        booking = BookingFactory(user=self.rider, bike=self.bike, start_at=self.start,
                                 end_at=self.start + timedelta(hours=24))
        self._auth(self.rider)
        resp = self.client.patch(
            self._detail(booking), {"start_at": (self.start + timedelta(hours=2)).isoformat()}, format="json",
        )
        assert resp.status_code == 200, resp.data
        assert resp.data["total_hours"] == 22

    def test_bike_cannot_be_swapped(self):
        booking = BookingFactory(user=self.rider, bike=self.bike)
        self._auth(self.rider)
        resp = self.client.patch(self._detail(booking), {"bike": BikeFactory().id}, format="json")
        assert resp.status_code == 400
        assert "bike" in resp.data

    def test_cancelled_booking_cannot_be_modified(self):
        booking = BookingFactory(user=self.rider, status=Booking.CANCELLED)
        self._auth(self.rider)
        resp = self.client.patch(self._detail(booking), {"special_instructions": "late"}, format="json")
        assert resp.status_code == 400
        assert "status" in resp.data

    # ---------- cancel & delete ----------
    def test_cancel_pending_booking(self):
        booking = BookingFactory(user=self.rider)
        self._auth(self.rider)
        resp = self.client.post(self._detail(booking, "cancel"))
        assert resp.status_code == 200
        assert resp.data["status"] == Booking.CANCELLED
        assert resp.data["can_cancel"] is False

    def test_cancel_twice_rejected(self):
        booking = BookingFactory(user=self.rider, status=Booking.CANCELLED)
        self._auth(self.rider)
        assert self.client.post(self._detail(booking, "cancel")).status_code == 400

    def test_delete_unpaid_booking(self):
        booking = BookingFactory(user=self.rider)
        self._auth(self.rider)
        assert self.client.delete(self._detail(booking)).status_code == 204
        assert not Booking.objects.filter(pk=booking.pk).exists()

    def test_paid_booking_cannot_be_deleted(self):
        booking = BookingFactory(user=self.rider, paid=True)
        self._auth(self.rider)
        resp = self.client.delete(self._detail(booking))
        assert resp.status_code == 400
        assert Booking.objects.filter(pk=booking.pk).exists()
