import logging

from django.conf import settings
from django.http import Http404
from django_filters import rest_framework as df
from drf_spectacular.utils import (
    extend_schema_view, extend_schema, OpenApiParameter, OpenApiTypes,
    OpenApiResponse,
)
from rest_framework import viewsets, permissions, filters, status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from .. import gateway, payments
from ..models import Booking, Payment
from ..permissions import IsBookingOwnerOrStaff
from ..serializers import (
    BookingSerializer, PaymentVerificationSerializer, PaymentSerializer, CheckoutSerializer,
    DetailSerializer,
)
from ..throttling import ScopedRateThrottleIsolated
from .filters import BookingFilter

logger = logging.getLogger(__name__)


@extend_schema_view(
    list=extend_schema(
        summary="List bookings",
        description="Bookings of the current user (staff: all bookings)",
        parameters=[
            OpenApiParameter("status", OpenApiTypes.STR, description="Filter by booking status"),
            OpenApiParameter("payment_status", OpenApiTypes.STR, description="Filter by payment status"),
        ],
        responses={200: BookingSerializer(many=True)},
    ),
    create=extend_schema(
        summary="Create booking",
        description=(
            "Book a bike for a window inside opening hours. Requires the token of a "
            "completed rider verification; price is computed server-side."
        ),
        request=BookingSerializer,
        responses={
            201: BookingSerializer,
            400: OpenApiResponse(description="Validation error or overlapping booking"),
            401: OpenApiResponse(description="Authentication required"),
        }
    ),
    retrieve=extend_schema(
        summary="Get booking details",
        responses={
            200: BookingSerializer,
            404: OpenApiResponse(description="Booking not found"),
        }
    ),
    update=extend_schema(
        summary="Update booking",
        request=BookingSerializer,
        responses={
            200: BookingSerializer,
            400: OpenApiResponse(description="Validation error"),
            404: OpenApiResponse(description="Booking not found"),
        }
    ),
    partial_update=extend_schema(
        summary="Modify booking",
        description="Move the window or change details of a booking that has not started. Unpaid bookings are re-priced; paid bookings keep their window and add-ons.",
        request=BookingSerializer,
        responses={
            200: BookingSerializer,
            400: OpenApiResponse(description="Validation error"),
            404: OpenApiResponse(description="Booking not found"),
        }
    ),
    destroy=extend_schema(
        summary="Delete booking",
        description="Remove the booking outright. Paid bookings must be cancelled instead.",
        responses={
            204: OpenApiResponse(description="Booking deleted"),
            400: OpenApiResponse(description="Booking is paid"),
            404: OpenApiResponse(description="Booking not found"),
        }
    ),
)
class BookingViewSet(viewsets.ModelViewSet):
    """
    ViewSet for managing bookings.

    Every read and write is scoped to the authenticated renter; payment
    actions hand over to Razorpay and apply only verified outcomes.
    """
    serializer_class = BookingSerializer
    permission_classes = (permissions.IsAuthenticated, IsBookingOwnerOrStaff)
    filter_backends = (df.DjangoFilterBackend, filters.OrderingFilter)
    filterset_class = BookingFilter
    ordering_fields = ['created_at', 'start_at']
    ordering = ['-created_at']
    throttle_classes = [ScopedRateThrottleIsolated]

    def get_throttles(self):
        scope_map = {
            'create': 'bookings_mutation',
            'update': 'bookings_mutation',
            'partial_update': 'bookings_mutation',
            'destroy': 'bookings_mutation',
            'cancel': 'bookings_mutation',
            'checkout': 'payments',
            'verify_payment': 'payments',
            'simulate_payment': 'payments',
        }
        self.throttle_scope = scope_map.get(getattr(self, 'action', None))
        return super().get_throttles()

    def get_queryset(self):
        user = self.request.user
        qs = Booking.objects.select_related('bike', 'user')
        if user.is_staff:
            return qs
        return qs.filter(user=user)

    def perform_destroy(self, instance):
        if instance.is_paid:
            raise ValidationError({"payment_status": "Paid bookings cannot be deleted; cancel instead."})
        logger.info("Booking %s deleted by user %s", instance.pk, self.request.user.pk)
        instance.delete()

    @extend_schema(
        summary="Cancel booking",
        description="Cancel a pending or confirmed booking before it starts",
        request=None,
        responses={
            200: BookingSerializer,
            400: OpenApiResponse(description="Booking cannot be cancelled"),
            404: OpenApiResponse(description="Booking not found"),
        }
    )
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        booking = self.get_object()

        if booking.status not in Booking.MODIFIABLE_STATUSES:
            raise ValidationError({"status": "Only pending or confirmed bookings can be cancelled."})
        if booking.has_started():
            raise ValidationError({"start_at": "Cannot cancel a booking that has already started."})

        booking.status = Booking.CANCELLED
        booking.save(update_fields=['status', 'updated_at'])
        logger.info("Booking %s cancelled", booking.pk)
        return Response(self.get_serializer(booking).data)

    def _ensure_payable(self, booking):
        if booking.is_paid:
            raise ValidationError({"payment_status": "This booking is already paid."})
        if booking.status != Booking.PENDING:
            raise ValidationError({"status": "Only pending bookings can be paid."})

    @extend_schema(
        summary="Start checkout",
        description="Create a Razorpay order for the booking amount and return checkout widget options",
        request=None,
        responses={
            200: CheckoutSerializer,
            400: OpenApiResponse(description="Booking is not payable"),
            502: OpenApiResponse(response=DetailSerializer, description="Payment gateway unavailable"),
        }
    )
    @action(detail=True, methods=['post'])
    def checkout(self, request, pk=None):
        booking = self.get_object()
        self._ensure_payable(booking)

        try:
            order = gateway.create_order(booking)
        except gateway.PaymentGatewayError:
            detail = "Payment gateway is unavailable. Please try again later."
            if settings.PAYMENTS_TEST_MODE:
                detail += " Test mode is enabled: use simulate-payment instead."
            return Response({"detail": detail}, status=status.HTTP_502_BAD_GATEWAY)

        booking.razorpay_order_id = order["id"]
        booking.save(update_fields=['razorpay_order_id', 'updated_at'])
        return Response(CheckoutSerializer(gateway.checkout_params(booking, order)).data)

    @extend_schema(
        summary="Verify payment",
        description="Check the signed checkout callback and confirm the booking",
        request=PaymentVerificationSerializer,
        responses={
            200: BookingSerializer,
            400: OpenApiResponse(description="Invalid signature or booking not payable"),
        }
    )
    @action(detail=True, methods=['post'], url_path='verify-payment')
    def verify_payment(self, request, pk=None):
        booking = self.get_object()
        serializer = PaymentVerificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        self._ensure_payable(booking)

        if not booking.razorpay_order_id:
            raise ValidationError({"razorpay_order_id": "Start checkout for this booking first."})
        if data["razorpay_order_id"] != booking.razorpay_order_id:
            raise ValidationError({"razorpay_order_id": "Order does not belong to this booking."})
        if Payment.objects.filter(transaction_id=data["razorpay_payment_id"]).exclude(booking=booking).exists():
            logger.warning(
                "Payment %s replayed against booking %s", data["razorpay_payment_id"], booking.pk,
            )
            raise ValidationError({"razorpay_payment_id": "This payment was already used for another booking."})
        if not gateway.verify_payment_signature(
            data["razorpay_order_id"], data["razorpay_payment_id"], data["razorpay_signature"],
        ):
            logger.warning("Payment signature mismatch for booking %s", booking.pk)
            raise ValidationError({"razorpay_signature": "Payment signature verification failed."})

        booking, _ = payments.confirm_booking_payment(
            booking,
            data["razorpay_payment_id"],
            method=data.get("method") or "razorpay",
            order_id=data["razorpay_order_id"],
            gateway_response=dict(data),
        )
        return Response(self.get_serializer(booking).data)

    @extend_schema(
        summary="Simulate payment",
        description="Test mode only: confirm the booking with a fabricated transaction",
        request=None,
        responses={
            200: PaymentSerializer,
            400: OpenApiResponse(description="Booking not payable"),
            404: OpenApiResponse(description="Test mode disabled or booking not found"),
        }
    )
    @action(detail=True, methods=['post'], url_path='simulate-payment')
    def simulate_payment(self, request, pk=None):
        if not settings.PAYMENTS_TEST_MODE:
            raise Http404
        booking = self.get_object()
        self._ensure_payable(booking)
        booking, payment = payments.simulate_payment(booking)
        return Response(PaymentSerializer(payment).data)
