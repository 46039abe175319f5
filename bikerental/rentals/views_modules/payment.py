import logging

from django.db.models import Count, Q, Sum
from django_filters import rest_framework as df
from drf_spectacular.utils import (
    extend_schema_view, extend_schema, OpenApiParameter, OpenApiTypes,
    OpenApiExample, OpenApiResponse,
)
from rest_framework import viewsets, permissions, filters, status
from rest_framework.decorators import action
from rest_framework.response import Response

from bikerental.users.permissions import CanViewPayments
from .. import gateway, payments
from ..models import Payment
from ..pagination import BikePagination
from ..permissions import IsBookingOwnerOrStaff
from ..serializers import PaymentSerializer, PaymentSummarySerializer, DetailSerializer
from ..throttling import ScopedRateThrottleIsolated
from .filters import PaymentFilter

logger = logging.getLogger(__name__)


def payment_summary(queryset):
    totals = queryset.aggregate(
        total_amount=Sum('amount'),
        count=Count('id'),
        captured=Count('id', filter=Q(status=Payment.Status.CAPTURED)),
        failed=Count('id', filter=Q(status=Payment.Status.FAILED)),
        authorized=Count('id', filter=Q(status=Payment.Status.AUTHORIZED)),
    )
    totals['total_amount'] = totals['total_amount'] or 0
    return totals


@extend_schema_view(
    list=extend_schema(
        summary="List payments",
        description="Payments for the current user's bookings (staff: all)",
        responses={200: PaymentSerializer(many=True)},
    ),
    retrieve=extend_schema(
        summary="Get payment",
        responses={200: PaymentSerializer, 404: OpenApiResponse(description="Payment not found")},
    ),
)
class PaymentViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = PaymentSerializer
    permission_classes = (permissions.IsAuthenticated, IsBookingOwnerOrStaff)
    filter_backends = (df.DjangoFilterBackend, filters.OrderingFilter)
    filterset_class = PaymentFilter
    ordering_fields = ['created_at', 'amount']
    ordering = ['-created_at']
    throttle_classes = [ScopedRateThrottleIsolated]

    def get_throttles(self):
        self.throttle_scope = 'payments' if getattr(self, 'action', None) == 'refresh' else None
        return super().get_throttles()

    def get_queryset(self):
        qs = Payment.objects.select_related('booking__user', 'booking__bike')
        if self.request.user.is_staff:
            return qs
        return qs.filter(booking__user=self.request.user)

    @extend_schema(
        summary="Refresh from gateway",
        description="Fetch the payment from Razorpay and update the local status (view_payments)",
        request=None,
        responses={
            200: PaymentSerializer,
            400: OpenApiResponse(description="Payment has no gateway transaction"),
            403: OpenApiResponse(description="Admin privileges required"),
            502: OpenApiResponse(response=DetailSerializer, description="Payment gateway unavailable"),
        }
    )
    @action(detail=True, methods=['post'], permission_classes=[CanViewPayments])
    def refresh(self, request, pk=None):
        payment = Payment.objects.select_related('booking').filter(pk=pk).first()
        if payment is None:
            return Response({"detail": "Payment not found."}, status=status.HTTP_404_NOT_FOUND)
        if not payment.transaction_id or payment.gateway_response.get("simulated"):
            return Response(
                {"detail": "Only gateway transactions can be refreshed."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        try:
            remote = gateway.fetch_payment(payment.transaction_id)
        except gateway.PaymentGatewayError:
            return Response(
                {"detail": "Payment gateway is unavailable. Please try again later."},
                status=status.HTTP_502_BAD_GATEWAY,
            )
        payments.refresh_payment(payment, remote)
        return Response(PaymentSerializer(payment).data)


@extend_schema_view(
    list=extend_schema(
        summary="Payment tracking",
        description="All payments with search and a summary over the filtered set (view_payments)",
        parameters=[
            OpenApiParameter("status", OpenApiTypes.STR, description="Payment status"),
            OpenApiParameter("search", OpenApiTypes.STR, description="Transaction id, order id or customer email"),
            OpenApiParameter("ordering", OpenApiTypes.STR, description="created_at, amount (prefix - for desc)"),
        ],
        responses={
            200: OpenApiResponse(
                description="Paginated payments plus summary",
                examples=[
                    OpenApiExample(
                        "Example response",
                        value={
                            "count": 2, "next": None, "previous": None,
                            "summary": {"total_amount": "1000.00", "count": 2,
                                        "captured": 2, "failed": 0, "authorized": 0},
                            "results": [],
                        },
                    )
                ],
            ),
            403: OpenApiResponse(description="Admin privileges required"),
        }
    ),
)
class AdminPaymentViewSet(viewsets.ReadOnlyModelViewSet):
    """Back-office payment tracking."""
    serializer_class = PaymentSerializer
    permission_classes = (CanViewPayments,)
    pagination_class = BikePagination
    filter_backends = (df.DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter)
    filterset_class = PaymentFilter
    search_fields = ['transaction_id', 'order_id', 'booking__user__email']
    ordering_fields = ['created_at', 'amount']
    ordering = ['-created_at']

    def get_queryset(self):
        return Payment.objects.select_related('booking__user', 'booking__bike')

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        summary = PaymentSummarySerializer(payment_summary(queryset)).data

        page = self.paginate_queryset(queryset)
        if page is not None:
            response = self.get_paginated_response(self.get_serializer(page, many=True).data)
            response.data['summary'] = summary
            return response
        return Response({"summary": summary, "results": self.get_serializer(queryset, many=True).data})
