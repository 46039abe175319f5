from datetime import timedelta

from django.contrib.auth import get_user_model
from django.db.models import Count, Q, Sum
from django.utils import timezone
from drf_spectacular.utils import extend_schema, OpenApiExample, OpenApiResponse
from rest_framework.response import Response
from rest_framework.views import APIView

from bikerental.users.permissions import CanViewDashboard
from ..models import Bike, Booking, Payment
from ..serializers import BookingSerializer


def _counts_by(queryset, field, choices):
    counts = {value: 0 for value, _ in choices}
    for row in queryset.values(field).annotate(n=Count('id')):
        counts[row[field]] = row['n']
    return counts


class DashboardView(APIView):
    """Back-office overview: fleet, bookings and revenue."""
    permission_classes = [CanViewDashboard]

    @extend_schema(
        summary="Admin dashboard",
        responses={
            200: OpenApiResponse(
                description="Dashboard figures",
                examples=[
                    OpenApiExample(
                        "Example response",
                        value={
                            "bikes": {"total": 3, "by_status": {"available": 3, "rented": 0,
                                                                "maintenance": 0, "unavailable": 0}},
                            "bookings": {"total": 5, "by_status": {"pending": 1, "confirmed": 3, "active": 0,
                                                                   "completed": 1, "cancelled": 0},
                                         "last_7_days": 2},
                            "payments": {"revenue": "2100.00", "captured": 4, "failed": 1, "authorized": 0},
                            "users": 12,
                            "recent_bookings": [],
                        },
                    )
                ],
            ),
            403: OpenApiResponse(description="Admin privileges required"),
        }
    )
    def get(self, request):
        week_ago = timezone.now() - timedelta(days=7)
        payments = Payment.objects.aggregate(
            revenue=Sum('amount', filter=Q(status=Payment.Status.CAPTURED)),
            captured=Count('id', filter=Q(status=Payment.Status.CAPTURED)),
            failed=Count('id', filter=Q(status=Payment.Status.FAILED)),
            authorized=Count('id', filter=Q(status=Payment.Status.AUTHORIZED)),
        )
        payments['revenue'] = str(payments['revenue'] or "0.00")

        recent = Booking.objects.select_related('bike', 'user').order_by('-created_at')[:5]
        return Response({
            "bikes": {
                "total": Bike.objects.count(),
                "by_status": _counts_by(Bike.objects.all(), 'status', Bike.Status.choices),
            },
            "bookings": {
                "total": Booking.objects.count(),
                "by_status": _counts_by(Booking.objects.all(), 'status', Booking.STATUS_CHOICES),
                "last_7_days": Booking.objects.filter(created_at__gte=week_ago).count(),
            },
            "payments": payments,
            "users": get_user_model().objects.count(),
            "recent_bookings": BookingSerializer(recent, many=True, context={"request": request}).data,
        })
