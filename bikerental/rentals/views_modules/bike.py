import logging

from django.db import DatabaseError
from django_filters import rest_framework as df
from drf_spectacular.utils import (
    extend_schema_view, extend_schema, OpenApiParameter, OpenApiTypes,
    OpenApiExample, OpenApiResponse, inline_serializer,
)
from rest_framework import viewsets, filters, serializers, status
from rest_framework.decorators import action
from rest_framework.response import Response

from bikerental.users.models import user_has_backoffice_permission
from .. import availability, pricing
from ..catalog import filter_static_bikes
from ..models import Bike
from ..pagination import BikePagination
from ..permissions import CanManageVehiclesOrReadOnly
from ..serializers import (
    BikeSerializer, AvailabilitySnapshotSerializer, BikeAvailabilityItemSerializer,
    QuoteQuerySerializer, PriceQuoteSerializer,
)
from ..throttling import ScopedRateThrottleIsolated
from .filters import BikeFilter

logger = logging.getLogger(__name__)


@extend_schema_view(
    list=extend_schema(
        summary="List bikes",
        description=(
            "Paginated catalog, newest first. The public sees available bikes only. "
            "If the catalog cannot be read, the static fleet is served with `fallback: true`."
        ),
        parameters=[
            OpenApiParameter("q", OpenApiTypes.STR, description="Search terms (name, brand, model)"),
            OpenApiParameter("location", OpenApiTypes.STR, description="Location contains"),
            OpenApiParameter("category", OpenApiTypes.STR, description="Category"),
            OpenApiParameter("price_min", OpenApiTypes.NUMBER, description="Minimum daily price"),
            OpenApiParameter("price_max", OpenApiTypes.NUMBER, description="Maximum daily price"),
            OpenApiParameter("available_from", OpenApiTypes.DATETIME, description="Free from (ISO 8601)"),
            OpenApiParameter("available_to", OpenApiTypes.DATETIME, description="Free until (ISO 8601)"),
            OpenApiParameter("status", OpenApiTypes.STR, description="Status (back-office only)"),
        ],
        responses={
            200: BikeSerializer(many=True),
            400: OpenApiResponse(description="Invalid filter parameters"),
        }
    ),
    create=extend_schema(
        summary="Add bike",
        description="Add a vehicle to the fleet (manage_vehicles)",
        responses={
            201: BikeSerializer,
            400: OpenApiResponse(description="Validation error"),
            403: OpenApiResponse(description="Admin privileges required"),
        }
    ),
    retrieve=extend_schema(
        summary="Get bike details",
        responses={
            200: BikeSerializer,
            404: OpenApiResponse(description="Bike not found"),
        }
    ),
    update=extend_schema(
        summary="Update bike",
        description="Replace a vehicle (manage_vehicles)",
        responses={
            200: BikeSerializer,
            400: OpenApiResponse(description="Validation error"),
            403: OpenApiResponse(description="Admin privileges required"),
            404: OpenApiResponse(description="Bike not found"),
        }
    ),
    partial_update=extend_schema(
        summary="Partial update bike",
        description="Change price, status or details of a vehicle (manage_vehicles)",
        responses={
            200: BikeSerializer,
            400: OpenApiResponse(description="Validation error"),
            403: OpenApiResponse(description="Admin privileges required"),
            404: OpenApiResponse(description="Bike not found"),
        }
    ),
    destroy=extend_schema(
        summary="Delete bike",
        description="Remove a vehicle and its bookings (manage_vehicles)",
        responses={
            204: OpenApiResponse(description="Bike deleted"),
            403: OpenApiResponse(description="Admin privileges required"),
            404: OpenApiResponse(description="Bike not found"),
        }
    ),
)
class BikeViewSet(viewsets.ModelViewSet):
    """
    Bike catalog.

    Public read access with filtering and pagination; vehicle management for
    back-office users holding the `manage_vehicles` permission.
    """
    serializer_class = BikeSerializer
    permission_classes = (CanManageVehiclesOrReadOnly,)
    pagination_class = BikePagination
    filter_backends = (df.DjangoFilterBackend, filters.OrderingFilter)
    filterset_class = BikeFilter
    ordering_fields = ['price_per_day', 'price_per_hour', 'rating', 'created_at']
    ordering = ['-created_at']
    throttle_classes = [ScopedRateThrottleIsolated]

    def get_throttles(self):
        scope_map = {
            'list': 'bikes_list',
            'retrieve': 'bikes_list',
            'availability': 'bikes_availability',
            'availability_map': 'bikes_availability',
            'quote': 'bikes_availability',
        }
        self.throttle_scope = scope_map.get(getattr(self, 'action', None))
        return super().get_throttles()

    def get_queryset(self):
        """Back-office sees every status; everyone else only bookable bikes."""
        qs = Bike.objects.all()
        if not user_has_backoffice_permission(self.request.user, 'manage_vehicles'):
            qs = qs.filter(status=Bike.Status.AVAILABLE)
        return qs

    def list(self, request, *args, **kwargs):
        try:
            return super().list(request, *args, **kwargs)
        except DatabaseError:
            logger.warning("Bike catalog query failed; serving static catalog", exc_info=True)
            items = filter_static_bikes(request.query_params)
            return Response({
                "count": len(items),
                "next": None,
                "previous": None,
                "fallback": True,
                "results": BikeSerializer(items, many=True).data,
            })

    @extend_schema(
        summary="Bike availability",
        description=(
            "Snapshot for one bike: unavailable while a pending, confirmed or active "
            "booking has not ended yet; `next_available_at` is the earliest such end."
        ),
        responses={
            200: AvailabilitySnapshotSerializer,
            404: OpenApiResponse(description="Bike not found"),
        }
    )
    @action(detail=True, methods=['get'])
    def availability(self, request, pk=None):
        bike = self.get_object()
        snapshot = availability.bike_availability(bike.pk)
        return Response(AvailabilitySnapshotSerializer(snapshot.as_dict()).data)

    @extend_schema(
        summary="Availability of all bikes",
        responses={
            200: OpenApiResponse(
                response=inline_serializer(
                    name="BikeAvailabilityMap",
                    fields={"results": BikeAvailabilityItemSerializer(many=True)},
                ),
                description="One entry per listed bike",
                examples=[
                    OpenApiExample(
                        "Example response",
                        value={"results": [
                            {"bike_id": 1, "available": True, "next_available_at": None},
                            {"bike_id": 2, "available": False, "next_available_at": "2025-01-15T12:00:00+05:30"},
                        ]},
                    )
                ],
            ),
        }
    )
    @action(detail=False, methods=['get'], url_path='availability', url_name='availability-map')
    def availability_map(self, request):
        busy = availability.all_bikes_availability()
        items = [
            {
                "bike_id": bike_id,
                "available": bike_id not in busy,
                "next_available_at": busy.get(bike_id),
            }
            for bike_id in self.get_queryset().values_list('id', flat=True)
        ]
        return Response({"results": BikeAvailabilityItemSerializer(items, many=True).data})

    @extend_schema(
        summary="Price quote",
        description="Price a rental window for this bike; nothing is reserved.",
        parameters=[
            OpenApiParameter("start_at", OpenApiTypes.DATETIME, required=True),
            OpenApiParameter("end_at", OpenApiTypes.DATETIME, required=True),
            OpenApiParameter("extra_helmet", OpenApiTypes.BOOL),
        ],
        responses={
            200: PriceQuoteSerializer,
            400: OpenApiResponse(description="Invalid window"),
            404: OpenApiResponse(description="Bike not found"),
        }
    )
    @action(detail=True, methods=['get'])
    def quote(self, request, pk=None):
        self.get_object()
        params = QuoteQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        data = params.validated_data
        try:
            q = pricing.quote(
                data["start_at"], data["end_at"],
                pricing.booking_addons(data.get("extra_helmet", False)),
            )
        except ValueError as exc:
            raise serializers.ValidationError({"detail": str(exc)})
        return Response(PriceQuoteSerializer(q.as_dict()).data, status=status.HTTP_200_OK)
