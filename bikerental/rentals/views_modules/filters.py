from django.db.models import Q, Exists, OuterRef
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from django_filters import rest_framework as df

from ..models import Bike, Booking, Payment


class BikeFilter(df.FilterSet):
    price_min = df.NumberFilter(field_name='price_per_day', lookup_expr='gte', label='Daily price min')
    price_max = df.NumberFilter(field_name='price_per_day', lookup_expr='lte', label='Daily price max')
    location  = df.CharFilter(field_name='location', lookup_expr='icontains', label='Location (contains)')
    category  = df.CharFilter(field_name='category', lookup_expr='iexact', label='Category (exact)')
    status    = df.ChoiceFilter(choices=Bike.Status.choices, label='Status (back-office only)')

    q = df.CharFilter(method='filter_q', label='Search')
    available_from = df.IsoDateTimeFilter(method='filter_available', label='Available from (ISO 8601)')
    available_to   = df.IsoDateTimeFilter(method='filter_available', label='Available to (ISO 8601)')

    def filter_q(self, queryset, name, value):
        terms = [t.strip() for t in (value or "").split() if t.strip()]
        for term in terms:
            queryset = queryset.filter(
                Q(name__icontains=term) |
                Q(brand__icontains=term) |
                Q(model__icontains=term)
            )
        return queryset

    def _availability_range(self):
        req = getattr(self, 'request', None)
        if not req:
            return None, None
        s = req.query_params.get('available_from') or None
        e = req.query_params.get('available_to') or None
        start = parse_datetime(s) if s else None
        end = parse_datetime(e) if e else None
        if start and timezone.is_naive(start):
            start = timezone.make_aware(start)
        if end and timezone.is_naive(end):
            end = timezone.make_aware(end)
        return start, end

    def filter_available(self, queryset, name, value):
        """
        Exclude bikes holding an occupying booking that overlaps the window.
        Overlap: existing.start_at < req_end AND existing.end_at > req_start
        """
        # Prevent applying twice (method bound to two fields).
        if getattr(self, '_availability_applied', False):
            return queryset

        start, end = self._availability_range()
        if not start or not end or end <= start:
            return queryset

        conflict = Booking.objects.filter(
            bike=OuterRef('pk'),
            status__in=Booking.OCCUPYING_STATUSES,
            start_at__lt=end,
            end_at__gt=start,
        )
        self._availability_applied = True
        return queryset.exclude(Exists(conflict))

    class Meta:
        model = Bike
        fields = [
            'q', 'price_min', 'price_max',
            'location', 'category', 'status',
            'available_from', 'available_to',
        ]


class BookingFilter(df.FilterSet):
    status = df.ChoiceFilter(choices=Booking.STATUS_CHOICES)
    payment_status = df.ChoiceFilter(choices=Booking.PAYMENT_STATUS_CHOICES)

    class Meta:
        model = Booking
        fields = ['status', 'payment_status', 'bike']


class PaymentFilter(df.FilterSet):
    status = df.ChoiceFilter(choices=Payment.Status.choices)
    created_from = df.IsoDateTimeFilter(field_name='created_at', lookup_expr='gte')
    created_to = df.IsoDateTimeFilter(field_name='created_at', lookup_expr='lte')

    class Meta:
        model = Payment
        fields = ['status', 'booking', 'created_from', 'created_to']
