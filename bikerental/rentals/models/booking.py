from django.db import models
from django.conf import settings
from django.utils import timezone

from .bike import Bike


class Booking(models.Model):
    """Rental of one bike for a [start_at, end_at) window."""
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    ACTIVE = 'active'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (CONFIRMED, 'Confirmed'),
        (ACTIVE, 'Active'),
        (COMPLETED, 'Completed'),
        (CANCELLED, 'Cancelled'),
    ]
    # Statuses that hold the bike
    OCCUPYING_STATUSES = (PENDING, CONFIRMED, ACTIVE)
    MODIFIABLE_STATUSES = (PENDING, CONFIRMED)

    PAYMENT_PENDING = 'pending'
    PAYMENT_COMPLETED = 'completed'
    PAYMENT_FAILED = 'failed'
    PAYMENT_REFUNDED = 'refunded'
    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, 'Pending'),
        (PAYMENT_COMPLETED, 'Completed'),
        (PAYMENT_FAILED, 'Failed'),
        (PAYMENT_REFUNDED, 'Refunded'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='bookings')
    bike = models.ForeignKey(Bike, on_delete=models.CASCADE, related_name='bookings')
    start_at = models.DateTimeField()
    end_at = models.DateTimeField()
    total_hours = models.PositiveIntegerField(default=0)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    extra_helmet = models.BooleanField(default=False)
    pickup_location = models.CharField(max_length=200)
    drop_location = models.CharField(max_length=200, blank=True, default='')
    special_instructions = models.TextField(blank=True, default='')

    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=PENDING)
    payment_status = models.CharField(max_length=12, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING)
    payment_id = models.CharField(max_length=64, blank=True, default='')
    payment_method = models.CharField(max_length=32, blank=True, default='')
    razorpay_order_id = models.CharField(max_length=64, blank=True, default='', db_index=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    verification = models.OneToOneField(
        'Verification',
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='booking',
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(
                fields=['bike', 'status', 'start_at', 'end_at'],
                name='booking_overlap_idx',
            ),
            models.Index(fields=['user', 'created_at'], name='booking_user_created_idx'),
        ]

    def __str__(self):
        return f"{self.user} → {self.bike} [{self.status}]"

    @property
    def is_paid(self):
        return self.payment_status == self.PAYMENT_COMPLETED

    def has_started(self, now=None):
        return (now or timezone.now()) >= self.start_at

    def mark_paid(self, payment_id, method, when=None):
        """Apply a verified payment: payment completed, a pending booking confirmed."""
        if self.status == self.PENDING:
            self.status = self.CONFIRMED
        self.payment_status = self.PAYMENT_COMPLETED
        self.payment_id = payment_id or ''
        self.payment_method = method or ''
        self.paid_at = when or timezone.now()
        self.save(update_fields=[
            'status', 'payment_status', 'payment_id', 'payment_method', 'paid_at', 'updated_at',
        ])
