from django.db import models


class Payment(models.Model):
    """One gateway transaction against a booking (real or simulated)."""

    class Status(models.TextChoices):
        CREATED = "created", "Created"
        AUTHORIZED = "authorized", "Authorized"
        CAPTURED = "captured", "Captured"
        FAILED = "failed", "Failed"
        REFUNDED = "refunded", "Refunded"
        CANCELLED = "cancelled", "Cancelled"

    booking = models.ForeignKey('Booking', on_delete=models.CASCADE, related_name='payments')
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, default='INR')
    status = models.CharField(max_length=12, choices=Status.choices, default=Status.CREATED, db_index=True)
    method = models.CharField(max_length=32, blank=True, default='')
    transaction_id = models.CharField(max_length=64, blank=True, default='', db_index=True)
    order_id = models.CharField(max_length=64, blank=True, default='')
    gateway_response = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['booking', 'status'], name='payment_booking_status_idx'),
        ]

    def __str__(self):
        return f"Payment {self.transaction_id or self.pk} {self.amount} {self.currency} [{self.status}]"
