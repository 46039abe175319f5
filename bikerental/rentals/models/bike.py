from django.core.validators import MinValueValidator
from django.db import models


class Bike(models.Model):
    class Category(models.TextChoices):
        SCOOTER = "scooter", "Scooter"
        MOTORCYCLE = "motorcycle", "Motorcycle"
        BICYCLE = "bicycle", "Bicycle"
        ELECTRIC = "electric", "Electric"

    class Status(models.TextChoices):
        AVAILABLE = "available", "Available"
        RENTED = "rented", "Rented"
        MAINTENANCE = "maintenance", "Maintenance"
        UNAVAILABLE = "unavailable", "Unavailable"

    class FuelType(models.TextChoices):
        PETROL = "petrol", "Petrol"
        DIESEL = "diesel", "Diesel"
        ELECTRIC = "electric", "Electric"
        HYBRID = "hybrid", "Hybrid"
        NONE = "none", "None"

    name = models.CharField(max_length=100)
    brand = models.CharField(max_length=60, blank=True, default='')
    model = models.CharField(max_length=60, blank=True, default='')
    category = models.CharField(
        max_length=20,
        choices=Category.choices,
        default=Category.SCOOTER,
    )
    price_per_hour = models.DecimalField(
        max_digits=8, decimal_places=2, default=0,
        validators=[MinValueValidator(0)],
    )
    price_per_day = models.DecimalField(
        max_digits=10, decimal_places=2, db_index=True,
        validators=[MinValueValidator(0)],
    )
    location = models.CharField(max_length=100)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.AVAILABLE,
        db_index=True,
    )
    fuel_type = models.CharField(max_length=20, choices=FuelType.choices, default=FuelType.PETROL)
    features = models.JSONField(default=list, blank=True)
    description = models.TextField(blank=True, default='')
    image_url = models.URLField(max_length=500, blank=True, default='')
    rating = models.DecimalField(max_digits=3, decimal_places=2, default=0)
    total_ratings = models.PositiveIntegerField(default=0)
    license_required = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='bike_status_created_idx'),
            models.Index(fields=['category'], name='bike_category_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.model})" if self.model else self.name
