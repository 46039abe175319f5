import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Bike",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100)),
                ("brand", models.CharField(blank=True, default="", max_length=60)),
                ("model", models.CharField(blank=True, default="", max_length=60)),
                ("category", models.CharField(
                    choices=[("scooter", "Scooter"), ("motorcycle", "Motorcycle"),
                             ("bicycle", "Bicycle"), ("electric", "Electric")],
                    default="scooter", max_length=20,
                )),
                ("price_per_hour", models.DecimalField(
                    decimal_places=2, default=0, max_digits=8,
                    validators=[django.core.validators.MinValueValidator(0)],
                )),
                ("price_per_day", models.DecimalField(
                    db_index=True, decimal_places=2, max_digits=10,
                    validators=[django.core.validators.MinValueValidator(0)],
                )),
                ("location", models.CharField(max_length=100)),
                ("status", models.CharField(
                    choices=[("available", "Available"), ("rented", "Rented"),
                             ("maintenance", "Maintenance"), ("unavailable", "Unavailable")],
                    db_index=True, default="available", max_length=20,
                )),
                ("fuel_type", models.CharField(
                    choices=[("petrol", "Petrol"), ("diesel", "Diesel"), ("electric", "Electric"),
                             ("hybrid", "Hybrid"), ("none", "None")],
                    default="petrol", max_length=20,
                )),
                ("features", models.JSONField(blank=True, default=list)),
                ("description", models.TextField(blank=True, default="")),
                ("image_url", models.URLField(blank=True, default="", max_length=500)),
                ("rating", models.DecimalField(decimal_places=2, default=0, max_digits=3)),
                ("total_ratings", models.PositiveIntegerField(default=0)),
                ("license_required", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="bike_status_created_idx"),
                    models.Index(fields=["category"], name="bike_category_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Verification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("step", models.CharField(
                    choices=[("customer_type", "Customer type"), ("documents", "Documents"),
                             ("age_verification", "Age verification"), ("complete", "Complete")],
                    default="customer_type", max_length=20,
                )),
                ("customer_type", models.CharField(
                    blank=True, choices=[("domestic", "Domestic"), ("international", "International")],
                    default="", max_length=20,
                )),
                ("date_of_birth", models.DateField(blank=True, null=True)),
                ("token", models.UUIDField(blank=True, editable=False, null=True, unique=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="verifications",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="VerificationDocument",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("kind", models.CharField(
                    choices=[("driving_license", "Driving license"), ("id_proof", "Government ID proof"),
                             ("passport", "Passport"), ("driving_permit", "International driving permit")],
                    max_length=20,
                )),
                ("file", models.ImageField(upload_to="verifications/%Y/%m/")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("verification", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="documents",
                    to="rentals.verification",
                )),
            ],
            options={
                "ordering": ["kind"],
                "constraints": [
                    models.UniqueConstraint(fields=("verification", "kind"), name="verification_doc_kind_uniq"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("start_at", models.DateTimeField()),
                ("end_at", models.DateTimeField()),
                ("total_hours", models.PositiveIntegerField(default=0)),
                ("total_amount", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ("extra_helmet", models.BooleanField(default=False)),
                ("pickup_location", models.CharField(max_length=200)),
                ("drop_location", models.CharField(blank=True, default="", max_length=200)),
                ("special_instructions", models.TextField(blank=True, default="")),
                ("status", models.CharField(
                    choices=[("pending", "Pending"), ("confirmed", "Confirmed"), ("active", "Active"),
                             ("completed", "Completed"), ("cancelled", "Cancelled")],
                    default="pending", max_length=12,
                )),
                ("payment_status", models.CharField(
                    choices=[("pending", "Pending"), ("completed", "Completed"),
                             ("failed", "Failed"), ("refunded", "Refunded")],
                    default="pending", max_length=12,
                )),
                ("payment_id", models.CharField(blank=True, default="", max_length=64)),
                ("payment_method", models.CharField(blank=True, default="", max_length=32)),
                ("razorpay_order_id", models.CharField(blank=True, db_index=True, default="", max_length=64)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("bike", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="bookings",
                    to="rentals.bike",
                )),
                ("user", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="bookings",
                    to=settings.AUTH_USER_MODEL,
                )),
                ("verification", models.OneToOneField(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="booking",
                    to="rentals.verification",
                )),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["bike", "status", "start_at", "end_at"], name="booking_overlap_idx"),
                    models.Index(fields=["user", "created_at"], name="booking_user_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=10)),
                ("currency", models.CharField(default="INR", max_length=3)),
                ("status", models.CharField(
                    choices=[("created", "Created"), ("authorized", "Authorized"), ("captured", "Captured"),
                             ("failed", "Failed"), ("refunded", "Refunded"), ("cancelled", "Cancelled")],
                    db_index=True, default="created", max_length=12,
                )),
                ("method", models.CharField(blank=True, default="", max_length=32)),
                ("transaction_id", models.CharField(blank=True, db_index=True, default="", max_length=64)),
                ("order_id", models.CharField(blank=True, default="", max_length=64)),
                ("gateway_response", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("booking", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="payments",
                    to="rentals.booking",
                )),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["booking", "status"], name="payment_booking_status_idx"),
                ],
            },
        ),
    ]
