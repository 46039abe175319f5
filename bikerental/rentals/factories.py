import random
import uuid
from datetime import date, datetime, time, timedelta
from decimal import Decimal

import factory
from django.contrib.auth import get_user_model
from django.utils import timezone
from factory import Faker, LazyFunction, post_generation
from factory.django import DjangoModelFactory, ImageField

from bikerental.users.models import AdminRole, AdminUser
from . import pricing
from .models import Bike, Booking, Payment, Verification, VerificationDocument
from .verification_flow import CustomerType, DocumentKind, Step

LOCATIONS = ("Malpe, Udupi", "Manipal, Udupi", "Kaup, Udupi", "Mangaluru")
MODELS = (
    ("Yamaha", "Fascino"), ("Honda", "Activa 6G"), ("TVS", "Jupiter"),
    ("Bajaj", "Pulsar 150"), ("Royal Enfield", "Classic 350"), ("Ather", "450X"),
)
FEATURES = ("Fuel Efficient", "Comfortable Seat", "LED Headlight", "Digital Display", "USB Charging")


def opening_time(days_ahead, hour=9):
    """Aware local datetime `days_ahead` days from today at `hour`:00, inside opening hours."""
    day = timezone.localdate() + timedelta(days=days_ahead)
    return timezone.make_aware(datetime.combine(day, time(hour)))


# ---------------------------------------------------------------------------

class UserFactory(DjangoModelFactory):
    """
    Demo rider. CustomUser has no 'username' field, so we only set email & names.
    Password is hashed in @post_generation.
    """
    class Meta:
        model = get_user_model()
        django_get_or_create = ("email",)

    email = factory.Sequence(lambda n: f"rider{n}@example.com")
    first_name = Faker("first_name")
    last_name = Faker("last_name")
    phone_number = factory.Sequence(lambda n: f"+9198{n:08d}")

    @post_generation
    def password(self, create, extracted, **kwargs):
        pwd = extracted or "Passw0rd!"
        self.set_password(pwd)
        if create:
            self.save()


class AdminRoleFactory(DjangoModelFactory):
    class Meta:
        model = AdminRole
        django_get_or_create = ("name",)

    name = "super_admin"
    description = "Full back-office access"
    permissions = factory.LazyFunction(lambda: {"all": True})


class AdminUserFactory(DjangoModelFactory):
    class Meta:
        model = AdminUser

    user = factory.SubFactory(UserFactory)
    role = factory.SubFactory(AdminRoleFactory)
    is_active = True

# ---------------------------------------------------------------------------

class BikeFactory(DjangoModelFactory):
    class Meta:
        model = Bike

    class Params:
        make = factory.LazyFunction(lambda: random.choice(MODELS))

    brand = factory.LazyAttribute(lambda o: o.make[0])
    name = factory.LazyAttribute(lambda o: f"{o.make[0]} {o.make[1]}")
    model = "2024 Model"
    category = Bike.Category.SCOOTER
    price_per_hour = Decimal("15")
    price_per_day = factory.LazyFunction(lambda: Decimal(random.choice((300, 360, 450, 600))))
    location = factory.LazyFunction(lambda: random.choice(LOCATIONS))
    status = Bike.Status.AVAILABLE
    features = factory.LazyFunction(lambda: random.sample(FEATURES, 3))
    description = Faker("sentence", nb_words=14)


class BookingFactory(DjangoModelFactory):
    """Pending booking a few days ahead, priced by the tariff."""
    class Meta:
        model = Booking

    bike = factory.SubFactory(BikeFactory)
    user = factory.SubFactory(UserFactory)
    start_at = LazyFunction(lambda: opening_time(random.randint(3, 10), 9))
    end_at = factory.LazyAttribute(lambda o: o.start_at + timedelta(hours=24))
    total_hours = factory.LazyAttribute(lambda o: pricing.rental_hours(o.start_at, o.end_at))
    total_amount = factory.LazyAttribute(
        lambda o: pricing.quote(o.start_at, o.end_at, pricing.booking_addons(o.extra_helmet)).total
    )
    extra_helmet = False
    pickup_location = factory.LazyAttribute(lambda o: o.bike.location)
    status = Booking.PENDING

    class Params:
        paid = factory.Trait(
            status=Booking.CONFIRMED,
            payment_status=Booking.PAYMENT_COMPLETED,
            payment_id=factory.LazyFunction(lambda: f"pay_{uuid.uuid4().hex[:14]}"),
            payment_method="upi",
            paid_at=factory.LazyFunction(timezone.now),
        )


class PaymentFactory(DjangoModelFactory):
    class Meta:
        model = Payment

    booking = factory.SubFactory(BookingFactory, paid=True)
    amount = factory.LazyAttribute(lambda o: o.booking.total_amount)
    currency = "INR"
    status = Payment.Status.CAPTURED
    method = "upi"
    transaction_id = factory.LazyAttribute(lambda o: o.booking.payment_id or f"pay_{uuid.uuid4().hex[:14]}")


class VerificationFactory(DjangoModelFactory):
    """Fresh verification; trait `completed` yields a usable booking token."""
    class Meta:
        model = Verification

    user = factory.SubFactory(UserFactory)

    class Params:
        completed = factory.Trait(
            step=Step.COMPLETE,
            customer_type=CustomerType.DOMESTIC,
            date_of_birth=date(1990, 1, 15),
            token=factory.LazyFunction(uuid.uuid4),
            completed_at=factory.LazyFunction(timezone.now),
        )


class VerificationDocumentFactory(DjangoModelFactory):
    class Meta:
        model = VerificationDocument

    verification = factory.SubFactory(VerificationFactory, customer_type=CustomerType.DOMESTIC)
    kind = DocumentKind.DRIVING_LICENSE
    file = ImageField(width=800, height=500, format="JPEG")
