from django.core.management.base import BaseCommand
from django.db import transaction

from bikerental.rentals.catalog import STATIC_BIKES
from bikerental.rentals.factories import (
    AdminRoleFactory, AdminUserFactory, BookingFactory, UserFactory, opening_time,
)
from bikerental.rentals.models import Bike, Booking


class Command(BaseCommand):
    """
    Load the fleet into the database:
    - the static catalog bikes (matched by name + location + image, so re-runs are idempotent)
    - optionally demo riders (password: Passw0rd!) with a few pending bookings
    - optionally a back-office admin with full permissions
    """

    help = "Seed the DB with the bike fleet and optional demo riders/bookings."

    def add_arguments(self, parser):
        parser.add_argument("--wipe", action="store_true", help="Delete ALL bikes (and their bookings) first.")
        parser.add_argument("--riders", type=int, default=0, help="How many demo riders to create.")
        parser.add_argument("--admin-email", type=str, default=None, help="Create a super_admin back-office user.")
        parser.add_argument("--password", type=str, default="Passw0rd!", help="Password for created users.")

    @transaction.atomic
    def handle(self, *args, **opts):
        if opts["wipe"]:
            self.stdout.write(self.style.WARNING("Wiping ALL bikes and bookings..."))
            Booking.objects.all().delete()
            Bike.objects.all().delete()

        created = 0
        for item in STATIC_BIKES:
            fields = {k: v for k, v in item.items() if k != "id"}
            _, was_created = Bike.objects.get_or_create(
                name=fields.pop("name"),
                location=fields.pop("location"),
                image_url=fields.pop("image_url"),
                defaults=fields,
            )
            created += int(was_created)
        self.stdout.write(self.style.SUCCESS(f"Bikes: {created} created, {Bike.objects.count()} total"))

        riders_n = opts["riders"]
        if riders_n:
            bikes = list(Bike.objects.filter(status=Bike.Status.AVAILABLE))
            for i in range(riders_n):
                rider = UserFactory(password=opts["password"])
                if bikes:
                    # one day apart per rider so demo bookings never overlap
                    BookingFactory(user=rider, bike=bikes[i % len(bikes)], start_at=opening_time(3 + i, 9))
            self.stdout.write(self.style.SUCCESS(f"Riders created: {riders_n} (password: {opts['password']})"))

        if opts["admin_email"]:
            admin = AdminUserFactory(
                user=UserFactory(email=opts["admin_email"], password=opts["password"], is_staff=True),
                role=AdminRoleFactory(),
            )
            self.stdout.write(self.style.SUCCESS(f"Back-office admin: {admin.user.email}"))
