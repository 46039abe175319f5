from django.apps import AppConfig


class RentalsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "bikerental.rentals"
    label = "rentals"

    def ready(self):
        # Import signal handlers
        from . import signals  # noqa: F401
