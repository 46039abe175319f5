from .bike import Bike
from .verification import Verification, VerificationDocument
from .booking import Booking
from .payment import Payment

__all__ = [
    "Bike",
    "Booking",
    "Payment",
    "Verification",
    "VerificationDocument",
]
