from .common import DetailSerializer
from .bike import BikeSerializer
from .availability import (
    AvailabilitySnapshotSerializer, BikeAvailabilityItemSerializer,
    QuoteQuerySerializer, PriceQuoteSerializer,
)
from .booking import BookingSerializer, PaymentVerificationSerializer
from .payment import PaymentSerializer, PaymentSummarySerializer, CheckoutSerializer
from .verification import (
    VerificationSerializer, CustomerTypeSerializer,
    DocumentUploadSerializer, DateOfBirthSerializer,
)

__all__ = [
    "DetailSerializer",
    "BikeSerializer",
    "AvailabilitySnapshotSerializer",
    "BikeAvailabilityItemSerializer",
    "QuoteQuerySerializer",
    "PriceQuoteSerializer",
    "BookingSerializer",
    "PaymentVerificationSerializer",
    "PaymentSerializer",
    "PaymentSummarySerializer",
    "CheckoutSerializer",
    "VerificationSerializer",
    "CustomerTypeSerializer",
    "DocumentUploadSerializer",
    "DateOfBirthSerializer",
]
