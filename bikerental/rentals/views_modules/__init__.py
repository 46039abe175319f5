from .bike import BikeViewSet
from .booking import BookingViewSet
from .verification import VerificationViewSet
from .payment import PaymentViewSet, AdminPaymentViewSet
from .webhook import RazorpayWebhookView
from .dashboard import DashboardView
from .filters import BikeFilter, BookingFilter, PaymentFilter

__all__ = [
    "BikeViewSet",
    "BookingViewSet",
    "VerificationViewSet",
    "PaymentViewSet",
    "AdminPaymentViewSet",
    "RazorpayWebhookView",
    "DashboardView",
    "BikeFilter",
    "BookingFilter",
    "PaymentFilter",
]
