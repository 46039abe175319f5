from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views_modules import (
    BikeViewSet, BookingViewSet, VerificationViewSet,
    PaymentViewSet, AdminPaymentViewSet, DashboardView,
)

app_name = "rentals"

router = DefaultRouter()
router.register(r"bikes", BikeViewSet, basename="bike")
router.register(r"bookings", BookingViewSet, basename="booking")
router.register(r"verifications", VerificationViewSet, basename="verification")
router.register(r"payments", PaymentViewSet, basename="payment")
router.register(r"admin/payments", AdminPaymentViewSet, basename="admin-payment")

urlpatterns = [
    path("", include(router.urls)),
    path("admin/dashboard/", DashboardView.as_view(), name="admin-dashboard"),
]
