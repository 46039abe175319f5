from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone
from drf_spectacular.utils import extend_schema_field, OpenApiTypes
from rest_framework import serializers

from bikerental.rentals import availability, pricing
from bikerental.rentals.models import Bike, Booking, Verification
from bikerental.rentals.verification_flow import Step
from bikerental.rentals.windows import reconcile_window, validate_booking_window
from .common import django_errors_to_drf


class BookingSerializer(serializers.ModelSerializer):
    # Writable input: `bike`, `start_at`, `end_at`, locations, notes, `extra_helmet`
    bike = serializers.PrimaryKeyRelatedField(queryset=Bike.objects.all())
    bike_name = serializers.CharField(source="bike.name", read_only=True)
    start_at = serializers.DateTimeField(required=False)
    end_at = serializers.DateTimeField(required=False, allow_null=True)
    pickup_location = serializers.CharField(required=False, allow_blank=True, max_length=200)
    verification_token = serializers.UUIDField(write_only=True, required=False)

    # Action flags for the "my bookings" page
    can_modify = serializers.SerializerMethodField(read_only=True)
    can_cancel = serializers.SerializerMethodField(read_only=True)
    can_pay = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Booking
        fields = (
            "id",
            "bike", "bike_name",
            "start_at", "end_at",
            "total_hours", "total_amount", "extra_helmet",
            "pickup_location", "drop_location", "special_instructions",
            "status", "payment_status", "payment_id", "payment_method",
            "razorpay_order_id", "paid_at",
            "verification_token",
            "created_at", "updated_at",
            "can_modify", "can_cancel", "can_pay",
        )
        read_only_fields = (
            "id", "bike_name",
            "total_hours", "total_amount",
            "status", "payment_status", "payment_id", "payment_method",
            "razorpay_order_id", "paid_at",
            "created_at", "updated_at",
            "can_modify", "can_cancel", "can_pay",
        )

    # -------------------------
    # Validation (server-side)
    # -------------------------
    def validate(self, attrs):
        instance = self.instance
        if instance is None:
            return self._validate_create(attrs)
        return self._validate_update(instance, attrs)

    def _validate_create(self, attrs):
        bike = attrs["bike"]
        if bike.status != Bike.Status.AVAILABLE:
            raise serializers.ValidationError({"bike": "This bike is not available for booking."})

        start, end = attrs.get("start_at"), attrs.get("end_at")
        errors = {}
        if start is None:
            errors["start_at"] = ["start_at is required."]
        if end is None:
            errors["end_at"] = ["end_at is required."]
        if errors:
            raise serializers.ValidationError(errors)
        self._check_window(start, end)

        if getattr(settings, "BOOKING_REQUIRE_VERIFICATION", True):
            attrs["verification"] = self._resolve_verification(attrs.get("verification_token"))
        return attrs

    def _validate_update(self, instance, attrs):
        if "bike" in attrs and attrs["bike"].pk != instance.bike_id:
            raise serializers.ValidationError({"bike": "Cannot change bike for an existing booking."})
        if instance.status not in Booking.MODIFIABLE_STATUSES:
            raise serializers.ValidationError({"status": "Only pending or confirmed bookings can be modified."})
        if instance.has_started():
            raise serializers.ValidationError({"start_at": "Cannot modify a booking that has already started."})
        if instance.is_paid:
            changed = [
                field for field in ("start_at", "end_at", "extra_helmet")
                if field in attrs and attrs[field] != getattr(instance, field)
            ]
            if changed:
                raise serializers.ValidationError(
                    {field: "Paid bookings cannot change their window or add-ons." for field in changed}
                )

        if "start_at" in attrs or "end_at" in attrs:
            start = attrs.get("start_at", instance.start_at)
            end = attrs["end_at"] if "end_at" in attrs else instance.end_at
            if "start_at" in attrs and "end_at" not in attrs:
                start, end = reconcile_window(start, end)
            if end is None:
                raise serializers.ValidationError({"end_at": "end_at is required."})
            self._check_window(start, end)
            attrs["start_at"], attrs["end_at"] = start, end
        return attrs

    def _check_window(self, start, end):
        try:
            validate_booking_window(start, end, now=timezone.now())
        except DjangoValidationError as exc:
            raise django_errors_to_drf(exc)

    def _resolve_verification(self, token):
        if token is None:
            raise serializers.ValidationError(
                {"verification_token": "Complete rider verification before booking."}
            )
        user = self.context["request"].user
        verification = (
            Verification.objects
            .filter(token=token, user=user, step=Step.COMPLETE)
            .first()
        )
        if verification is None:
            raise serializers.ValidationError({"verification_token": "Invalid verification token."})
        if verification.is_consumed:
            raise serializers.ValidationError(
                {"verification_token": "This verification was already used for a booking."}
            )
        return verification

    # -------------------------
    # Persistence
    # -------------------------
    @staticmethod
    def _price(start, end, extra_helmet):
        q = pricing.quote(start, end, pricing.booking_addons(extra_helmet))
        return q.hours, q.total

    def _ensure_free(self, bike, start, end, exclude=None):
        # lock the bike row: concurrent writers for the same bike queue here
        Bike.objects.select_for_update().get(pk=bike.pk)
        if not availability.is_window_available(bike.pk, start, end, exclude=exclude):
            raise serializers.ValidationError(
                {"non_field_errors": ["Bike is already booked for the selected time."]}
            )

    def create(self, validated_data):
        validated_data.pop("verification_token", None)
        bike = validated_data["bike"]
        start, end = validated_data["start_at"], validated_data["end_at"]
        if not validated_data.get("pickup_location"):
            validated_data["pickup_location"] = bike.location
        hours, total = self._price(start, end, validated_data.get("extra_helmet", False))
        validated_data["total_hours"] = hours
        validated_data["total_amount"] = total
        validated_data["user"] = self.context["request"].user

        with transaction.atomic():
            self._ensure_free(bike, start, end)
            return super().create(validated_data)

    def update(self, instance, validated_data):
        validated_data.pop("verification_token", None)
        validated_data.pop("bike", None)
        start = validated_data.get("start_at", instance.start_at)
        end = validated_data.get("end_at", instance.end_at)
        extra_helmet = validated_data.get("extra_helmet", instance.extra_helmet)
        if not instance.is_paid:
            hours, total = self._price(start, end, extra_helmet)
            validated_data["total_hours"] = hours
            validated_data["total_amount"] = total
        if "pickup_location" in validated_data and not validated_data["pickup_location"]:
            validated_data["pickup_location"] = instance.bike.location

        with transaction.atomic():
            if start != instance.start_at or end != instance.end_at:
                self._ensure_free(instance.bike, start, end, exclude=instance)
            return super().update(instance, validated_data)

    # -------------------------
    # Presentation helpers
    # -------------------------
    def _is_open(self, obj):
        return obj.status in Booking.MODIFIABLE_STATUSES and not obj.has_started()

    @extend_schema_field(OpenApiTypes.BOOL)
    def get_can_modify(self, obj):
        return self._is_open(obj)

    @extend_schema_field(OpenApiTypes.BOOL)
    def get_can_cancel(self, obj):
        return self._is_open(obj)

    @extend_schema_field(OpenApiTypes.BOOL)
    def get_can_pay(self, obj):
        return obj.status == Booking.PENDING and not obj.is_paid


class PaymentVerificationSerializer(serializers.Serializer):
    """Signed callback of the Razorpay checkout widget."""
    razorpay_order_id = serializers.CharField(max_length=64)
    razorpay_payment_id = serializers.CharField(max_length=64)
    razorpay_signature = serializers.CharField(max_length=256)
    method = serializers.CharField(max_length=32, required=False, allow_blank=True)
