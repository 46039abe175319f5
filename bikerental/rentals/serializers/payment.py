from rest_framework import serializers

from bikerental.rentals.models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    booking_id = serializers.IntegerField(read_only=True)
    user_email = serializers.EmailField(source="booking.user.email", read_only=True)
    bike_name = serializers.CharField(source="booking.bike.name", read_only=True)

    class Meta:
        model = Payment
        fields = (
            "id", "booking_id", "user_email", "bike_name",
            "amount", "currency", "status", "method",
            "transaction_id", "order_id", "gateway_response",
            "created_at", "updated_at",
        )
        read_only_fields = fields


class PaymentSummarySerializer(serializers.Serializer):
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    count = serializers.IntegerField()
    captured = serializers.IntegerField()
    failed = serializers.IntegerField()
    authorized = serializers.IntegerField()


class CheckoutSerializer(serializers.Serializer):
    """Options for the Razorpay checkout widget."""
    key = serializers.CharField()
    amount = serializers.IntegerField(help_text="Amount in paise")
    currency = serializers.CharField()
    name = serializers.CharField()
    description = serializers.CharField()
    order_id = serializers.CharField()
    prefill = serializers.DictField(child=serializers.CharField(allow_blank=True))
    notes = serializers.DictField(child=serializers.CharField())
