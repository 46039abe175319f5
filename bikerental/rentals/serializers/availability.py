from rest_framework import serializers


class CurrentBookingSerializer(serializers.Serializer):
    end_at = serializers.DateTimeField()
    status = serializers.CharField()


class AvailabilitySnapshotSerializer(serializers.Serializer):
    available = serializers.BooleanField()
    next_available_at = serializers.DateTimeField(allow_null=True)
    current_booking = CurrentBookingSerializer(allow_null=True)


class BikeAvailabilityItemSerializer(serializers.Serializer):
    bike_id = serializers.IntegerField()
    available = serializers.BooleanField()
    next_available_at = serializers.DateTimeField(allow_null=True)


class QuoteQuerySerializer(serializers.Serializer):
    start_at = serializers.DateTimeField()
    end_at = serializers.DateTimeField()
    extra_helmet = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        if attrs["end_at"] <= attrs["start_at"]:
            raise serializers.ValidationError({"end_at": "End time must be after start time."})
        return attrs


class PriceQuoteSerializer(serializers.Serializer):
    hours = serializers.IntegerField()
    base_amount = serializers.IntegerField()
    overage_hours = serializers.IntegerField()
    overage_amount = serializers.IntegerField()
    addons = serializers.DictField(child=serializers.IntegerField())
    addons_amount = serializers.IntegerField()
    total = serializers.IntegerField()
    currency = serializers.CharField()
