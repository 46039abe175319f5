from rest_framework import serializers

from bikerental.rentals.models import Bike


class BikeSerializer(serializers.ModelSerializer):
    category = serializers.ChoiceField(choices=Bike.Category.choices, required=False)
    status = serializers.ChoiceField(choices=Bike.Status.choices, required=False)
    features = serializers.ListField(child=serializers.CharField(max_length=100), required=False)

    class Meta:
        model = Bike
        fields = [
            "id", "name", "brand", "model", "category",
            "price_per_hour", "price_per_day",
            "location", "status", "fuel_type",
            "features", "description", "image_url",
            "rating", "total_ratings", "license_required",
            "created_at", "updated_at",
        ]
        read_only_fields = ["id", "rating", "total_ratings", "created_at", "updated_at"]

    def validate_price_per_hour(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Price must be >= 0.")
        return value

    def validate_price_per_day(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Price must be >= 0.")
        return value
