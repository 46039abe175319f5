from rest_framework import serializers


class DetailSerializer(serializers.Serializer):
    detail = serializers.CharField()


def django_errors_to_drf(exc):
    """Django ValidationError -> DRF ValidationError keeping the field keys."""
    if hasattr(exc, "error_dict"):
        return serializers.ValidationError(exc.message_dict)
    return serializers.ValidationError(exc.messages)
