from django.utils import timezone
from drf_spectacular.utils import extend_schema_field, OpenApiTypes
from rest_framework import serializers

from bikerental.rentals.models import Verification, VerificationDocument
from bikerental.rentals.validators import validate_document_image
from bikerental.rentals.verification_flow import (
    CustomerType, DocumentKind, Step, expect_step, missing_documents, required_documents,
)


class VerificationDocumentSerializer(serializers.ModelSerializer):
    class Meta:
        model = VerificationDocument
        fields = ("kind", "created_at")
        read_only_fields = fields


class VerificationSerializer(serializers.ModelSerializer):
    documents = VerificationDocumentSerializer(many=True, read_only=True)
    required_documents = serializers.SerializerMethodField()
    missing_documents = serializers.SerializerMethodField()
    token = serializers.SerializerMethodField()
    is_consumed = serializers.BooleanField(read_only=True)

    class Meta:
        model = Verification
        fields = (
            "id", "step", "customer_type", "date_of_birth",
            "documents", "required_documents", "missing_documents",
            "token", "completed_at", "is_consumed",
            "created_at", "updated_at",
        )
        read_only_fields = fields

    @extend_schema_field(serializers.ListField(child=serializers.CharField()))
    def get_required_documents(self, obj):
        if not obj.customer_type:
            return []
        return [str(kind) for kind in required_documents(obj.customer_type)]

    @extend_schema_field(serializers.ListField(child=serializers.CharField()))
    def get_missing_documents(self, obj):
        if not obj.customer_type:
            return []
        return [str(kind) for kind in missing_documents(obj.customer_type, (d.kind for d in obj.documents.all()))]

    @extend_schema_field(OpenApiTypes.UUID)
    def get_token(self, obj):
        # only usable once the sequence is complete and not yet spent
        if obj.is_complete and not obj.is_consumed and obj.token:
            return str(obj.token)
        return None


class CustomerTypeSerializer(serializers.Serializer):
    customer_type = serializers.ChoiceField(choices=CustomerType.choices)


class DocumentUploadSerializer(serializers.Serializer):
    """
    One optional file field per document kind; the verification's customer
    type decides which kinds are accepted. Expects `verification` in context.
    """
    driving_license = serializers.FileField(required=False, validators=[validate_document_image])
    id_proof = serializers.FileField(required=False, validators=[validate_document_image])
    passport = serializers.FileField(required=False, validators=[validate_document_image])
    driving_permit = serializers.FileField(required=False, validators=[validate_document_image])

    def validate(self, attrs):
        files = {kind: f for kind, f in attrs.items() if f is not None}
        if not files:
            raise serializers.ValidationError({"non_field_errors": ["Upload at least one document."]})

        verification = self.context["verification"]
        # raises TransitionError; the view turns it into a 400
        expect_step(verification.step, Step.DOCUMENTS)
        allowed = set(required_documents(verification.customer_type))
        unexpected = [kind for kind in files if DocumentKind(kind) not in allowed]
        if unexpected:
            raise serializers.ValidationError({
                kind: [f"Not required for {verification.get_customer_type_display()} customers."]
                for kind in unexpected
            })
        return files


class DateOfBirthSerializer(serializers.Serializer):
    date_of_birth = serializers.DateField(
        error_messages={"invalid": "Invalid date or format. Expected YYYY-MM-DD."}
    )

    def validate_date_of_birth(self, value):
        if value > timezone.localdate():
            raise serializers.ValidationError("Date of birth cannot be in the future.")
        return value
