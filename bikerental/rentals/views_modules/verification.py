import logging

from drf_spectacular.utils import extend_schema_view, extend_schema, OpenApiResponse
from rest_framework import mixins, viewsets, permissions, status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.response import Response

from ..models import Verification
from ..permissions import IsVerificationOwner
from ..serializers import (
    VerificationSerializer, CustomerTypeSerializer,
    DocumentUploadSerializer, DateOfBirthSerializer,
)
from ..throttling import ScopedRateThrottleIsolated
from ..verification_flow import TransitionError

logger = logging.getLogger(__name__)


def _transition_error(exc):
    return ValidationError({"detail": str(exc), "step": exc.step})


@extend_schema_view(
    list=extend_schema(summary="List my verifications", responses={200: VerificationSerializer(many=True)}),
    retrieve=extend_schema(
        summary="Get verification state",
        responses={200: VerificationSerializer, 404: OpenApiResponse(description="Not found")},
    ),
    create=extend_schema(
        summary="Start verification",
        description="Open a new verification at the customer type step",
        request=None,
        responses={201: VerificationSerializer},
    ),
)
class VerificationViewSet(mixins.CreateModelMixin,
                          mixins.RetrieveModelMixin,
                          mixins.ListModelMixin,
                          viewsets.GenericViewSet):
    """
    Rider verification: customer type -> documents -> age -> complete.

    Each step endpoint accepts that step's data only; completion issues the
    token a booking has to present.
    """
    serializer_class = VerificationSerializer
    permission_classes = (permissions.IsAuthenticated, IsVerificationOwner)
    throttle_classes = [ScopedRateThrottleIsolated]

    def get_throttles(self):
        self.throttle_scope = 'verifications' if self.request.method == 'POST' else None
        return super().get_throttles()

    def get_queryset(self):
        return Verification.objects.filter(user=self.request.user).prefetch_related('documents')

    def create(self, request, *args, **kwargs):
        verification = Verification.objects.create(user=request.user)
        return Response(self.get_serializer(verification).data, status=status.HTTP_201_CREATED)

    def _state(self, verification, code=status.HTTP_200_OK):
        verification = self.get_queryset().get(pk=verification.pk)
        return Response(self.get_serializer(verification).data, status=code)

    @extend_schema(
        summary="Choose customer type",
        request=CustomerTypeSerializer,
        responses={200: VerificationSerializer, 400: OpenApiResponse(description="Wrong step")},
    )
    @action(detail=True, methods=['post'], url_path='customer-type')
    def customer_type(self, request, pk=None):
        verification = self.get_object()
        serializer = CustomerTypeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            verification.submit_customer_type(serializer.validated_data['customer_type'])
        except TransitionError as exc:
            raise _transition_error(exc)
        return self._state(verification)

    @extend_schema(
        summary="Upload documents",
        description=(
            "Multipart upload of document scans. Domestic riders send driving_license "
            "and id_proof, international riders passport and driving_permit. The step "
            "advances once every required document is on file."
        ),
        request={'multipart/form-data': DocumentUploadSerializer},
        responses={200: VerificationSerializer, 400: OpenApiResponse(description="Invalid file or wrong step")},
    )
    @action(detail=True, methods=['post'], parser_classes=[MultiPartParser, FormParser])
    def documents(self, request, pk=None):
        verification = self.get_object()
        serializer = DocumentUploadSerializer(data=request.data, context={'verification': verification})
        try:
            serializer.is_valid(raise_exception=True)
            missing = verification.submit_documents(serializer.validated_data)
        except TransitionError as exc:
            raise _transition_error(exc)
        if missing:
            logger.debug("Verification %s still missing %s", verification.pk, missing)
        return self._state(verification)

    @extend_schema(
        summary="Confirm age",
        description="Submit the date of birth; riders must be at least the minimum age. Completes verification.",
        request=DateOfBirthSerializer,
        responses={200: VerificationSerializer, 400: OpenApiResponse(description="Under age or wrong step")},
    )
    @action(detail=True, methods=['post'])
    def age(self, request, pk=None):
        verification = self.get_object()
        serializer = DateOfBirthSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            verification.submit_date_of_birth(serializer.validated_data['date_of_birth'])
        except TransitionError as exc:
            raise _transition_error(exc)
        logger.info("Verification %s completed for user %s", verification.pk, request.user.pk)
        return self._state(verification)

    @extend_schema(
        summary="Go back one step",
        request=None,
        responses={200: VerificationSerializer, 400: OpenApiResponse(description="No previous step")},
    )
    @action(detail=True, methods=['post'])
    def back(self, request, pk=None):
        verification = self.get_object()
        try:
            verification.go_back()
        except TransitionError as exc:
            raise _transition_error(exc)
        return self._state(verification)

    @extend_schema(
        summary="Start over",
        description="Return to the first step, discarding documents, date of birth and token",
        request=None,
        responses={200: VerificationSerializer, 400: OpenApiResponse(description="Already used for a booking")},
    )
    @action(detail=True, methods=['post'])
    def reset(self, request, pk=None):
        verification = self.get_object()
        try:
            verification.reset()
        except TransitionError as exc:
            raise _transition_error(exc)
        return self._state(verification)
