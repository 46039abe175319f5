import json
import logging

from drf_spectacular.utils import extend_schema, OpenApiResponse, OpenApiTypes
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .. import gateway, payments

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "HTTP_X_RAZORPAY_SIGNATURE"


class RazorpayWebhookView(APIView):
    """
    Razorpay event receiver.

    The signature is checked against the raw body before anything is parsed
    or applied; unmatched and unknown events are still acknowledged so the
    gateway stops retrying.
    """
    permission_classes = [permissions.AllowAny]
    authentication_classes = []
    throttle_classes = []

    @extend_schema(
        summary="Razorpay webhook",
        description="Signed with X-Razorpay-Signature (HMAC-SHA256 of the body with the webhook secret)",
        request=OpenApiTypes.OBJECT,
        responses={
            200: OpenApiResponse(description='{"received": true}'),
            400: OpenApiResponse(description="Missing or invalid signature"),
            500: OpenApiResponse(description="Processing failed"),
        },
        auth=[],
    )
    def post(self, request):
        # read the raw body before DRF parses the stream
        body = request.body
        signature = request.META.get(SIGNATURE_HEADER, "")
        if not gateway.verify_webhook_signature(body, signature):
            logger.warning("Rejected Razorpay webhook with invalid signature")
            return Response({"error": "Invalid signature"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            data = json.loads(body or b"{}")
        except ValueError:
            return Response({"error": "Malformed payload"}, status=status.HTTP_400_BAD_REQUEST)

        logger.info("Razorpay webhook received: %s", data.get("event"))
        try:
            event = gateway.parse_webhook_event(data)
            if event is not None:
                payments.apply_event(event)
        except Exception:
            logger.exception("Razorpay webhook processing failed")
            return Response(
                {"error": "Webhook processing failed"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return Response({"received": True})
