import logging

from django.contrib.auth import authenticate
from rest_framework import status
from rest_framework import serializers as rf_serializers
from rest_framework.generics import CreateAPIView, RetrieveUpdateAPIView
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import (
    TokenObtainPairView as BaseTokenObtainPairView,
    TokenRefreshView as BaseTokenRefreshView,
)
from drf_spectacular.utils import extend_schema, OpenApiResponse

from .models import active_admin_profile
from .serializers import (
    CustomUserSerializer, RegistrationSerializer, LoginSerializer, AdminProfileSerializer,
)
from ..rentals.throttling import ScopedRateThrottleIsolated

logger = logging.getLogger(__name__)


class ThrottledTokenObtainPairView(BaseTokenObtainPairView):
    throttle_classes = (ScopedRateThrottleIsolated,)
    throttle_scope = 'auth_login'


class ThrottledTokenRefreshView(BaseTokenRefreshView):
    throttle_classes = (ScopedRateThrottleIsolated,)
    throttle_scope = 'auth_login'


class TokenPairSerializer(rf_serializers.Serializer):
    access = rf_serializers.CharField()
    refresh = rf_serializers.CharField()


class RegisterResponseSerializer(rf_serializers.Serializer):
    detail = rf_serializers.CharField()
    user = CustomUserSerializer()
    tokens = TokenPairSerializer()


class AdminLoginResponseSerializer(rf_serializers.Serializer):
    detail = rf_serializers.CharField()
    user = CustomUserSerializer()
    admin = AdminProfileSerializer()
    tokens = TokenPairSerializer()


class SimpleDetailSerializer(rf_serializers.Serializer):
    detail = rf_serializers.CharField()


def _token_pair(user):
    refresh = RefreshToken.for_user(user)
    return {"access": str(refresh.access_token), "refresh": str(refresh)}


@extend_schema(
    summary="Register",
    request=RegistrationSerializer,
    responses={
        201: OpenApiResponse(response=RegisterResponseSerializer, description="Account created; JWT pair returned."),
        400: OpenApiResponse(description="Validation error"),
    },
    tags=["auth"],
)
class RegisterView(CreateAPIView):
    serializer_class = RegistrationSerializer
    permission_classes = [AllowAny]
    throttle_classes = (ScopedRateThrottleIsolated,)
    throttle_scope = 'auth_register'

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        data = {
            "detail": "Account created successfully.",
            "user": CustomUserSerializer(user).data,
            "tokens": _token_pair(user),
        }
        return Response(data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["auth"], summary="Current user profile")
class MeView(RetrieveUpdateAPIView):
    serializer_class = CustomUserSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ['get', 'patch', 'head', 'options']

    def get_object(self):
        return self.request.user


@extend_schema(tags=["auth"])
class AdminLoginView(APIView):
    """Password login restricted to active back-office users."""
    permission_classes = [AllowAny]
    serializer_class = LoginSerializer
    throttle_classes = (ScopedRateThrottleIsolated,)
    throttle_scope = 'auth_login'

    @extend_schema(
        summary="Admin login",
        request=LoginSerializer,
        responses={
            200: OpenApiResponse(response=AdminLoginResponseSerializer, description="Admin authenticated"),
            401: OpenApiResponse(response=SimpleDetailSerializer, description="Invalid credentials"),
            403: OpenApiResponse(response=SimpleDetailSerializer, description="Not an admin"),
        },
        auth=[],
    )
    def post(self, request, *args, **kwargs):
        serializer = self.serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data['email']
        password = serializer.validated_data['password']
        user = authenticate(request, email=email, password=password)

        if not user:
            return Response({"detail": "Invalid credentials"}, status=status.HTTP_401_UNAUTHORIZED)

        profile = active_admin_profile(user)
        if profile is None:
            logger.info("Admin login refused for non-admin user %s", user.pk)
            return Response(
                {"detail": "Access denied. Admin privileges required."},
                status=status.HTTP_403_FORBIDDEN,
            )

        profile.touch_login()
        return Response({
            "detail": "Login successful",
            "user": CustomUserSerializer(user).data,
            "admin": AdminProfileSerializer(profile).data,
            "tokens": _token_pair(user),
        }, status=status.HTTP_200_OK)
