from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from django.core import exceptions as django_exc
from drf_spectacular.utils import extend_schema_field

from .models import CustomUser, AdminUser, active_admin_profile


class RegistrationSerializer(serializers.ModelSerializer):
    """Registration payload -> creates a user and hashes password."""
    password = serializers.CharField(write_only=True, required=True, style={'input_type': 'password'})
    phone_number = serializers.CharField(required=False, allow_blank=True, max_length=30)

    class Meta:
        model = CustomUser
        fields = ('email', 'password', 'first_name', 'last_name', 'phone_number')

    def validate_password(self, value):
        """Run Django's password validators (AUTH_PASSWORD_VALIDATORS)."""
        try:
            validate_password(value)
        except django_exc.ValidationError as e:
            raise serializers.ValidationError(list(e.messages))
        return value

    def create(self, validated_data):
        return CustomUser.objects.create_user(
            email=validated_data['email'],
            password=validated_data['password'],
            first_name=validated_data.get('first_name', ''),
            last_name=validated_data.get('last_name', ''),
            phone_number=validated_data.get('phone_number', ''),
        )


class AdminProfileSerializer(serializers.ModelSerializer):
    role = serializers.CharField(source='role.name', read_only=True)
    permissions = serializers.JSONField(source='role.permissions', read_only=True)

    class Meta:
        model = AdminUser
        fields = ('role', 'permissions', 'is_active', 'last_login')
        read_only_fields = fields


class CustomUserSerializer(serializers.ModelSerializer):
    """Representation of a user; staff/active are read-only for API clients."""
    phone_number = serializers.CharField(required=False, allow_blank=True, max_length=30)
    admin_profile = serializers.SerializerMethodField()

    class Meta:
        model = CustomUser
        fields = ('id', 'email', 'first_name', 'last_name', 'phone_number', 'is_active', 'is_staff', 'admin_profile')
        read_only_fields = ('id', 'email', 'is_active', 'is_staff', 'admin_profile')

    @extend_schema_field(AdminProfileSerializer(allow_null=True))
    def get_admin_profile(self, obj):
        profile = active_admin_profile(obj)
        return AdminProfileSerializer(profile).data if profile else None


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField(required=True)
    password = serializers.CharField(required=True, write_only=True, style={'input_type': 'password'})
