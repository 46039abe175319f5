from django.db import models
from django.conf import settings
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class CustomUserManager(BaseUserManager):
    """
    Creates user with email instead of username
    Sets password with set_password()
    Allows to create superuser
    """
    use_in_migrations = True

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError(_('Users must have an email address'))

        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)

        if extra_fields.get('is_staff') is not True:
            raise ValueError(_('Superuser must have is_staff=True.'))
        if extra_fields.get('is_superuser') is not True:
            raise ValueError(_('Superuser must have is_superuser=True.'))

        return self.create_user(email, password, **extra_fields)


class CustomUser(AbstractUser):
    """Rider account; logs in with email."""
    username = None
    email = models.EmailField(_('email address'), unique=True)

    first_name = models.CharField(_('first name'), max_length=30, blank=True)
    last_name = models.CharField(_('last name'), max_length=30, blank=True)
    phone_number = models.CharField(_('phone number'), max_length=30, blank=True, null=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = CustomUserManager()

    def __str__(self):
        return self.email

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()


class AdminRole(models.Model):
    """
    Back-office role. `permissions` is a flat JSON object of flags, e.g.
    {"manage_vehicles": true, "view_payments": true} or {"all": true}.
    """
    name = models.CharField(max_length=50, unique=True)
    description = models.TextField(blank=True, default='')
    permissions = models.JSONField(default=dict, blank=True)

    def __str__(self):
        return self.name

    def grants(self, permission):
        perms = self.permissions or {}
        if perms.get('all') is True:
            return True
        return perms.get(permission) is True


class AdminUser(models.Model):
    """Marks a user as back-office staff with a role."""
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='admin_profile',
    )
    role = models.ForeignKey(AdminRole, on_delete=models.PROTECT, related_name='members')
    is_active = models.BooleanField(default=True)
    last_login = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user} ({self.role})"

    def has_permission(self, permission):
        return self.is_active and self.role.grants(permission)

    def touch_login(self):
        self.last_login = timezone.now()
        self.save(update_fields=['last_login', 'updated_at'])


def active_admin_profile(user):
    """Return the active AdminUser for `user`, or None."""
    if not user or not getattr(user, 'is_authenticated', False):
        return None
    try:
        profile = user.admin_profile
    except AdminUser.DoesNotExist:
        return None
    return profile if profile.is_active else None


def user_has_backoffice_permission(user, permission):
    if not user or not getattr(user, 'is_authenticated', False):
        return False
    if user.is_superuser:
        return True
    profile = active_admin_profile(user)
    return bool(profile and profile.has_permission(permission))
