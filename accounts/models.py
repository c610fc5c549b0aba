from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.core.validators import MinValueValidator, MaxValueValidator
from django.conf import settings
from django.db import models
import uuid


# Lower number = more access
SECURITY_LEVEL_CHOICES = (
    (0, 'Omega (System)'),
    (1, 'Alpha (Owner)'),
    (2, 'Bravo (Manager)'),
    (3, 'Charlie (Assistant Manager)'),
    (4, 'Delta (Supervisor)'),
    (5, 'Echo (Team Member)'),
)

MANAGER_SECURITY_LEVELS = (0, 1, 2, 3)


class CustomUserManager(BaseUserManager):
    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('The Email field must be set')
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
        extra_fields.setdefault('role', 'SUPER_ADMIN')
        extra_fields.setdefault('security_level', 0)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)


class Organization(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    timezone = models.CharField(max_length=50, default='America/Toronto')
    currency = models.CharField(max_length=10, default='CAD')
    # {"team_performance": {"enabled": true, "enabled_at": ..., "permissions": {...}, "config": {...}}}
    modules = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'organizations'

    def __str__(self):
        return self.name

    def module_settings(self, module_id):
        return (self.modules or {}).get(module_id) or {}

    def is_module_enabled(self, module_id):
        return bool(self.module_settings(module_id).get('enabled'))


class CustomUser(AbstractUser):
    ROLE_CHOICES = settings.STAFF_ROLES_CHOICES

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='SERVER')
    security_level = models.PositiveSmallIntegerField(
        choices=SECURITY_LEVEL_CHOICES,
        default=5,
        validators=[MinValueValidator(0), MaxValueValidator(5)],
    )
    phone = models.CharField(max_length=20, blank=True, null=True)
    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name='users',
        null=True,
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Remove username and use email instead
    username = None
    email = models.EmailField(unique=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['first_name', 'last_name']

    objects = CustomUserManager()

    class Meta:
        db_table = 'users'

    def __str__(self):
        name = self.get_full_name() or self.email
        return f"{name} - {self.organization.name}" if self.organization else name

    def is_manager(self):
        """Managers (Omega through Charlie) may decide on point events."""
        return self.security_level in MANAGER_SECURITY_LEVELS

    def can_configure(self):
        return self.security_level <= 2
