from django.db import migrations, models
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
import uuid

import accounts.models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="Organization",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("phone", models.CharField(max_length=20, blank=True, null=True)),
                ("timezone", models.CharField(max_length=50, default="America/Toronto")),
                ("currency", models.CharField(max_length=10, default="CAD")),
                ("modules", models.JSONField(default=dict, blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "organizations",
            },
        ),
        migrations.CreateModel(
            name="CustomUser",
            fields=[
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(default=False, verbose_name="superuser status")),
                ("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
                ("is_staff", models.BooleanField(default=False, verbose_name="staff status")),
                ("is_active", models.BooleanField(default=True, verbose_name="active")),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                (
                    "role",
                    models.CharField(
                        max_length=20,
                        default="SERVER",
                        choices=[
                            ("SUPER_ADMIN", "Super Admin"),
                            ("OWNER", "Owner"),
                            ("MANAGER", "Manager"),
                            ("SUPERVISOR", "Supervisor"),
                            ("CHEF", "Chef"),
                            ("COOK", "Cook"),
                            ("SERVER", "Server"),
                            ("DISHWASHER", "Dishwasher"),
                        ],
                    ),
                ),
                (
                    "security_level",
                    models.PositiveSmallIntegerField(
                        default=5,
                        choices=[
                            (0, "Omega (System)"),
                            (1, "Alpha (Owner)"),
                            (2, "Bravo (Manager)"),
                            (3, "Charlie (Assistant Manager)"),
                            (4, "Delta (Supervisor)"),
                            (5, "Echo (Team Member)"),
                        ],
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(5),
                        ],
                    ),
                ),
                ("phone", models.CharField(max_length=20, blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("email", models.EmailField(max_length=254, unique=True)),
                (
                    "organization",
                    models.ForeignKey(
                        to="accounts.organization",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="users",
                        null=True,
                        blank=True,
                    ),
                ),
                (
                    "groups",
                    models.ManyToManyField(
                        blank=True,
                        help_text="The groups this user belongs to.",
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.group",
                        verbose_name="groups",
                    ),
                ),
                (
                    "user_permissions",
                    models.ManyToManyField(
                        blank=True,
                        help_text="Specific permissions for this user.",
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.permission",
                        verbose_name="user permissions",
                    ),
                ),
            ],
            options={
                "db_table": "users",
            },
            managers=[
                ("objects", accounts.models.CustomUserManager()),
            ],
        ),
    ]
