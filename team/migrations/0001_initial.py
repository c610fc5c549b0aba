from django.db import migrations, models
from django.conf import settings
import django.db.models.deletion
import uuid


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="TeamMember",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("first_name", models.CharField(max_length=100)),
                ("last_name", models.CharField(max_length=100, blank=True, default="")),
                ("display_name", models.CharField(max_length=150, blank=True, null=True)),
                ("email", models.EmailField(max_length=254, blank=True, null=True)),
                ("punch_id", models.CharField(max_length=50, blank=True, null=True)),
                ("external_employee_id", models.CharField(max_length=50, blank=True, null=True)),
                ("hire_date", models.DateField(blank=True, null=True)),
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
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("avatar_url", models.URLField(max_length=500, blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "organization",
                    models.ForeignKey(
                        to="accounts.organization",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="team_members",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="team_members",
                        null=True,
                        blank=True,
                    ),
                ),
            ],
            options={
                "db_table": "team_members",
                "ordering": ["first_name", "last_name"],
                "indexes": [
                    models.Index(fields=["organization", "is_active"], name="team_member_organiz_active_idx"),
                    models.Index(fields=["organization", "external_employee_id"], name="team_member_organiz_extid_idx"),
                    models.Index(fields=["organization", "punch_id"], name="team_member_organiz_punch_idx"),
                ],
            },
        ),
    ]
