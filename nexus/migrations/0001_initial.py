from django.db import migrations, models
from django.conf import settings
import django.db.models.deletion
import django.utils.timezone
import uuid


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ActivityLog",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("activity_type", models.CharField(max_length=64, db_index=True)),
                (
                    "category",
                    models.CharField(
                        max_length=20,
                        default="system",
                        choices=[
                            ("recipes", "Recipes"),
                            ("inventory", "Inventory"),
                            ("team", "Team"),
                            ("organization", "Organization"),
                            ("financial", "Financial"),
                            ("security", "Security"),
                            ("system", "System"),
                            ("alerts", "Alerts"),
                        ],
                    ),
                ),
                (
                    "severity",
                    models.CharField(
                        max_length=10,
                        default="info",
                        choices=[("info", "Info"), ("warning", "Warning"), ("critical", "Critical")],
                    ),
                ),
                ("message", models.TextField(blank=True, default="")),
                ("requires_acknowledgment", models.BooleanField(default=False)),
                ("acknowledged_at", models.DateTimeField(null=True, blank=True)),
                ("details", models.JSONField(default=dict, blank=True)),
                ("metadata", models.JSONField(default=dict, blank=True)),
                ("broadcast_channels", models.JSONField(default=list, blank=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, db_index=True)),
                (
                    "organization",
                    models.ForeignKey(
                        to="accounts.organization",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="activity_logs",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="activity_logs",
                        null=True,
                        blank=True,
                    ),
                ),
                (
                    "acknowledged_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="acknowledged_activity_logs",
                        null=True,
                        blank=True,
                    ),
                ),
            ],
            options={
                "db_table": "activity_logs",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["organization", "activity_type"], name="activity_log_org_type_idx"),
                    models.Index(fields=["organization", "created_at"], name="activity_log_org_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ActivityStreamDiff",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("table_name", models.CharField(max_length=100)),
                ("record_id", models.CharField(max_length=100)),
                ("old_values", models.JSONField(default=dict, blank=True)),
                ("new_values", models.JSONField(default=dict, blank=True)),
                ("diff", models.JSONField(default=dict, blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "activity_log",
                    models.ForeignKey(
                        to="nexus.activitylog",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="diffs",
                    ),
                ),
                (
                    "organization",
                    models.ForeignKey(
                        to="accounts.organization",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="activity_diffs",
                    ),
                ),
            ],
            options={
                "db_table": "activity_stream_diffs",
            },
        ),
        migrations.CreateModel(
            name="BroadcastConfig",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("rules", models.JSONField(default=dict, blank=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "organization",
                    models.OneToOneField(
                        to="accounts.organization",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="broadcast_config",
                    ),
                ),
                (
                    "updated_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        null=True,
                        blank=True,
                    ),
                ),
            ],
            options={
                "db_table": "organization_broadcast_configs",
            },
        ),
    ]
