from django.db import migrations, models
from django.conf import settings
import django.core.validators
import django.db.models.deletion
import uuid


EVENT_TYPE_CHOICES = [
    ("no_call_no_show", "No-call/No-show"),
    ("dropped_shift_no_coverage", "Dropped Shift (No Coverage)"),
    ("unexcused_absence", "Unexcused Absence"),
    ("tardiness_major", "Tardiness (>15 min)"),
    ("tardiness_minor", "Tardiness (5-15 min)"),
    ("early_departure", "Early Departure"),
    ("late_notification", "Late Notification"),
    ("food_safety_violation", "Food Safety Violation"),
    ("insubordination", "Insubordination"),
]

REDUCTION_TYPE_CHOICES = [
    ("cover_shift_urgent", "Covered Shift (<24hr)"),
    ("cover_shift_standard", "Covered Shift (24-48hr)"),
    ("stay_late", "Stayed 2+ Hours Late"),
    ("arrive_early", "Arrived 2+ Hours Early"),
    ("training_mentoring", "Training/Mentoring"),
    ("special_event", "Special Event/Catering"),
]


def _created_by():
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        related_name="+",
        to=settings.AUTH_USER_MODEL,
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        ("team", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="PerformanceCycle",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("name", models.CharField(max_length=50, blank=True, default="")),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("is_current", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "organization",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="performance_cycles",
                        to="accounts.organization",
                    ),
                ),
            ],
            options={
                "db_table": "performance_cycles",
                "ordering": ["-start_date"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("organization",),
                        condition=models.Q(is_current=True),
                        name="unique_current_cycle_per_org",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PointEvent",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("points", models.IntegerField()),
                ("event_date", models.DateField()),
                ("notes", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("event_type", models.CharField(max_length=40, choices=EVENT_TYPE_CHOICES)),
                ("related_shift_id", models.UUIDField(blank=True, null=True)),
                ("created_by", _created_by()),
                (
                    "cycle",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="+", to="performance.performancecycle"
                    ),
                ),
                (
                    "organization",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="+", to="accounts.organization"
                    ),
                ),
                (
                    "team_member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="+", to="team.teammember"
                    ),
                ),
            ],
            options={
                "db_table": "performance_point_events",
                "indexes": [
                    models.Index(fields=["organization", "cycle"], name="point_event_org_cycle_idx"),
                    models.Index(fields=["team_member", "event_date"], name="point_event_member_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(points__gt=0), name="point_event_points_positive"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PointReduction",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("points", models.IntegerField()),
                ("event_date", models.DateField()),
                ("notes", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("reduction_type", models.CharField(max_length=40, choices=REDUCTION_TYPE_CHOICES)),
                ("created_by", _created_by()),
                (
                    "cycle",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="+", to="performance.performancecycle"
                    ),
                ),
                (
                    "organization",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="+", to="accounts.organization"
                    ),
                ),
                (
                    "team_member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="+", to="team.teammember"
                    ),
                ),
            ],
            options={
                "db_table": "performance_point_reductions",
                "indexes": [
                    models.Index(fields=["organization", "cycle"], name="point_red_org_cycle_idx"),
                    models.Index(fields=["team_member", "event_date"], name="point_red_member_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(points__lt=0), name="point_reduction_points_negative"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CoachingRecord",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                (
                    "stage",
                    models.PositiveSmallIntegerField(
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(5),
                        ]
                    ),
                ),
                ("triggered_at", models.DateTimeField()),
                ("triggered_points", models.IntegerField()),
                (
                    "status",
                    models.CharField(
                        max_length=20,
                        default="pending",
                        choices=[("pending", "Pending"), ("in_progress", "In Progress"), ("completed", "Completed")],
                    ),
                ),
                ("conversation_scheduled", models.BooleanField(default=False)),
                ("conversation_date", models.DateField(blank=True, null=True)),
                ("barriers_discussed", models.BooleanField(default=False)),
                ("resources_identified", models.BooleanField(default=False)),
                ("strategy_developed", models.BooleanField(default=False)),
                ("notes", models.TextField(blank=True, null=True)),
                ("letter_generated", models.BooleanField(default=False)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "completed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "organization",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="coaching_records",
                        to="accounts.organization",
                    ),
                ),
                (
                    "team_member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="coaching_records",
                        to="team.teammember",
                    ),
                ),
            ],
            options={
                "db_table": "performance_coaching_records",
                "ordering": ["-triggered_at"],
            },
        ),
        migrations.CreateModel(
            name="PerformanceImprovementPlan",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                (
                    "status",
                    models.CharField(
                        max_length=20,
                        default="active",
                        choices=[
                            ("active", "Active"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                            ("cancelled", "Cancelled"),
                        ],
                    ),
                ),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("goals", models.JSONField(blank=True, default=list)),
                ("milestones", models.JSONField(blank=True, default=list)),
                ("notes", models.TextField(blank=True, null=True)),
                (
                    "outcome",
                    models.CharField(
                        max_length=20,
                        blank=True,
                        null=True,
                        choices=[("success", "Success"), ("failure", "Failure"), ("extended", "Extended")],
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("created_by", _created_by()),
                (
                    "organization",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="improvement_plans",
                        to="accounts.organization",
                    ),
                ),
                (
                    "team_member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="improvement_plans",
                        to="team.teammember",
                    ),
                ),
            ],
            options={
                "db_table": "performance_improvement_plans",
                "ordering": ["-start_date"],
            },
        ),
        migrations.CreateModel(
            name="StagedEvent",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("event_type", models.CharField(max_length=40)),
                ("suggested_points", models.IntegerField()),
                ("description", models.TextField()),
                ("event_date", models.DateField()),
                ("role", models.CharField(max_length=100, blank=True, null=True)),
                ("scheduled_in", models.DateTimeField(blank=True, null=True)),
                ("scheduled_out", models.DateTimeField(blank=True, null=True)),
                ("worked_in", models.DateTimeField(blank=True, null=True)),
                ("worked_out", models.DateTimeField(blank=True, null=True)),
                ("start_variance", models.IntegerField(blank=True, null=True)),
                ("end_variance", models.IntegerField(blank=True, null=True)),
                (
                    "source",
                    models.CharField(
                        max_length=10, default="import", choices=[("import", "Import"), ("manual", "Manual")]
                    ),
                ),
                ("import_batch_id", models.UUIDField(blank=True, null=True, db_index=True)),
                ("external_employee_id", models.CharField(max_length=50, blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("created_by", _created_by()),
                (
                    "organization",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="staged_events",
                        to="accounts.organization",
                    ),
                ),
                (
                    "team_member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="staged_events",
                        to="team.teammember",
                    ),
                ),
            ],
            options={
                "db_table": "staged_events",
                "ordering": ["event_date", "created_at"],
                "indexes": [
                    models.Index(fields=["organization", "team_member"], name="staged_event_org_member_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ImportedShift",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                (
                    "kind",
                    models.CharField(max_length=10, choices=[("scheduled", "Scheduled"), ("worked", "Worked")]),
                ),
                ("external_employee_id", models.CharField(max_length=50)),
                ("first_name", models.CharField(max_length=100, blank=True, default="")),
                ("last_name", models.CharField(max_length=100, blank=True, default="")),
                ("shift_date", models.DateField()),
                ("time_in", models.DateTimeField(blank=True, null=True)),
                ("time_out", models.DateTimeField(blank=True, null=True)),
                ("role", models.CharField(max_length=100, blank=True, null=True)),
                ("location", models.CharField(max_length=100, blank=True, null=True)),
                ("hours", models.DecimalField(max_digits=6, decimal_places=2, default=0)),
                ("wage_rate", models.DecimalField(max_digits=8, decimal_places=2, blank=True, null=True)),
                ("import_batch_id", models.UUIDField(db_index=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "organization",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="imported_shifts",
                        to="accounts.organization",
                    ),
                ),
                (
                    "team_member",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="imported_shifts",
                        to="team.teammember",
                    ),
                ),
            ],
            options={
                "db_table": "imported_shifts",
                "ordering": ["shift_date", "time_in"],
                "indexes": [
                    models.Index(fields=["organization", "kind", "shift_date"], name="imported_shift_org_kind_idx"),
                ],
            },
        ),
    ]
