from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q
import uuid

from accounts.models import Organization
from team.models import TeamMember
from .config import EVENT_TYPE_LABELS, REDUCTION_TYPE_LABELS


class PerformanceCycle(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='performance_cycles')
    name = models.CharField(max_length=50, blank=True, default='')
    start_date = models.DateField()
    end_date = models.DateField()
    is_current = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'performance_cycles'
        ordering = ['-start_date']
        constraints = [
            models.UniqueConstraint(
                fields=['organization'],
                condition=Q(is_current=True),
                name='unique_current_cycle_per_org',
            ),
        ]

    def __str__(self):
        return self.name or f"{self.start_date} - {self.end_date}"

    def contains(self, day):
        return self.start_date <= day <= self.end_date


class PointEntry(models.Model):
    """Columns shared by point events and point reductions."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='+')
    team_member = models.ForeignKey(TeamMember, on_delete=models.CASCADE, related_name='+')
    cycle = models.ForeignKey(PerformanceCycle, on_delete=models.CASCADE, related_name='+')
    points = models.IntegerField()
    event_date = models.DateField()
    notes = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True


class PointEvent(PointEntry):
    EVENT_TYPE_CHOICES = list(EVENT_TYPE_LABELS.items())

    event_type = models.CharField(max_length=40, choices=EVENT_TYPE_CHOICES)
    related_shift_id = models.UUIDField(null=True, blank=True)

    entry_type = 'event'

    class Meta:
        db_table = 'performance_point_events'
        indexes = [
            models.Index(fields=['organization', 'cycle'], name='point_event_org_cycle_idx'),
            models.Index(fields=['team_member', 'event_date'], name='point_event_member_date_idx'),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(points__gt=0), name='point_event_points_positive'),
        ]

    def __str__(self):
        return f"{self.team_member} +{self.points} {self.event_type} ({self.event_date})"

    @property
    def kind(self):
        return self.event_type


class PointReduction(PointEntry):
    REDUCTION_TYPE_CHOICES = list(REDUCTION_TYPE_LABELS.items())

    reduction_type = models.CharField(max_length=40, choices=REDUCTION_TYPE_CHOICES)

    entry_type = 'reduction'

    class Meta:
        db_table = 'performance_point_reductions'
        indexes = [
            models.Index(fields=['organization', 'cycle'], name='point_red_org_cycle_idx'),
            models.Index(fields=['team_member', 'event_date'], name='point_red_member_date_idx'),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(points__lt=0), name='point_reduction_points_negative'),
        ]

    def __str__(self):
        return f"{self.team_member} {self.points} {self.reduction_type} ({self.event_date})"

    @property
    def kind(self):
        return self.reduction_type


class CoachingRecord(models.Model):
    STATUS_CHOICES = (
        ('pending', 'Pending'),
        ('in_progress', 'In Progress'),
        ('completed', 'Completed'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='coaching_records')
    team_member = models.ForeignKey(TeamMember, on_delete=models.CASCADE, related_name='coaching_records')
    stage = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    triggered_at = models.DateTimeField()
    triggered_points = models.IntegerField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    conversation_scheduled = models.BooleanField(default=False)
    conversation_date = models.DateField(null=True, blank=True)
    barriers_discussed = models.BooleanField(default=False)
    resources_identified = models.BooleanField(default=False)
    strategy_developed = models.BooleanField(default=False)
    notes = models.TextField(blank=True, null=True)
    letter_generated = models.BooleanField(default=False)
    completed_at = models.DateTimeField(null=True, blank=True)
    completed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'performance_coaching_records'
        ordering = ['-triggered_at']

    def __str__(self):
        return f"Stage {self.stage} coaching for {self.team_member} ({self.status})"


class PerformanceImprovementPlan(models.Model):
    STATUS_CHOICES = (
        ('active', 'Active'),
        ('completed', 'Completed'),
        ('failed', 'Failed'),
        ('cancelled', 'Cancelled'),
    )
    OUTCOME_CHOICES = (
        ('success', 'Success'),
        ('failure', 'Failure'),
        ('extended', 'Extended'),
    )
    TERMINAL_STATUSES = ('completed', 'failed', 'cancelled')

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='improvement_plans')
    team_member = models.ForeignKey(TeamMember, on_delete=models.CASCADE, related_name='improvement_plans')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    start_date = models.DateField()
    end_date = models.DateField()
    # [{id, description, target_value, current_value, is_met}]
    goals = models.JSONField(default=list, blank=True)
    # [{id, description, due_date, completed}]
    milestones = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True, null=True)
    outcome = models.CharField(max_length=20, choices=OUTCOME_CHOICES, null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'performance_improvement_plans'
        ordering = ['-start_date']

    def __str__(self):
        return f"PIP for {self.team_member} ({self.status})"


class StagedEvent(models.Model):
    """A detected or manually entered event waiting for a manager decision."""
    SOURCE_CHOICES = (
        ('import', 'Import'),
        ('manual', 'Manual'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='staged_events')
    team_member = models.ForeignKey(TeamMember, on_delete=models.CASCADE, related_name='staged_events')
    event_type = models.CharField(max_length=40)
    suggested_points = models.IntegerField()
    description = models.TextField()
    event_date = models.DateField()
    role = models.CharField(max_length=100, blank=True, null=True)
    scheduled_in = models.DateTimeField(null=True, blank=True)
    scheduled_out = models.DateTimeField(null=True, blank=True)
    worked_in = models.DateTimeField(null=True, blank=True)
    worked_out = models.DateTimeField(null=True, blank=True)
    start_variance = models.IntegerField(null=True, blank=True)
    end_variance = models.IntegerField(null=True, blank=True)
    source = models.CharField(max_length=10, choices=SOURCE_CHOICES, default='import')
    import_batch_id = models.UUIDField(null=True, blank=True, db_index=True)
    external_employee_id = models.CharField(max_length=50, blank=True, null=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'staged_events'
        ordering = ['event_date', 'created_at']
        indexes = [
            models.Index(fields=['organization', 'team_member'], name='staged_event_org_member_idx'),
        ]

    def __str__(self):
        return f"{self.team_member} {self.event_type} ({self.event_date})"


class ImportedShift(models.Model):
    """One scheduled or worked shift row from a shift import."""
    SHIFT_KIND_CHOICES = (
        ('scheduled', 'Scheduled'),
        ('worked', 'Worked'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='imported_shifts')
    team_member = models.ForeignKey(
        TeamMember,
        on_delete=models.CASCADE,
        related_name='imported_shifts',
        null=True,
        blank=True,
    )
    kind = models.CharField(max_length=10, choices=SHIFT_KIND_CHOICES)
    external_employee_id = models.CharField(max_length=50)
    first_name = models.CharField(max_length=100, blank=True, default='')
    last_name = models.CharField(max_length=100, blank=True, default='')
    shift_date = models.DateField()
    time_in = models.DateTimeField(null=True, blank=True)
    time_out = models.DateTimeField(null=True, blank=True)
    role = models.CharField(max_length=100, blank=True, null=True)
    location = models.CharField(max_length=100, blank=True, null=True)
    hours = models.DecimalField(max_digits=6, decimal_places=2, default=0)
    wage_rate = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    import_batch_id = models.UUIDField(db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'imported_shifts'
        ordering = ['shift_date', 'time_in']
        indexes = [
            models.Index(fields=['organization', 'kind', 'shift_date'], name='imported_shift_org_kind_idx'),
        ]

    def __str__(self):
        return f"{self.kind} {self.external_employee_id} {self.shift_date}"

    @property
    def scheduled_pay(self):
        if self.wage_rate is None:
            return None
        return self.hours * self.wage_rate


class QueuedDecisionBatch(models.Model):
    """A manager's queued staged-event decisions and undo history, saved until committed."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='queued_decisions')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='queued_decisions')
    # [{event_id, action, reason?, modification?}] in queue order
    decisions = models.JSONField(default=list, blank=True)
    # [{event_id, replaced}]
    history = models.JSONField(default=list, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'staged_decision_queues'
        constraints = [
            models.UniqueConstraint(fields=['organization', 'user'], name='unique_decision_queue_per_user'),
        ]

    def __str__(self):
        return f"{len(self.decisions)} queued decisions for {self.user}"
