"""
NEXUS activity stream: one row per recorded decision or alert.
"""
import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from accounts.models import Organization


class ActivityCategory(models.TextChoices):
    RECIPES = 'recipes', 'Recipes'
    INVENTORY = 'inventory', 'Inventory'
    TEAM = 'team', 'Team'
    ORGANIZATION = 'organization', 'Organization'
    FINANCIAL = 'financial', 'Financial'
    SECURITY = 'security', 'Security'
    SYSTEM = 'system', 'System'
    ALERTS = 'alerts', 'Alerts'


class ActivitySeverity(models.TextChoices):
    INFO = 'info', 'Info'
    WARNING = 'warning', 'Warning'
    CRITICAL = 'critical', 'Critical'


class ActivityLog(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='activity_logs')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='activity_logs',
    )
    activity_type = models.CharField(max_length=64, db_index=True)
    category = models.CharField(max_length=20, choices=ActivityCategory.choices, default=ActivityCategory.SYSTEM)
    severity = models.CharField(max_length=10, choices=ActivitySeverity.choices, default=ActivitySeverity.INFO)
    message = models.TextField(blank=True, default='')
    requires_acknowledgment = models.BooleanField(default=False)
    acknowledged_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='acknowledged_activity_logs',
    )
    acknowledged_at = models.DateTimeField(null=True, blank=True)
    details = models.JSONField(default=dict, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    # Channels the broadcast rule resolved to; empty when broadcasting is off
    broadcast_channels = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = 'activity_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['organization', 'activity_type'], name='activity_log_org_type_idx'),
            models.Index(fields=['organization', 'created_at'], name='activity_log_org_created_idx'),
        ]

    def __str__(self):
        return f"{self.created_at:%Y-%m-%d %H:%M} {self.activity_type}: {self.message[:50]}"

    @property
    def is_acknowledged(self):
        return self.acknowledged_at is not None

    def acknowledge(self, user):
        self.acknowledged_by = user
        self.acknowledged_at = timezone.now()
        self.save(update_fields=['acknowledged_by', 'acknowledged_at'])


class ActivityStreamDiff(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    activity_log = models.ForeignKey(ActivityLog, on_delete=models.CASCADE, related_name='diffs')
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='activity_diffs')
    table_name = models.CharField(max_length=100)
    record_id = models.CharField(max_length=100)
    old_values = models.JSONField(default=dict, blank=True)
    new_values = models.JSONField(default=dict, blank=True)
    diff = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'activity_stream_diffs'

    def __str__(self):
        return f"{self.table_name}:{self.record_id}"


class BroadcastConfig(models.Model):
    """Per-organization broadcast rules: {activity_type: {enabled, channels, min_security_level}}."""
    organization = models.OneToOneField(Organization, on_delete=models.CASCADE, related_name='broadcast_config')
    rules = models.JSONField(default=dict, blank=True)
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'organization_broadcast_configs'

    def __str__(self):
        return f"Broadcast rules for {self.organization}"
