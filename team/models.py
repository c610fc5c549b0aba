from django.conf import settings
from django.db import models
import uuid

from accounts.models import Organization, SECURITY_LEVEL_CHOICES


class TeamMember(models.Model):
    """A person on the roster. Not every team member has a login."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='team_members')
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True, default='')
    display_name = models.CharField(max_length=150, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    punch_id = models.CharField(max_length=50, blank=True, null=True)
    # Employee id used by the scheduling system export
    external_employee_id = models.CharField(max_length=50, blank=True, null=True)
    hire_date = models.DateField(blank=True, null=True)
    security_level = models.PositiveSmallIntegerField(choices=SECURITY_LEVEL_CHOICES, default=5)
    is_active = models.BooleanField(default=True)
    avatar_url = models.URLField(max_length=500, blank=True, null=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='team_members',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'team_members'
        ordering = ['first_name', 'last_name']
        indexes = [
            models.Index(fields=['organization', 'is_active'], name='team_member_organiz_active_idx'),
            models.Index(fields=['organization', 'external_employee_id'], name='team_member_organiz_extid_idx'),
            models.Index(fields=['organization', 'punch_id'], name='team_member_organiz_punch_idx'),
        ]

    def __str__(self):
        return self.full_name

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()
