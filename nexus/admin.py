from django.contrib import admin

from .models import ActivityLog, ActivityStreamDiff, BroadcastConfig


class ActivityStreamDiffInline(admin.TabularInline):
    model = ActivityStreamDiff
    extra = 0
    readonly_fields = ['table_name', 'record_id', 'old_values', 'new_values', 'diff']


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'organization', 'activity_type', 'category', 'severity', 'message']
    list_filter = ['category', 'severity', 'requires_acknowledgment']
    search_fields = ['activity_type', 'message']
    readonly_fields = ['created_at']
    date_hierarchy = 'created_at'
    inlines = [ActivityStreamDiffInline]


@admin.register(BroadcastConfig)
class BroadcastConfigAdmin(admin.ModelAdmin):
    list_display = ['organization', 'updated_at']
