from django.contrib import admin
from .models import (
    CoachingRecord, ImportedShift, PerformanceCycle, PerformanceImprovementPlan, PointEvent, PointReduction,
    QueuedDecisionBatch, StagedEvent,
)


@admin.register(PerformanceCycle)
class PerformanceCycleAdmin(admin.ModelAdmin):
    list_display = ['name', 'organization', 'start_date', 'end_date', 'is_current']
    list_filter = ['is_current']


@admin.register(PointEvent)
class PointEventAdmin(admin.ModelAdmin):
    list_display = ['team_member', 'event_type', 'points', 'event_date', 'cycle']
    list_filter = ['event_type']
    search_fields = ['team_member__first_name', 'team_member__last_name', 'notes']


@admin.register(PointReduction)
class PointReductionAdmin(admin.ModelAdmin):
    list_display = ['team_member', 'reduction_type', 'points', 'event_date', 'cycle']
    list_filter = ['reduction_type']
    search_fields = ['team_member__first_name', 'team_member__last_name', 'notes']


@admin.register(CoachingRecord)
class CoachingRecordAdmin(admin.ModelAdmin):
    list_display = ['team_member', 'stage', 'status', 'triggered_points', 'triggered_at', 'letter_generated']
    list_filter = ['stage', 'status']


@admin.register(PerformanceImprovementPlan)
class PerformanceImprovementPlanAdmin(admin.ModelAdmin):
    list_display = ['team_member', 'status', 'start_date', 'end_date', 'outcome']
    list_filter = ['status', 'outcome']


@admin.register(StagedEvent)
class StagedEventAdmin(admin.ModelAdmin):
    list_display = ['team_member', 'event_type', 'suggested_points', 'event_date', 'source']
    list_filter = ['event_type', 'source']


@admin.register(ImportedShift)
class ImportedShiftAdmin(admin.ModelAdmin):
    list_display = ['external_employee_id', 'kind', 'shift_date', 'time_in', 'time_out', 'hours', 'team_member']
    list_filter = ['kind']


@admin.register(QueuedDecisionBatch)
class QueuedDecisionBatchAdmin(admin.ModelAdmin):
    list_display = ['user', 'organization', 'updated_at']
