from rest_framework import serializers

from team.models import TeamMember
from team.serializers import TeamMemberSerializer
from .config import DEFAULT_PERFORMANCE_CONFIG, EXCUSE_REASONS
from .ledger import LEDGER_KINDS, ROSTER_FILTERS, ROSTER_SORTS
from .models import (
    CoachingRecord, PerformanceCycle, PerformanceImprovementPlan, PointEvent, PointReduction, StagedEvent,
)
from .scoring import goal_progress, milestone_status
from .staging import ACTIONS

EXCUSE_REASON_CHOICES = [code for code, _ in EXCUSE_REASONS]
CYCLE_TYPES = ('quadmester', 'trimester')
SICK_RESET_PERIODS = ('calendar_year', 'anniversary', 'fiscal_year')


class OrganizationTeamMemberField(serializers.PrimaryKeyRelatedField):
    """A team member from the requesting user's organization."""

    def get_queryset(self):
        request = self.context.get('request')
        if request is None:
            return TeamMember.objects.none()
        return TeamMember.objects.filter(organization=request.user.organization)


class PerformanceCycleSerializer(serializers.ModelSerializer):
    class Meta:
        model = PerformanceCycle
        fields = ['id', 'name', 'start_date', 'end_date', 'is_current', 'created_at']
        read_only_fields = fields


class PointEventSerializer(serializers.ModelSerializer):
    team_member_name = serializers.CharField(source='team_member.full_name', read_only=True)

    class Meta:
        model = PointEvent
        fields = [
            'id', 'team_member', 'team_member_name', 'cycle', 'event_type', 'points',
            'event_date', 'notes', 'related_shift_id', 'created_by', 'created_at',
        ]
        read_only_fields = fields


class PointReductionSerializer(serializers.ModelSerializer):
    team_member_name = serializers.CharField(source='team_member.full_name', read_only=True)

    class Meta:
        model = PointReduction
        fields = [
            'id', 'team_member', 'team_member_name', 'cycle', 'reduction_type', 'points',
            'event_date', 'notes', 'created_by', 'created_at',
        ]
        read_only_fields = fields


class AddPointEventSerializer(serializers.Serializer):
    team_member = OrganizationTeamMemberField()
    event_type = serializers.CharField(max_length=40)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    event_date = serializers.DateField(required=False, allow_null=True)


class AddPointReductionSerializer(serializers.Serializer):
    team_member = OrganizationTeamMemberField()
    reduction_type = serializers.CharField(max_length=40)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    event_date = serializers.DateField(required=False, allow_null=True)


class ModifyEntrySerializer(serializers.Serializer):
    new_type = serializers.CharField(max_length=40)
    new_points = serializers.IntegerField(required=False, allow_null=True)


class ExcuseSerializer(serializers.Serializer):
    reason = serializers.ChoiceField(choices=EXCUSE_REASON_CHOICES)


class SickDaySerializer(serializers.Serializer):
    team_member = OrganizationTeamMemberField()
    sick_date = serializers.DateField()
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    force = serializers.BooleanField(default=False)


class CoachingRecordSerializer(serializers.ModelSerializer):
    team_member_name = serializers.CharField(source='team_member.full_name', read_only=True)

    class Meta:
        model = CoachingRecord
        fields = [
            'id', 'team_member', 'team_member_name', 'stage', 'triggered_at', 'triggered_points', 'status',
            'conversation_scheduled', 'conversation_date', 'barriers_discussed', 'resources_identified',
            'strategy_developed', 'notes', 'letter_generated', 'completed_at', 'completed_by',
            'created_at', 'updated_at',
        ]
        read_only_fields = [
            'id', 'team_member', 'team_member_name', 'stage', 'triggered_at', 'triggered_points',
            'letter_generated', 'completed_at', 'completed_by', 'created_at', 'updated_at',
        ]


class PipGoalSerializer(serializers.Serializer):
    id = serializers.CharField(required=False)
    description = serializers.CharField()
    target_value = serializers.FloatField(required=False, allow_null=True)
    current_value = serializers.FloatField(required=False, allow_null=True)
    is_met = serializers.BooleanField(default=False)


class PipMilestoneSerializer(serializers.Serializer):
    id = serializers.CharField(required=False)
    description = serializers.CharField()
    due_date = serializers.DateField(required=False, allow_null=True)
    completed = serializers.BooleanField(default=False)


class PerformanceImprovementPlanSerializer(serializers.ModelSerializer):
    team_member = OrganizationTeamMemberField()
    team_member_name = serializers.CharField(source='team_member.full_name', read_only=True)
    goals = PipGoalSerializer(many=True, required=False)
    milestones = PipMilestoneSerializer(many=True, required=False)
    goal_progress = serializers.SerializerMethodField()
    milestone_status = serializers.SerializerMethodField()

    class Meta:
        model = PerformanceImprovementPlan
        fields = [
            'id', 'team_member', 'team_member_name', 'status', 'start_date', 'end_date', 'goals',
            'milestones', 'goal_progress', 'milestone_status', 'notes', 'outcome', 'created_by',
            'created_at', 'updated_at', 'completed_at',
        ]
        read_only_fields = ['id', 'created_by', 'created_at', 'updated_at', 'completed_at']

    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start and end and end < start:
            raise serializers.ValidationError({'end_date': 'End date must be on or after the start date.'})
        return attrs

    def get_goal_progress(self, obj):
        return {str(goal.get('id')): goal_progress(goal) for goal in obj.goals or []}

    def get_milestone_status(self, obj):
        today = self.context.get('today')
        if today is None:
            return {}
        return {str(m.get('id')): milestone_status(m, today) for m in obj.milestones or []}


class StagedEventSerializer(serializers.ModelSerializer):
    team_member_name = serializers.CharField(source='team_member.full_name', read_only=True)

    class Meta:
        model = StagedEvent
        fields = [
            'id', 'team_member', 'team_member_name', 'event_type', 'suggested_points', 'description',
            'event_date', 'role', 'scheduled_in', 'scheduled_out', 'worked_in', 'worked_out',
            'start_variance', 'end_variance', 'source', 'import_batch_id', 'external_employee_id',
            'created_by', 'created_at',
        ]
        read_only_fields = fields


class ManualStagedEventSerializer(serializers.Serializer):
    team_member = OrganizationTeamMemberField()
    event_type = serializers.CharField(max_length=40)
    suggested_points = serializers.IntegerField(required=False, allow_null=True)
    description = serializers.CharField()
    event_date = serializers.DateField()
    role = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ModificationSerializer(serializers.Serializer):
    event_type = serializers.CharField(max_length=40, required=False)
    points = serializers.IntegerField(required=False)


class DecisionSerializer(serializers.Serializer):
    event_id = serializers.UUIDField()
    action = serializers.ChoiceField(choices=ACTIONS)
    reason = serializers.ChoiceField(choices=EXCUSE_REASON_CHOICES, required=False, allow_null=True)
    modification = ModificationSerializer(required=False, allow_null=True)

    def validate(self, attrs):
        if attrs['action'] == 'excuse' and not attrs.get('reason'):
            raise serializers.ValidationError({'reason': 'An excuse reason is required.'})
        return attrs


class SingleDecisionSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=ACTIONS)
    reason = serializers.ChoiceField(choices=EXCUSE_REASON_CHOICES, required=False, allow_null=True)
    modification = ModificationSerializer(required=False, allow_null=True)

    def validate(self, attrs):
        if attrs['action'] == 'excuse' and not attrs.get('reason'):
            raise serializers.ValidationError({'reason': 'An excuse reason is required.'})
        return attrs


class ShiftImportSerializer(serializers.Serializer):
    scheduled_file = serializers.FileField(required=False)
    worked_file = serializers.FileField(required=False)
    scheduled_csv = serializers.CharField(required=False, trim_whitespace=False)
    worked_csv = serializers.CharField(required=False, trim_whitespace=False)
    preview = serializers.BooleanField(default=False)

    def _content(self, attrs, kind):
        upload = attrs.get(f'{kind}_file')
        if upload is not None:
            try:
                return upload.read().decode('utf-8-sig')
            except UnicodeDecodeError:
                raise serializers.ValidationError({f'{kind}_file': 'File must be UTF-8 encoded CSV.'})
        return attrs.get(f'{kind}_csv')

    def validate(self, attrs):
        scheduled = self._content(attrs, 'scheduled')
        worked = self._content(attrs, 'worked')
        if not scheduled or not worked:
            raise serializers.ValidationError('Both a scheduled and a worked shift file are required.')
        attrs['scheduled_content'] = scheduled
        attrs['worked_content'] = worked
        return attrs


class GapResolveSerializer(serializers.Serializer):
    decision = serializers.ChoiceField(choices=('excuse', 'demerit'))
    reason = serializers.ChoiceField(choices=EXCUSE_REASON_CHOICES, required=False, allow_null=True)
    event_type = serializers.CharField(max_length=40, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        if attrs['decision'] == 'excuse' and not attrs.get('reason'):
            raise serializers.ValidationError({'reason': 'An excuse reason is required.'})
        return attrs


class PerformanceConfigSerializer(serializers.Serializer):
    """Partial config override; keys not sent keep their current values."""
    point_values = serializers.DictField(child=serializers.IntegerField(min_value=1), required=False)
    reduction_values = serializers.DictField(child=serializers.IntegerField(max_value=-1), required=False)
    detection_thresholds = serializers.DictField(child=serializers.IntegerField(min_value=0), required=False)
    tracking_rules = serializers.DictField(required=False)
    tier_thresholds = serializers.DictField(child=serializers.IntegerField(min_value=0), required=False)
    coaching_thresholds = serializers.DictField(child=serializers.IntegerField(min_value=0), required=False)
    cycle_length_months = serializers.IntegerField(min_value=1, max_value=12, required=False)
    cycle_type = serializers.ChoiceField(choices=CYCLE_TYPES, required=False)
    max_reduction_per_30_days = serializers.IntegerField(min_value=0, required=False)
    time_off = serializers.DictField(required=False)

    def validate_tier_thresholds(self, value):
        merged = {**DEFAULT_PERFORMANCE_CONFIG['tier_thresholds'], **value}
        if merged['tier1_max'] >= merged['tier2_max']:
            raise serializers.ValidationError('tier1_max must be lower than tier2_max.')
        return value

    def validate_time_off(self, value):
        period = value.get('sick_reset_period')
        if period is not None and period not in SICK_RESET_PERIODS:
            raise serializers.ValidationError(f"sick_reset_period must be one of {', '.join(SICK_RESET_PERIODS)}.")
        return value


class TeamPerformanceSerializer(serializers.Serializer):
    team_member = TeamMemberSerializer()
    current_points = serializers.IntegerField()
    tier = serializers.IntegerField()
    coaching_stage = serializers.IntegerField(allow_null=True)
    active_pip = PerformanceImprovementPlanSerializer(allow_null=True)
    pending_count = serializers.IntegerField()
    time_off = serializers.DictField()
    attendance = serializers.DictField()
    duplicates = serializers.ListField(child=serializers.CharField())


class MemberPerformanceSerializer(TeamPerformanceSerializer):
    ledger = serializers.ListField(child=serializers.DictField())
    timeline = serializers.ListField(child=serializers.DictField())
    coaching_records = CoachingRecordSerializer(many=True)


class LedgerQuerySerializer(serializers.Serializer):
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    kind = serializers.ChoiceField(choices=LEDGER_KINDS, default='all')
    team_member = serializers.UUIDField(required=False)
    search = serializers.CharField(required=False, allow_blank=True, default='')


class RecordFilterSerializer(serializers.Serializer):
    team_member = serializers.UUIDField(required=False)
    import_batch_id = serializers.UUIDField(required=False)
    cycle = serializers.UUIDField(required=False)
    status = serializers.CharField(required=False, allow_blank=True, default='')


class DigestQuerySerializer(serializers.Serializer):
    team_member = serializers.UUIDField(required=False)
    week_of = serializers.DateField(required=False)


class RosterQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True, default='')
    filter = serializers.ChoiceField(choices=ROSTER_FILTERS, default='all')
    sort = serializers.ChoiceField(choices=ROSTER_SORTS, default='name_asc')
