from rest_framework import serializers

from .events import CHANNELS
from .models import ActivityLog, ActivityStreamDiff, BroadcastConfig


class ActivityStreamDiffSerializer(serializers.ModelSerializer):
    class Meta:
        model = ActivityStreamDiff
        fields = ['table_name', 'record_id', 'old_values', 'new_values', 'diff', 'created_at']


class ActivityLogSerializer(serializers.ModelSerializer):
    user_email = serializers.CharField(source='user.email', read_only=True, default=None)
    acknowledged_by_email = serializers.CharField(source='acknowledged_by.email', read_only=True, default=None)
    diffs = ActivityStreamDiffSerializer(many=True, read_only=True)

    class Meta:
        model = ActivityLog
        fields = [
            'id', 'activity_type', 'category', 'severity', 'message', 'requires_acknowledgment',
            'acknowledged_at', 'acknowledged_by_email', 'user_email', 'details', 'metadata',
            'broadcast_channels', 'diffs', 'created_at',
        ]
        read_only_fields = fields


class BroadcastRuleSerializer(serializers.Serializer):
    enabled = serializers.BooleanField(default=True)
    channels = serializers.ListField(child=serializers.ChoiceField(choices=CHANNELS), default=list)
    min_security_level = serializers.IntegerField(min_value=0, max_value=5, default=5)


class BroadcastConfigSerializer(serializers.ModelSerializer):
    rules = serializers.DictField(child=BroadcastRuleSerializer())

    class Meta:
        model = BroadcastConfig
        fields = ['rules', 'updated_at']
        read_only_fields = ['updated_at']
