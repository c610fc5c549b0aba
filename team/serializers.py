from rest_framework import serializers
from .models import TeamMember


class TeamMemberSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = TeamMember
        fields = [
            'id', 'first_name', 'last_name', 'display_name', 'full_name', 'email',
            'punch_id', 'external_employee_id', 'hire_date', 'security_level',
            'is_active', 'avatar_url', 'user', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'full_name', 'created_at', 'updated_at']

    def validate_user(self, value):
        request = self.context.get('request')
        if value and request and value.organization_id != request.user.organization_id:
            raise serializers.ValidationError('User belongs to another organization.')
        return value
