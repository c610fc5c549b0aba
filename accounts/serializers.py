from rest_framework import serializers
from .models import CustomUser, Organization


class OrganizationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Organization
        fields = ['id', 'name', 'email', 'phone', 'timezone', 'currency', 'modules', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class CustomUserSerializer(serializers.ModelSerializer):
    organization_name = serializers.CharField(source='organization.name', read_only=True)

    class Meta:
        model = CustomUser
        fields = [
            'id', 'email', 'first_name', 'last_name', 'role', 'security_level', 'phone',
            'organization', 'organization_name', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'role', 'security_level', 'organization', 'organization_name', 'created_at', 'updated_at']
