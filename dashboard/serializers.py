from rest_framework import serializers

from .models import Equipment, Sensor, SensorReading
from .prices import FILTER_TYPES


class SensorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Sensor
        fields = ['id', 'external_id', 'name', 'active', 'location_name', 'last_synced_at', 'created_at']
        read_only_fields = ['id', 'last_synced_at', 'created_at']


class OrganizationSensorField(serializers.PrimaryKeyRelatedField):
    def get_queryset(self):
        request = self.context.get('request')
        if request is None:
            return Sensor.objects.none()
        return Sensor.objects.filter(organization=request.user.organization)


class EquipmentSerializer(serializers.ModelSerializer):
    sensor = OrganizationSensorField(required=False, allow_null=True)

    class Meta:
        model = Equipment
        fields = ['id', 'name', 'equipment_type', 'location_name', 'sensor', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class SensorReadingSerializer(serializers.ModelSerializer):
    class Meta:
        model = SensorReading
        fields = ['id', 'sensor', 'temperature', 'recorded_at']
        read_only_fields = fields


class LogReadingSerializer(serializers.Serializer):
    sensor = OrganizationSensorField()
    temperature = serializers.DecimalField(max_digits=6, decimal_places=2)
    recorded_at = serializers.DateTimeField(required=False)


class PriceChangeQuerySerializer(serializers.Serializer):
    days = serializers.IntegerField(min_value=1, max_value=365, default=30)
    filter_type = serializers.ChoiceField(choices=FILTER_TYPES, required=False)
    ingredient = serializers.CharField(required=False, allow_blank=True)
