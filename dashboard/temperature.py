"""
Fridge and freezer temperature status for the dashboard widget.

Readings are in degrees Fahrenheit. What each viewer sees depends on their
security level (lower number means more access).
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from nexus.services import nexus
from .models import Equipment, Sensor, SensorReading

logger = logging.getLogger(__name__)

SAFE_RANGES = {
    'fridge': (Decimal('33'), Decimal('40')),
    'freezer': (Decimal('-10'), Decimal('0')),
}
WARNING_MARGIN = Decimal('2')
TREND_THRESHOLD = Decimal('0.5')

WIDGET_STATUS = {
    'critical': 'critical',
    'warning': 'warning',
    'normal': 'ok',
}

# Payload field -> highest security level that may see it
FIELD_VISIBILITY = {
    'status': 5,
    'temperature': 5,
    'name': 4,
    'location': 4,
    'is_connected': 4,
    'trend': 3,
    'trend_delta': 3,
    'last_logged': 3,
    'threshold_min': 2,
    'threshold_max': 2,
    'risk_cost': 1,
    'calibration_due': 1,
}


def temperature_status(temperature, equipment_type='fridge') -> str:
    if temperature is None:
        return 'unknown'
    low, high = SAFE_RANGES.get(equipment_type, SAFE_RANGES['fridge'])
    temperature = Decimal(str(temperature))
    if low <= temperature <= high:
        return 'normal'
    if low - WARNING_MARGIN <= temperature <= high + WARNING_MARGIN:
        return 'warning'
    return 'critical'


def widget_status(sensor: Optional[Sensor], temperature, equipment_type='fridge') -> str:
    if sensor is None or not sensor.active:
        return 'offline'
    return WIDGET_STATUS.get(temperature_status(temperature, equipment_type), 'unknown')


def trend(latest, previous):
    """(direction, delta) between the two most recent readings."""
    if latest is None or previous is None:
        return 'stable', Decimal('0')
    delta = latest - previous
    if delta > TREND_THRESHOLD:
        return 'up', delta
    if delta < -TREND_THRESHOLD:
        return 'down', delta
    return 'stable', delta


def visibility(security_level: int) -> Dict[str, bool]:
    return {
        'show_status_indicator': True,
        'show_temperature': True,
        'show_equipment_name': security_level <= 4,
        'show_connection_status': security_level <= 4,
        'show_all_equipment': security_level <= 4,
        'can_log': security_level <= 4,
        'show_trend': security_level <= 3,
        'show_last_logged': security_level <= 3,
        'can_view_history': security_level <= 3,
        'can_view_trends': security_level <= 3,
        'show_thresholds': security_level <= 2,
        'show_fleet_status': security_level <= 2,
        'can_launch_full': security_level <= 2,
        'show_cost_impact': security_level <= 1,
        'show_compliance_status': security_level <= 1,
    }


def _recent_readings(sensor_ids):
    """{sensor_id: [latest, previous]} temperatures."""
    recent = {sensor_id: [] for sensor_id in sensor_ids}
    readings = SensorReading.objects.filter(sensor_id__in=sensor_ids).order_by('sensor_id', '-recorded_at')
    for reading in readings:
        bucket = recent[reading.sensor_id]
        if len(bucket) < 2:
            bucket.append(reading)
    return recent


def _item(item_id, name, equipment_type, location, sensor, readings):
    latest = readings[0] if readings else None
    previous = readings[1] if len(readings) > 1 else None
    temperature = latest.temperature if latest else None
    direction, delta = trend(temperature, previous.temperature if previous else None)
    low, high = SAFE_RANGES[equipment_type]
    return {
        'id': str(item_id),
        'name': name,
        'type': equipment_type,
        'temperature': temperature,
        'status': widget_status(sensor, temperature, equipment_type),
        'is_connected': bool(sensor and sensor.active),
        'location': location,
        'trend': direction,
        'trend_delta': delta,
        'last_logged': latest.recorded_at if latest else None,
        'threshold_min': low,
        'threshold_max': high,
        'risk_cost': 0,
        'calibration_due': None,
    }


def equipment_readings(organization) -> List[Dict[str, Any]]:
    equipment = list(
        Equipment.objects.filter(organization=organization, is_active=True).select_related('sensor')
    )
    if equipment:
        recent = _recent_readings([e.sensor_id for e in equipment if e.sensor_id])
        return [
            _item(e.id, e.name, e.equipment_type, e.location_name or 'Unknown', e.sensor, recent.get(e.sensor_id, []))
            for e in equipment
        ]

    # Nothing configured yet: show every sensor as a fridge
    sensors = list(Sensor.objects.filter(organization=organization))
    recent = _recent_readings([s.id for s in sensors])
    return [_item(s.id, s.name, 'fridge', s.location_name or 'Unassigned', s, recent[s.id]) for s in sensors]


def summarize(items) -> Dict[str, int]:
    return {
        'total': len(items),
        'ok': sum(1 for i in items if i['status'] == 'ok'),
        'warning': sum(1 for i in items if i['status'] == 'warning'),
        'critical': sum(1 for i in items if i['status'] == 'critical'),
        'offline': sum(1 for i in items if i['status'] == 'offline'),
    }


def overall_status(summary) -> str:
    if summary['critical']:
        return 'critical'
    if summary['warning']:
        return 'warning'
    if summary['offline'] == summary['total']:
        return 'offline'
    if summary['ok']:
        return 'ok'
    return 'unknown'


def strip_for_level(item: Dict[str, Any], security_level: int) -> Dict[str, Any]:
    return {
        key: value for key, value in item.items()
        if key in ('id', 'type') or security_level <= FIELD_VISIBILITY.get(key, 0)
    }


def temperature_widget(organization, security_level: int) -> Dict[str, Any]:
    """Widget payload with the fields ``security_level`` may not see removed."""
    items = equipment_readings(organization)
    summary = summarize(items)
    flags = visibility(security_level)
    if not flags['show_all_equipment']:
        # The least-cleared viewers get the single most urgent item
        items = sorted(items, key=lambda i: ('critical', 'warning', 'ok', 'unknown', 'offline').index(i['status']))[:1]

    payload = {
        'equipment': [strip_for_level(item, security_level) for item in items],
        'overall_status': overall_status(summary),
        'visibility': flags,
        'is_configured': Sensor.objects.filter(organization=organization).exists(),
    }
    if flags['show_fleet_status']:
        payload['summary'] = summary
    return payload


def equipment_type_for(sensor: Sensor) -> str:
    equipment = sensor.equipment.filter(is_active=True).first()
    return equipment.equipment_type if equipment else 'fridge'


def record_reading(sensor: Sensor, temperature, recorded_at, user=None) -> SensorReading:
    """Store a reading; anything outside the safe range is logged to NEXUS."""
    reading, created = SensorReading.objects.get_or_create(
        sensor=sensor,
        recorded_at=recorded_at,
        defaults={'temperature': Decimal(str(temperature))},
    )
    if not created:
        return reading

    equipment_type = equipment_type_for(sensor)
    status = temperature_status(reading.temperature, equipment_type)
    if status != 'normal':
        low, high = SAFE_RANGES[equipment_type]
        equipment = sensor.equipment.filter(is_active=True).first()
        logger.warning(
            "Temperature out of range",
            extra={"sensor_id": str(sensor.id), "temperature": str(reading.temperature), "status": status},
        )
        nexus(
            organization=sensor.organization,
            user=user,
            activity_type='temperature_out_of_range',
            details={
                'sensor_id': sensor.id,
                'equipment': equipment.name if equipment else sensor.name,
                'equipment_type': equipment_type,
                'temperature': reading.temperature,
                'min_temp': low,
                'max_temp': high,
                'status': status,
                'recorded_at': reading.recorded_at,
            },
        )
    return reading
