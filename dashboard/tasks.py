"""
Celery tasks for dashboard widgets
"""
from celery import shared_task
from django.utils import timezone
from .models import Sensor
from .sensorpush import SensorPushClient, SensorPushError
from .temperature import record_reading
import logging

logger = logging.getLogger(__name__)


@shared_task
def sync_sensor_readings():
    """
    Pull the latest SensorPush samples for every registered sensor
    Runs every 5 minutes via Celery Beat
    """
    client = SensorPushClient()
    if not client.is_configured:
        return "SensorPush not configured"

    sensors = list(Sensor.objects.select_related('organization'))
    if not sensors:
        return "No sensors registered"

    try:
        devices = client.sensors()
        samples = client.latest_samples({s.external_id for s in sensors})
    except SensorPushError as e:
        logger.error(f"SensorPush sync failed: {e}")
        return f"Failed: {e}"

    processed = 0
    now = timezone.now()
    for sensor in sensors:
        device = devices.get(sensor.external_id)
        if device is not None and 'active' in device:
            sensor.active = bool(device['active'])
        for sample in samples.get(sensor.external_id, []):
            record_reading(sensor, sample['temperature'], sample['observed'])
            processed += 1
        sensor.last_synced_at = now
        sensor.save(update_fields=['active', 'last_synced_at'])

    logger.info(f"Processed {processed} sensor samples for {len(sensors)} sensors")
    return f"Processed {processed} samples"
