from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
from unittest.mock import MagicMock, patch

import requests
from django.test import SimpleTestCase, TestCase, override_settings

from accounts.models import Organization
from dashboard.models import Sensor, SensorReading
from dashboard.sensorpush import SensorPushClient, SensorPushError
from dashboard.tasks import sync_sensor_readings


def _response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


def _api(sensors=None, samples=None):
    """Fake SensorPush endpoints keyed by path suffix."""
    payloads = {
        "/oauth/authorize": {"authorization": "auth-code"},
        "/oauth/accesstoken": {"accesstoken": "token-123"},
        "/devices/sensors": sensors or {},
        "/samples": {"sensors": samples or {}},
    }

    def post(url, json=None, headers=None, timeout=None):
        for suffix, payload in payloads.items():
            if url.endswith(suffix):
                return _response(payload)
        raise AssertionError(f"Unexpected SensorPush call: {url}")

    return post


class SensorPushClientTests(SimpleTestCase):
    def test_authenticates_before_first_call(self):
        client = SensorPushClient(email="ops@test.com", password="secret", base_url="https://sp.test/api/v1")
        with patch.object(client.session, "post", side_effect=_api(sensors={"111": {"name": "Walk-in"}})) as post:
            self.assertEqual(client.sensors(), {"111": {"name": "Walk-in"}})

        self.assertEqual(client.access_token, "token-123")
        last_call = post.call_args_list[-1]
        self.assertEqual(last_call.kwargs["headers"]["Authorization"], "token-123")

    def test_parses_samples(self):
        client = SensorPushClient(email="ops@test.com", password="secret", base_url="https://sp.test/api/v1")
        samples = {"111": [{"observed": "2026-01-10T12:00:00.000Z", "temperature": 38.4}, {"observed": None}]}
        with patch.object(client.session, "post", side_effect=_api(samples=samples)):
            result = client.latest_samples(["111"])
        self.assertEqual(result["111"], [
            {"temperature": 38.4, "observed": datetime(2026, 1, 10, 12, tzinfo=dt_timezone.utc)},
        ])

    @override_settings(SENSORPUSH_EMAIL="", SENSORPUSH_PASSWORD="")
    def test_requires_credentials(self):
        with self.assertRaises(SensorPushError):
            SensorPushClient().authenticate()

    def test_http_errors_are_wrapped(self):
        client = SensorPushClient(email="ops@test.com", password="secret")
        with patch.object(client.session, "post", side_effect=requests.ConnectionError("down")):
            with self.assertRaises(SensorPushError):
                client.sensors()


@override_settings(SENSORPUSH_EMAIL="ops@test.com", SENSORPUSH_PASSWORD="secret")
class SyncSensorReadingsTaskTests(TestCase):
    def setUp(self):
        self.organization = Organization.objects.create(name="Test Kitchen", email="kitchen@test.com")
        self.sensor = Sensor.objects.create(organization=self.organization, external_id="111", name="Walk-in sensor")

    def test_stores_latest_samples(self):
        api = _api(
            sensors={"111": {"name": "Walk-in", "active": False}},
            samples={"111": [{"observed": "2026-01-10T12:00:00Z", "temperature": 38.4}]},
        )
        with patch("requests.Session.post", side_effect=api):
            self.assertEqual(sync_sensor_readings(), "Processed 1 samples")

        reading = SensorReading.objects.get()
        self.assertEqual(reading.temperature, Decimal("38.40"))
        self.sensor.refresh_from_db()
        self.assertFalse(self.sensor.active)
        self.assertIsNotNone(self.sensor.last_synced_at)

    def test_failure_is_reported(self):
        with patch("requests.Session.post", side_effect=requests.ConnectionError("down")):
            self.assertTrue(sync_sensor_readings().startswith("Failed:"))
        self.assertFalse(SensorReading.objects.exists())

    @override_settings(SENSORPUSH_EMAIL="")
    def test_not_configured(self):
        self.assertEqual(sync_sensor_readings(), "SensorPush not configured")
