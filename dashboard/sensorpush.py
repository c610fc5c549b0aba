"""
SensorPush cloud API client.

Authorization is two steps: credentials give an authorization code, the code
gives an access token. Every later call sends the token in the
``Authorization`` header.
"""
import logging
from datetime import datetime

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class SensorPushError(Exception):
    pass


class SensorPushClient:
    def __init__(self, email=None, password=None, base_url=None, timeout=None):
        self.email = email or settings.SENSORPUSH_EMAIL
        self.password = password or settings.SENSORPUSH_PASSWORD
        self.base_url = (base_url or settings.SENSORPUSH_API_URL).rstrip('/')
        self.timeout = timeout or settings.SENSORPUSH_TIMEOUT
        self.session = requests.Session()
        self.access_token = None

    @property
    def is_configured(self):
        return bool(self.email and self.password)

    def _post(self, path, payload, authorized=True):
        headers = {'Accept': 'application/json'}
        if authorized:
            if self.access_token is None:
                self.authenticate()
            headers['Authorization'] = self.access_token
        try:
            response = self.session.post(f"{self.base_url}{path}", json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise SensorPushError(f"SensorPush request to {path} failed: {e}") from e
        return response.json()

    def authenticate(self):
        if not self.is_configured:
            raise SensorPushError('SensorPush credentials are not configured.')
        auth = self._post('/oauth/authorize', {'email': self.email, 'password': self.password}, authorized=False)
        token = self._post('/oauth/accesstoken', {'authorization': auth.get('authorization')}, authorized=False)
        self.access_token = token.get('accesstoken')
        if not self.access_token:
            raise SensorPushError('SensorPush did not return an access token.')
        return self.access_token

    def sensors(self):
        """{external_id: {name, active, ...}}"""
        return self._post('/devices/sensors', {})

    def latest_samples(self, sensor_ids, limit=1):
        """{external_id: [{'temperature': float, 'observed': datetime}, ...]} newest first."""
        if not sensor_ids:
            return {}
        data = self._post('/samples', {'sensors': list(sensor_ids), 'limit': limit})
        samples = {}
        for sensor_id, rows in (data.get('sensors') or {}).items():
            parsed = []
            for row in rows:
                if row.get('temperature') is None or not row.get('observed'):
                    continue
                parsed.append({
                    'temperature': row['temperature'],
                    'observed': datetime.fromisoformat(row['observed'].replace('Z', '+00:00')),
                })
            samples[sensor_id] = parsed
        return samples
