from django.core.cache import cache
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from accounts.models import CustomUser, Organization
from nexus.models import ActivityLog
from nexus.services import get_broadcast_rules, nexus


class ActivityFeedViewTests(APITestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.organization = Organization.objects.create(name="Test Kitchen", email="kitchen@test.com")
        self.other = Organization.objects.create(name="Elsewhere", email="else@test.com")
        self.owner = CustomUser.objects.create_user(
            email="owner@test.com",
            role="OWNER",
            security_level=1,
            organization=self.organization,
            first_name="Olive",
            last_name="Owner",
        )
        self.crew = CustomUser.objects.create_user(
            email="crew@test.com",
            organization=self.organization,
            first_name="Casey",
            last_name="Crew",
        )
        self.warning = nexus(self.organization, self.owner, "performance_coaching_triggered", {"stage": 1})
        self.info = nexus(self.organization, self.owner, "performance_event_rejected", {})
        nexus(self.other, None, "performance_event_rejected", {})

    def test_feed_is_scoped_to_organization(self):
        self.client.force_authenticate(user=self.crew)
        resp = self.client.get("/api/nexus/activity/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["count"], 2)

    def test_unacknowledged_filter_and_acknowledge(self):
        self.client.force_authenticate(user=self.owner)
        resp = self.client.get("/api/nexus/activity/", {"unacknowledged": "true"})
        ids = [row["id"] for row in resp.data["results"]]
        self.assertEqual(ids, [str(self.warning.id)])

        resp = self.client.post(f"/api/nexus/activity/{self.warning.id}/acknowledge/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(resp.data["acknowledged_at"])
        self.warning.refresh_from_db()
        self.assertEqual(self.warning.acknowledged_by, self.owner)

    def test_category_filter(self):
        self.client.force_authenticate(user=self.owner)
        resp = self.client.get("/api/nexus/activity/", {"category": "alerts"})
        self.assertEqual(resp.data["count"], 0)

    def test_broadcast_config_put_clears_cache(self):
        self.assertIsNone(get_broadcast_rules(self.organization.id))
        self.client.force_authenticate(user=self.owner)
        payload = {"rules": {"performance_event_rejected": {"enabled": False, "channels": ["in_app"]}}}
        resp = self.client.put("/api/nexus/broadcast-config/", payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        rules = get_broadcast_rules(self.organization.id)
        self.assertFalse(rules["performance_event_rejected"]["enabled"])

        log = nexus(self.organization, self.owner, "performance_event_rejected", {})
        self.assertEqual(log.broadcast_channels, [])

    def test_crew_cannot_change_broadcast_config(self):
        self.client.force_authenticate(user=self.crew)
        resp = self.client.put("/api/nexus/broadcast-config/", {"rules": {}}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(ActivityLog.objects.filter(organization=self.organization).count(), 2)
