from datetime import date
from decimal import Decimal

from django.core.cache import cache
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from accounts.models import CustomUser, Organization
from dashboard.models import Equipment, Sensor, SensorReading
from dashboard.prices import record_price


class DashboardViewTests(APITestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.organization = Organization.objects.create(name="Test Kitchen", email="kitchen@test.com")
        self.manager = CustomUser.objects.create_user(
            email="manager@test.com",
            role="MANAGER",
            security_level=2,
            organization=self.organization,
            first_name="Morgan",
            last_name="Manager",
        )
        self.crew = CustomUser.objects.create_user(
            email="crew@test.com",
            organization=self.organization,
            first_name="Casey",
            last_name="Crew",
        )
        self.sensor = Sensor.objects.create(organization=self.organization, external_id="111", name="Walk-in sensor")

    def test_widget_is_stripped_for_crew(self):
        self.client.force_authenticate(user=self.crew)
        resp = self.client.post(
            "/api/dashboard/temperature/log/", {"sensor": str(self.sensor.id), "temperature": "37"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        resp = self.client.get("/api/dashboard/temperature/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertNotIn("name", resp.data["equipment"][0])
        self.assertFalse(resp.data["visibility"]["show_equipment_name"])

    def test_manager_logs_reading_and_views_history(self):
        self.client.force_authenticate(user=self.manager)
        resp = self.client.post(
            "/api/dashboard/temperature/log/", {"sensor": str(self.sensor.id), "temperature": "37.5"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(SensorReading.objects.get().temperature, Decimal("37.50"))

        resp = self.client.get(f"/api/dashboard/sensors/{self.sensor.id}/readings/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["count"], 1)

        resp = self.client.get("/api/dashboard/temperature/")
        self.assertEqual(resp.data["equipment"][0]["name"], "Walk-in sensor")
        self.assertEqual(resp.data["overall_status"], "ok")

    def test_crew_cannot_view_history(self):
        self.client.force_authenticate(user=self.crew)
        resp = self.client.get(f"/api/dashboard/sensors/{self.sensor.id}/readings/")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_equipment_create_scoped_to_organization(self):
        other = Organization.objects.create(name="Elsewhere", email="else@test.com")
        foreign = Sensor.objects.create(organization=other, external_id="999", name="Theirs")
        self.client.force_authenticate(user=self.manager)

        resp = self.client.post(
            "/api/dashboard/equipment/",
            {"name": "Chest freezer", "equipment_type": "freezer", "sensor": str(foreign.id)},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

        resp = self.client.post(
            "/api/dashboard/equipment/",
            {"name": "Chest freezer", "equipment_type": "freezer", "sensor": str(self.sensor.id)},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Equipment.objects.get().organization, self.organization)

    def test_crew_cannot_create_equipment(self):
        self.client.force_authenticate(user=self.crew)
        resp = self.client.post("/api/dashboard/equipment/", {"name": "Bar fridge"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_price_change_ticker(self):
        record_price(self.organization, "Sysco", "1001", "Butter 1lb", "4.00", date(2026, 1, 1))
        record_price(self.organization, "Sysco", "1001", "Butter 1lb", "5.00", date(2026, 1, 8))
        self.client.force_authenticate(user=self.crew)

        resp = self.client.get("/api/dashboard/price-changes/", {"filter_type": "increase"})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["stats"]["count"], 1)
        self.assertEqual(resp.data["results"][0]["change_percent"], 25.0)

        resp = self.client.get("/api/dashboard/price-changes/", {"filter_type": "sideways"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
