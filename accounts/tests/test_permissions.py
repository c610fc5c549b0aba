from django.test import TestCase
from rest_framework.test import APIClient

from accounts.models import CustomUser, Organization


class SecurityLevelPermissionsTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.organization = Organization.objects.create(
            name="Test Kitchen",
            email="kitchen@test.com",
        )
        self.owner = CustomUser.objects.create_user(
            email="owner@test.com",
            password="OwnerPass123!",
            role="OWNER",
            security_level=1,
            organization=self.organization,
            first_name="Olive",
            last_name="Owner",
        )
        self.assistant = CustomUser.objects.create_user(
            email="assistant@test.com",
            password="AssistantPass123!",
            role="SUPERVISOR",
            security_level=3,
            organization=self.organization,
            first_name="Ash",
            last_name="Assistant",
        )
        self.crew = CustomUser.objects.create_user(
            email="crew@test.com",
            role="SERVER",
            organization=self.organization,
            first_name="Casey",
            last_name="Crew",
        )
        self.url = "/api/auth/organization/"

    def test_manager_levels(self):
        self.assertTrue(self.owner.is_manager())
        self.assertTrue(self.assistant.is_manager())
        self.assertFalse(self.crew.is_manager())
        self.assertTrue(self.owner.can_configure())
        self.assertFalse(self.assistant.can_configure())

    def test_user_without_password_cannot_log_in(self):
        self.assertFalse(self.crew.has_usable_password())

    def test_member_can_read_organization(self):
        self.client.force_authenticate(user=self.crew)
        resp = self.client.get(self.url)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["name"], "Test Kitchen")

    def test_assistant_manager_cannot_change_modules(self):
        self.client.force_authenticate(user=self.assistant)
        resp = self.client.put(self.url, {"modules": {"team_performance": {"enabled": True}}}, format="json")
        self.assertEqual(resp.status_code, 403)

    def test_owner_can_enable_module(self):
        self.client.force_authenticate(user=self.owner)
        resp = self.client.put(self.url, {"modules": {"team_performance": {"enabled": True}}}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.organization.refresh_from_db()
        self.assertTrue(self.organization.is_module_enabled("team_performance"))

    def test_user_without_organization_is_refused(self):
        loner = CustomUser.objects.create_user(email="loner@test.com", first_name="Lo", last_name="Ner")
        self.client.force_authenticate(user=loner)
        resp = self.client.get(self.url)
        self.assertEqual(resp.status_code, 403)

    def test_me_returns_security_level(self):
        self.client.force_authenticate(user=self.assistant)
        resp = self.client.get("/api/auth/me/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["security_level"], 3)
        self.assertEqual(resp.data["organization_name"], "Test Kitchen")
