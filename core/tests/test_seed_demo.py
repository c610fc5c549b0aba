from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from accounts.models import Organization
from dashboard.models import Equipment, SensorReading, VendorPriceHistory
from performance.models import PerformanceCycle, StagedEvent
from team.models import TeamMember


class SeedDemoCommandTests(TestCase):
    def test_seeds_demo_kitchen(self):
        out = StringIO()
        call_command("seed_demo", email="demo@test.com", seed=7, stdout=out)

        organization = Organization.objects.get(email="demo@test.com")
        self.assertEqual(TeamMember.objects.filter(organization=organization).count(), 5)
        self.assertEqual(StagedEvent.objects.filter(organization=organization).count(), 5)
        self.assertTrue(PerformanceCycle.objects.filter(organization=organization, is_current=True).exists())
        self.assertEqual(Equipment.objects.filter(organization=organization).count(), 2)
        self.assertEqual(SensorReading.objects.count(), 24)
        self.assertEqual(VendorPriceHistory.objects.filter(organization=organization).count(), 8)
        self.assertIn("Seeding completed successfully!", out.getvalue())

    def test_refuses_existing_organization(self):
        Organization.objects.create(name="Taken", email="taken@test.com")
        with self.assertRaises(CommandError):
            call_command("seed_demo", email="taken@test.com", stdout=StringIO())
