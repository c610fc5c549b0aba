import datetime

from django.core.cache import cache

from accounts.models import CustomUser, Organization
from performance.models import PerformanceCycle, PointEvent, PointReduction, StagedEvent
from team.models import TeamMember


class PerformanceFixtures:
    """Organization with a manager, a crew login, two team members and a current cycle."""

    def setUp(self):
        cache.clear()
        self.organization = Organization.objects.create(
            name="Test Kitchen", email="kitchen@test.com", timezone="America/Toronto"
        )
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
        self.sam = TeamMember.objects.create(
            organization=self.organization, first_name="Sam", last_name="Cook",
            external_employee_id="0625", hire_date=datetime.date(2022, 3, 4),
        )
        self.ria = TeamMember.objects.create(
            organization=self.organization, first_name="Ria", last_name="Prep", punch_id="0700",
        )
        self.today = datetime.date.today()
        self.cycle = PerformanceCycle.objects.create(
            organization=self.organization,
            name="Current",
            start_date=self.today - datetime.timedelta(days=60),
            end_date=self.today + datetime.timedelta(days=60),
            is_current=True,
        )

    def add_event(self, member, event_type="tardiness_minor", points=1, event_date=None, notes=""):
        return PointEvent.objects.create(
            organization=self.organization, team_member=member, cycle=self.cycle, event_type=event_type,
            points=points, event_date=event_date or self.today, notes=notes, created_by=self.manager,
        )

    def add_reduction(self, member, reduction_type="stay_late", points=-1, event_date=None, notes=""):
        return PointReduction.objects.create(
            organization=self.organization, team_member=member, cycle=self.cycle, reduction_type=reduction_type,
            points=points, event_date=event_date or self.today, notes=notes, created_by=self.manager,
        )

    def stage(self, member, event_type="tardiness_major", points=2, event_date=None, description="Arrived 20 min late"):
        return StagedEvent.objects.create(
            organization=self.organization, team_member=member, event_type=event_type, suggested_points=points,
            description=description, event_date=event_date or self.today,
        )
