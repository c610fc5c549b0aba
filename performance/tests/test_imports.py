import datetime
from decimal import Decimal

from django.test import TestCase

from nexus.models import ActivityLog
from nexus.services import nexus
from performance.delta_engine import calculate_deltas
from performance.gaps import resolve_gap, scan_gaps
from performance.imports import stage_import
from performance.models import ImportedShift, PointEvent, StagedEvent
from performance.tests.base import PerformanceFixtures
from team.models import TeamMember

HEADER = "Employee ID,Date,First,Last,Location,In Time,Out Time,Role,Regular Hours,OT Hours,Wage"


def csv_rows(*rows):
    return "\n".join([HEADER, *rows]) + "\n"


SCHEDULED = csv_rows(
    "0625,2026-01-05,Sam,Cook,Main,10:00AM,3:00PM,Line,5,0,20",
    "0625,2026-01-06,Sam,Cook,Main,10:00AM,3:00PM,Line,5,0,20",
    "0700,2026-01-05,Ria,Prep,Main,8:00AM,12:00PM,Prep,4,0,18",
    "0900,2026-01-05,Olive,Owner,Main,9:00AM,5:00PM,Office,8,0,",
    "9999,2026-01-05,Gus,Ghost,Main,9:00AM,1:00PM,Dish,4,0,",
)
WORKED = csv_rows(
    "0625,2026-01-05,Sam,Cook,Main,10:20AM,3:00PM,Line,4.67,0,20",
    "0700,2026-01-05,Ria,Prep,Main,8:00AM,12:00PM,Prep,4,0,18",
    "0700,2026-01-07,Ria,Prep,Main,8:00AM,12:00PM,Prep,4,0,18",
)


class ImportFixtures(PerformanceFixtures):
    def setUp(self):
        super().setUp()
        self.owner = TeamMember.objects.create(
            organization=self.organization, first_name="Olive", last_name="Owner",
            external_employee_id="0900", security_level=1,
        )


class StageImportTests(ImportFixtures, TestCase):
    def setUp(self):
        super().setUp()
        self.result = calculate_deltas(SCHEDULED, WORKED)

    def test_stages_events_for_matched_members(self):
        summary = stage_import(self.organization, self.manager, self.result)

        staged = {(e.team_member.full_name, e.event_type) for e in StagedEvent.objects.select_related("team_member")}
        self.assertEqual(staged, {
            ("Sam Cook", "tardiness_major"),
            ("Sam Cook", "no_call_no_show"),
            ("Ria Prep", "unscheduled_worked"),
        })
        self.assertEqual(summary["staged_count"], 3)
        self.assertEqual(summary["skipped_exempt"], 1)
        self.assertEqual(summary["unmatched_employees"], [{"employee_id": "9999", "name": "Gus Ghost"}])
        self.assertEqual(StagedEvent.objects.values("import_batch_id").distinct().count(), 1)

        late = StagedEvent.objects.get(event_type="tardiness_major")
        self.assertEqual(late.start_variance, 20)
        self.assertIsNotNone(late.scheduled_in.tzinfo)

        log = ActivityLog.objects.get(activity_type="performance_events_imported")
        self.assertEqual(log.details["staged_count"], 3)

    def test_records_shifts_with_hours_and_wage(self):
        stage_import(self.organization, self.manager, self.result)
        self.assertEqual(ImportedShift.objects.filter(kind="scheduled").count(), 5)
        self.assertEqual(ImportedShift.objects.filter(kind="worked").count(), 3)
        shift = ImportedShift.objects.get(kind="scheduled", external_employee_id="0625", shift_date="2026-01-05")
        self.assertEqual(shift.team_member, self.sam)
        self.assertEqual(shift.scheduled_pay, Decimal("100.00"))
        ghost = ImportedShift.objects.get(external_employee_id="9999")
        self.assertIsNone(ghost.team_member)
        self.assertIsNone(ghost.wage_rate)

    def test_unscheduled_tracking_can_be_disabled(self):
        self.organization.modules = {
            "team_performance": {"config": {"tracking_rules": {"track_unscheduled_shifts": False}}}
        }
        self.organization.save()
        summary = stage_import(self.organization, self.manager, self.result)
        self.assertEqual(summary["skipped_unscheduled"], 1)
        self.assertFalse(StagedEvent.objects.filter(event_type="unscheduled_worked").exists())

    def test_unscheduled_exempt_levels(self):
        self.ria.security_level = 2
        self.ria.save()
        summary = stage_import(self.organization, self.manager, self.result)
        self.assertEqual(summary["skipped_unscheduled"], 1)


class GapScannerTests(ImportFixtures, TestCase):
    def setUp(self):
        super().setUp()
        stage_import(self.organization, self.manager, calculate_deltas(SCHEDULED, WORKED))

    def scan(self, **kwargs):
        return scan_gaps(self.organization, **kwargs)

    def test_gaps_are_scheduled_shifts_without_worked(self):
        result = self.scan()
        gaps = {(g["employee_id"], g["shift_date"]) for g in result["gaps"]}
        self.assertEqual(gaps, {
            ("0625", datetime.date(2026, 1, 6)),
            ("0900", datetime.date(2026, 1, 5)),
            ("9999", datetime.date(2026, 1, 5)),
        })
        stats = result["stats"]
        self.assertEqual(stats["total"], 3)
        self.assertEqual(stats["unresolved"], 3)
        self.assertEqual(stats["unresolved_hours"], Decimal("17.00"))
        self.assertEqual(stats["unresolved_pay"], Decimal("100.00"))

    def test_filters(self):
        self.assertEqual(self.scan(team_member=self.sam)["stats"]["total"], 1)
        self.assertEqual(self.scan(start_date=datetime.date(2026, 1, 6))["stats"]["total"], 1)
        self.assertEqual(self.scan(end_date=datetime.date(2026, 1, 5))["stats"]["total"], 2)

    def test_resolution_from_activity_logs(self):
        nexus(self.organization, self.manager, "performance_event_excused", {
            "team_member_id": str(self.sam.id), "event_date": "2026-01-06", "reason": "SICK OK",
        })
        nexus(self.organization, self.manager, "performance_event_rejected", {
            "team_member_id": str(self.owner.id), "event_date": "2026-01-05",
        })
        resolutions = {g["employee_id"]: g["resolution"] for g in self.scan()["gaps"]}
        self.assertEqual(resolutions, {"0625": "sick_day", "0900": "dismissed", "9999": "unresolved"})
        stats = self.scan()["stats"]
        self.assertEqual((stats["excused"], stats["dismissed"], stats["unresolved"]), (1, 1, 1))
        self.assertEqual(stats["unresolved_hours"], Decimal("4.00"))


    def test_resolve_gap_as_demerit(self):
        shift = ImportedShift.objects.get(kind="scheduled", external_employee_id="0625", shift_date="2026-01-06")
        resolve_gap(self.organization, self.manager, shift, "demerit")
        event = PointEvent.objects.get(team_member=self.sam)
        self.assertEqual((event.event_type, event.points), ("no_call_no_show", 6))
        self.assertEqual(event.related_shift_id, shift.id)

        result = self.scan(team_member=self.sam)
        self.assertEqual(result["gaps"][0]["resolution"], "demerit")
        self.assertEqual(result["stats"]["demerits"], 1)

    def test_resolve_gap_as_excuse(self):
        shift = ImportedShift.objects.get(kind="scheduled", external_employee_id="0625", shift_date="2026-01-06")
        log = resolve_gap(self.organization, self.manager, shift, "excuse", reason="EMERGENCY")
        self.assertEqual(log.details["event_type"], "excused_absence")
        self.assertEqual(self.scan(team_member=self.sam)["gaps"][0]["resolution"], "excused")
