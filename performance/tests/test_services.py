import datetime

from django.test import TestCase

from core.exceptions import InvalidPointType, ReductionLimitReached, SickDayAllowanceExhausted
from nexus.models import ActivityLog
from performance.models import CoachingRecord, PointEvent, PointReduction
from performance.services import (
    add_point_event, add_point_reduction, create_pip, excuse_entry, log_sick_day, member_points, modify_entry,
    remove_entry, toggle_pip_goal, toggle_pip_milestone, update_coaching_record, update_pip,
)
from performance.tests.base import PerformanceFixtures


def activity_types(organization):
    return list(ActivityLog.objects.filter(organization=organization).order_by("created_at")
                .values_list("activity_type", flat=True))


class PointEventTests(PerformanceFixtures, TestCase):
    def test_points_come_from_config_and_are_logged(self):
        result = add_point_event(self.organization, self.manager, self.sam, "tardiness_major", notes="Bus")
        self.assertEqual(result["entry"].points, 2)
        self.assertEqual(result["current_points"], 2)
        self.assertEqual(result["tier"], 1)

        log = ActivityLog.objects.get(activity_type="performance_point_added")
        self.assertEqual(log.details["team_member_id"], str(self.sam.id))
        self.assertEqual(log.details["points"], 2)

    def test_org_override_changes_points(self):
        self.organization.modules = {"team_performance": {"enabled": True, "config": {"point_values": {"tardiness_major": 3}}}}
        self.organization.save()
        result = add_point_event(self.organization, self.manager, self.sam, "tardiness_major")
        self.assertEqual(result["entry"].points, 3)

    def test_unknown_type(self):
        with self.assertRaises(InvalidPointType):
            add_point_event(self.organization, self.manager, self.sam, "stay_late")

    def test_no_show_triggers_coaching_and_tier_change(self):
        result = add_point_event(self.organization, self.manager, self.sam, "no_call_no_show")
        self.assertEqual(result["coaching_stage"], 1)
        self.assertEqual(result["tier"], 3)
        record = result["coaching_record"]
        self.assertEqual(record.status, "pending")
        self.assertEqual(record.triggered_points, 6)

        self.assertCountEqual(
            activity_types(self.organization),
            ["performance_point_added", "performance_coaching_triggered", "performance_tier_changed"],
        )
        tier_log = ActivityLog.objects.get(activity_type="performance_tier_changed")
        self.assertEqual(tier_log.severity, "warning")

    def test_coaching_record_not_duplicated_for_open_stage(self):
        add_point_event(self.organization, self.manager, self.sam, "no_call_no_show")
        result = add_point_event(self.organization, self.manager, self.sam, "tardiness_minor")
        self.assertIsNone(result["coaching_record"])
        self.assertEqual(CoachingRecord.objects.filter(team_member=self.sam).count(), 1)


class PointReductionTests(PerformanceFixtures, TestCase):
    def test_reduction_is_capped_at_thirty_day_limit(self):
        self.add_event(self.sam, "no_call_no_show", 6)
        add_point_reduction(self.organization, self.manager, self.sam, "cover_shift_urgent")
        result = add_point_reduction(self.organization, self.manager, self.sam, "cover_shift_urgent")
        self.assertTrue(result["capped"])
        self.assertEqual(result["entry"].points, -1)
        self.assertEqual(result["current_points"], 3)
        log = ActivityLog.objects.filter(activity_type="performance_reduction_added").latest("created_at")
        self.assertTrue(log.details["capped"])

    def test_limit_reached(self):
        self.add_reduction(self.sam, "cover_shift_urgent", -2, event_date=self.today - datetime.timedelta(days=3))
        self.add_reduction(self.sam, "stay_late", -1, event_date=self.today - datetime.timedelta(days=10))
        with self.assertRaises(ReductionLimitReached):
            add_point_reduction(self.organization, self.manager, self.sam, "stay_late")

    def test_old_reductions_do_not_count(self):
        self.add_reduction(self.sam, "cover_shift_urgent", -2, event_date=self.today - datetime.timedelta(days=45))
        self.add_reduction(self.sam, "stay_late", -1, event_date=self.today - datetime.timedelta(days=40))
        result = add_point_reduction(self.organization, self.manager, self.sam, "cover_shift_urgent")
        self.assertFalse(result["capped"])
        self.assertEqual(result["entry"].points, -2)

    def test_points_never_go_below_zero(self):
        self.add_event(self.sam, "tardiness_minor", 1)
        result = add_point_reduction(self.organization, self.manager, self.sam, "cover_shift_urgent")
        self.assertEqual(result["current_points"], 0)


class EntryOperationTests(PerformanceFixtures, TestCase):
    def test_modify_entry_appends_note_and_logs(self):
        event = self.add_event(self.sam, "tardiness_minor", 1, notes="Late")
        modify_entry(self.organization, self.manager, event, "tardiness_major")
        event.refresh_from_db()
        self.assertEqual(event.event_type, "tardiness_major")
        self.assertEqual(event.points, 2)
        self.assertEqual(event.notes, "Late [Modified from tardiness_minor]")
        log = ActivityLog.objects.get(activity_type="performance_event_modified")
        self.assertEqual(log.details["original_points"], 1)
        self.assertEqual(log.details["new_points"], 2)

    def test_modify_rejects_wrong_sign(self):
        reduction = self.add_reduction(self.sam)
        with self.assertRaises(InvalidPointType):
            modify_entry(self.organization, self.manager, reduction, "arrive_early", new_points=2)

    def test_excuse_deletes_and_logs_reason(self):
        event = self.add_event(self.sam, notes="Traffic")
        excuse_entry(self.organization, self.manager, event, "LATE OK")
        self.assertFalse(PointEvent.objects.filter(id=event.id).exists())
        log = ActivityLog.objects.get(activity_type="performance_event_excused")
        self.assertEqual(log.details["excuse_reason"], "LATE OK")
        self.assertEqual(log.details["original_notes"], "Traffic")

    def test_remove(self):
        reduction = self.add_reduction(self.sam)
        remove_entry(self.organization, self.manager, reduction)
        self.assertFalse(PointReduction.objects.filter(id=reduction.id).exists())
        self.assertEqual(activity_types(self.organization), ["performance_event_removed"])
        self.assertEqual(member_points(self.sam, self.cycle), 0)


class SickDayTests(PerformanceFixtures, TestCase):
    def test_allowance_is_enforced_unless_forced(self):
        for offset in range(3):
            log_sick_day(self.organization, self.manager, self.sam, self.today + datetime.timedelta(days=offset))
        with self.assertRaises(SickDayAllowanceExhausted):
            log_sick_day(self.organization, self.manager, self.sam, self.today + datetime.timedelta(days=5))

        log = log_sick_day(
            self.organization, self.manager, self.sam, self.today + datetime.timedelta(days=5), force=True
        )
        self.assertEqual(log.details["reason"], "SICK OK")
        self.assertEqual(log.details["event_type"], "sick_day_manual")
        self.assertEqual(log.details["source"], "manual_entry")

    def test_other_members_days_do_not_count(self):
        for offset in range(3):
            log_sick_day(self.organization, self.manager, self.ria, self.today + datetime.timedelta(days=offset))
        self.assertIsNotNone(log_sick_day(self.organization, self.manager, self.sam, self.today))


class CoachingAndPipTests(PerformanceFixtures, TestCase):
    def test_completing_coaching_stamps_and_logs(self):
        record = add_point_event(self.organization, self.manager, self.sam, "no_call_no_show")["coaching_record"]
        record = update_coaching_record(
            self.organization, self.manager, record, {"status": "completed", "barriers_discussed": True}
        )
        self.assertIsNotNone(record.completed_at)
        self.assertEqual(record.completed_by, self.manager)
        self.assertTrue(record.barriers_discussed)
        self.assertTrue(ActivityLog.objects.filter(activity_type="performance_coaching_completed").exists())

    def test_pip_lifecycle(self):
        pip = create_pip(self.organization, self.manager, self.sam, {
            "start_date": self.today,
            "end_date": self.today + datetime.timedelta(days=30),
            "goals": [{"description": "No lates", "target_value": 4, "current_value": 0}],
            "milestones": [{"description": "Check-in", "due_date": self.today}],
        })
        goal_id = pip.goals[0]["id"]
        self.assertEqual(pip.milestones[0]["due_date"], self.today.isoformat())

        pip = toggle_pip_goal(self.organization, self.manager, pip, goal_id)
        self.assertTrue(pip.goals[0]["is_met"])
        self.assertIsNone(toggle_pip_milestone(self.organization, self.manager, pip, "missing"))

        pip = update_pip(self.organization, self.manager, pip, {"status": "completed", "outcome": "success"})
        self.assertIsNotNone(pip.completed_at)
        self.assertCountEqual(
            activity_types(self.organization),
            ["performance_pip_created", "performance_pip_updated", "performance_pip_updated",
             "performance_pip_completed"],
        )
