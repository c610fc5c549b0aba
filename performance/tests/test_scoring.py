import datetime

from django.test import SimpleTestCase

from performance.config import DEFAULT_PERFORMANCE_CONFIG, deep_merge, entry_label
from performance.scoring import (
    calculate_coaching_stage, calculate_tier, cycle_boundaries, goal_progress, milestone_status, sick_period_start,
)


class TierAndStageTests(SimpleTestCase):
    config = DEFAULT_PERFORMANCE_CONFIG

    def test_tier_boundaries(self):
        self.assertEqual(calculate_tier(0, self.config), 1)
        self.assertEqual(calculate_tier(2, self.config), 1)
        self.assertEqual(calculate_tier(3, self.config), 2)
        self.assertEqual(calculate_tier(5, self.config), 2)
        self.assertEqual(calculate_tier(6, self.config), 3)

    def test_coaching_stage_is_highest_reached(self):
        self.assertIsNone(calculate_coaching_stage(5, self.config))
        self.assertEqual(calculate_coaching_stage(6, self.config), 1)
        self.assertEqual(calculate_coaching_stage(9, self.config), 2)
        self.assertEqual(calculate_coaching_stage(12, self.config), 4)
        self.assertEqual(calculate_coaching_stage(40, self.config), 5)

    def test_custom_thresholds(self):
        config = deep_merge(self.config, {"tier_thresholds": {"tier1_max": 0}})
        self.assertEqual(calculate_tier(1, config), 2)
        self.assertEqual(config["tier_thresholds"]["tier2_max"], 5)


class ConfigTests(SimpleTestCase):
    def test_deep_merge_keeps_defaults_and_unknown_keys(self):
        merged = deep_merge(
            DEFAULT_PERFORMANCE_CONFIG,
            {"point_values": {"tardiness_minor": 3}, "custom_flag": True},
        )
        self.assertEqual(merged["point_values"]["tardiness_minor"], 3)
        self.assertEqual(merged["point_values"]["no_call_no_show"], 6)
        self.assertTrue(merged["custom_flag"])
        self.assertEqual(DEFAULT_PERFORMANCE_CONFIG["point_values"]["tardiness_minor"], 1)

    def test_entry_label_falls_back_to_humanized_type(self):
        self.assertEqual(entry_label("no_call_no_show"), "No-call/No-show")
        self.assertEqual(entry_label("sick_day"), "Sick Day")
        self.assertEqual(entry_label("walked_off_line"), "Walked Off Line")


class CycleBoundaryTests(SimpleTestCase):
    def test_quadmester(self):
        start, end, name = cycle_boundaries(datetime.date(2026, 6, 15), "quadmester")
        self.assertEqual((start, end), (datetime.date(2026, 5, 1), datetime.date(2026, 8, 31)))
        self.assertEqual(name, "Q2 2026 (May-Aug)")

    def test_trimester(self):
        start, end, name = cycle_boundaries(datetime.date(2026, 11, 2), "trimester")
        self.assertEqual((start, end), (datetime.date(2026, 10, 1), datetime.date(2026, 12, 31)))
        self.assertEqual(name, "T4 2026 (Oct-Dec)")

    def test_unknown_type_falls_back_to_quadmester(self):
        start, end, name = cycle_boundaries(datetime.date(2026, 2, 10), "fortnightly")
        self.assertEqual((start, end), (datetime.date(2026, 1, 1), datetime.date(2026, 4, 30)))
        self.assertTrue(name.startswith("Q1 2026"))


class SickPeriodTests(SimpleTestCase):
    today = datetime.date(2026, 10, 19)

    def test_calendar_and_fiscal_year_start_january_first(self):
        self.assertEqual(sick_period_start("calendar_year", None, self.today), datetime.date(2026, 1, 1))
        self.assertEqual(
            sick_period_start("fiscal_year", datetime.date(2020, 6, 1), self.today), datetime.date(2026, 1, 1)
        )

    def test_anniversary(self):
        self.assertEqual(
            sick_period_start("anniversary", datetime.date(2019, 3, 4), self.today), datetime.date(2026, 3, 4)
        )
        self.assertEqual(
            sick_period_start("anniversary", datetime.date(2019, 12, 1), self.today), datetime.date(2025, 12, 1)
        )

    def test_anniversary_without_hire_date(self):
        self.assertEqual(sick_period_start("anniversary", None, self.today), datetime.date(2026, 1, 1))

    def test_leap_day_hire(self):
        self.assertEqual(
            sick_period_start("anniversary", datetime.date(2020, 2, 29), datetime.date(2026, 3, 1)),
            datetime.date(2026, 2, 28),
        )


class PipProgressTests(SimpleTestCase):
    def test_goal_progress(self):
        self.assertEqual(goal_progress({"is_met": True, "target_value": 10, "current_value": 1}), 100)
        self.assertEqual(goal_progress({"target_value": 4, "current_value": 1}), 25)
        self.assertEqual(goal_progress({"target_value": 4, "current_value": 9}), 100)
        self.assertEqual(goal_progress({"description": "No target"}), 0)

    def test_milestone_status(self):
        today = datetime.date(2026, 10, 19)
        self.assertEqual(milestone_status({"completed": True, "due_date": "2026-10-01"}, today), "completed")
        self.assertEqual(milestone_status({"due_date": "2026-10-18"}, today), "overdue")
        self.assertEqual(milestone_status({"due_date": "2026-10-19"}, today), "due_today")
        self.assertEqual(milestone_status({"due_date": "2026-11-01"}, today), "upcoming")
        self.assertEqual(milestone_status({}, today), "upcoming")
