import datetime

from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from accounts.models import CustomUser, Organization
from nexus.models import ActivityLog
from performance.models import CoachingRecord, PerformanceImprovementPlan, PointEvent, StagedEvent
from performance.tests.base import PerformanceFixtures
from performance.tests.test_imports import SCHEDULED, WORKED

BASE = "/api/performance"


class PerformanceAPITestCase(PerformanceFixtures, APITestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(user=self.manager)


class PermissionTests(PerformanceAPITestCase):
    def test_crew_can_read_but_not_write(self):
        self.client.force_authenticate(user=self.crew)
        self.assertEqual(self.client.get(f"{BASE}/team/").status_code, status.HTTP_200_OK)
        resp = self.client.post(
            f"{BASE}/events/", {"team_member": str(self.sam.id), "event_type": "tardiness_minor"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.client.post(f"{BASE}/decisions/commit/").status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(
            self.client.put(f"{BASE}/config/", {}, format="json").status_code, status.HTTP_403_FORBIDDEN
        )

    def test_user_without_organization_is_rejected(self):
        stray = CustomUser.objects.create_user(email="stray@test.com", first_name="Stray", last_name="User")
        self.client.force_authenticate(user=stray)
        self.assertEqual(self.client.get(f"{BASE}/team/").status_code, status.HTTP_403_FORBIDDEN)

    def test_other_organization_member_is_not_found(self):
        other = Organization.objects.create(name="Elsewhere", email="else@test.com")
        outsider = CustomUser.objects.create_user(
            email="outsider@test.com", role="MANAGER", security_level=2, organization=other,
            first_name="Otto", last_name="Outsider",
        )
        self.client.force_authenticate(user=outsider)
        self.assertEqual(self.client.get(f"{BASE}/members/{self.sam.id}/").status_code, status.HTTP_404_NOT_FOUND)


class ConfigViewTests(PerformanceAPITestCase):
    def test_get_returns_defaults(self):
        resp = self.client.get(f"{BASE}/config/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["config"]["point_values"]["no_call_no_show"], 6)
        self.assertIn("stay_late", resp.data["reduction_labels"])

    def test_put_merges_overrides_and_logs(self):
        resp = self.client.put(f"{BASE}/config/", {"point_values": {"tardiness_minor": 3}}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["config"]["point_values"]["tardiness_minor"], 3)
        self.assertEqual(resp.data["config"]["point_values"]["tardiness_major"], 2)
        self.organization.refresh_from_db()
        self.assertEqual(
            self.organization.modules["team_performance"]["config"]["point_values"], {"tardiness_minor": 3}
        )
        self.assertTrue(ActivityLog.objects.filter(activity_type="performance_config_updated").exists())

    def test_put_rejects_positive_reduction(self):
        resp = self.client.put(f"{BASE}/config/", {"reduction_values": {"stay_late": 2}}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)


class RosterAndLedgerViewTests(PerformanceAPITestCase):
    def setUp(self):
        super().setUp()
        self.add_event(self.ria, "no_call_no_show", 6, notes="Missed Saturday")
        self.add_event(self.sam, "tardiness_major", 2)
        self.stage(self.ria)

    def test_roster(self):
        resp = self.client.get(f"{BASE}/team/", {"sort": "points_desc"})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        names = [row["team_member"]["first_name"] for row in resp.data["results"]]
        self.assertEqual(names, ["Ria", "Sam"])
        self.assertEqual(resp.data["stats"]["pending"], 1)
        self.assertEqual(resp.data["cycle"]["id"], str(self.cycle.id))

    def test_roster_rejects_unknown_sort(self):
        resp = self.client.get(f"{BASE}/team/", {"sort": "shoe_size"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_member_detail(self):
        resp = self.client.get(f"{BASE}/members/{self.ria.id}/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["current_points"], 6)
        self.assertEqual(resp.data["tier"], 3)
        self.assertEqual(len(resp.data["ledger"]), 1)
        self.assertEqual(len(resp.data["pending_events"]), 1)

    def test_team_ledger_filters(self):
        resp = self.client.get(f"{BASE}/ledger/", {"search": "saturday"})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["total"], 1)
        self.assertEqual(resp.data["stats"]["net_points"], 6)

    def test_ledger_export(self):
        resp = self.client.get(f"{BASE}/ledger/export/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(
            resp["Content-Type"], "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        self.assertIn("attachment;", resp["Content-Disposition"])
        self.assertTrue(resp.content.startswith(b"PK"))


class PointViewTests(PerformanceAPITestCase):
    def test_add_point_event_triggers_coaching(self):
        resp = self.client.post(
            f"{BASE}/events/", {"team_member": str(self.sam.id), "event_type": "no_call_no_show"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["current_points"], 6)
        self.assertEqual(resp.data["coaching_stage"], 1)
        self.assertEqual(resp.data["coaching_record"]["stage"], 1)

    def test_unknown_event_type(self):
        resp = self.client.post(
            f"{BASE}/events/", {"team_member": str(self.sam.id), "event_type": "juggling"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_team_member_from_other_organization(self):
        other = Organization.objects.create(name="Elsewhere", email="else@test.com")
        stranger = self.sam.__class__.objects.create(organization=other, first_name="Stan")
        resp = self.client.post(
            f"{BASE}/events/", {"team_member": str(stranger.id), "event_type": "tardiness_minor"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_entry(self):
        event = self.add_event(self.sam)
        resp = self.client.delete(f"{BASE}/entries/event/{event.id}/")
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(PointEvent.objects.filter(id=event.id).exists())

    def test_bad_entry_type(self):
        event = self.add_event(self.sam)
        resp = self.client.delete(f"{BASE}/entries/bonus/{event.id}/")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_excuse_reasons(self):
        resp = self.client.get(f"{BASE}/excuse-reasons/")
        self.assertIn({"code": "SICK OK", "label": "Sick (ESA Protected)"}, resp.data)


class StagedEventViewTests(PerformanceAPITestCase):
    def setUp(self):
        super().setUp()
        self.late = self.stage(self.sam)
        self.absent = self.stage(self.ria, "no_call_no_show", 6, description="No show")

    def test_decide_single_event(self):
        resp = self.client.post(f"{BASE}/staged-events/{self.late.id}/decide/", {"action": "approve"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["current_points"], 2)
        self.assertFalse(StagedEvent.objects.filter(id=self.late.id).exists())

    def test_manual_staged_event_defaults_points(self):
        resp = self.client.post(
            f"{BASE}/staged-events/",
            {"team_member": str(self.sam.id), "event_type": "tardiness_minor", "description": "Late by 8",
             "event_date": self.today.isoformat()},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["suggested_points"], 1)
        self.assertEqual(resp.data["source"], "manual")

    def test_queue_undo_and_commit(self):
        resp = self.client.post(f"{BASE}/decisions/", {"event_id": str(self.late.id), "action": "approve"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.client.post(
            f"{BASE}/decisions/", {"event_id": str(self.absent.id), "action": "excuse", "reason": "SICK OK"},
            format="json",
        )

        resp = self.client.get(f"{BASE}/decisions/", {"team_member": str(self.sam.id)})
        self.assertEqual(resp.data["count"], 2)
        self.assertEqual(resp.data["projected_points"], 2)
        self.assertEqual(resp.data["pending_events"], [])

        resp = self.client.post(f"{BASE}/decisions/undo/", {}, format="json")
        self.assertEqual(resp.data["count"], 1)

        resp = self.client.post(f"{BASE}/decisions/commit/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["approved"], 1)
        self.assertEqual(PointEvent.objects.get(team_member=self.sam).points, 2)
        self.assertTrue(StagedEvent.objects.filter(id=self.absent.id).exists())

        resp = self.client.post(f"{BASE}/decisions/commit/")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_excuse_requires_reason(self):
        resp = self.client.post(f"{BASE}/decisions/", {"event_id": str(self.late.id), "action": "excuse"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters_and_rejects_bad_ids(self):
        resp = self.client.get(f"{BASE}/staged-events/", {"team_member": str(self.sam.id)})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([row["id"] for row in resp.data], [str(self.late.id)])

        for params in ({"team_member": "not-a-uuid"}, {"import_batch_id": "batch-7"}):
            resp = self.client.get(f"{BASE}/staged-events/", params)
            self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertIn(next(iter(params)), resp.data)

        resp = self.client.get(f"{BASE}/decisions/", {"team_member": "not-a-uuid"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_roster_rejects_bad_cycle_id(self):
        resp = self.client.get(f"{BASE}/team/", {"cycle": "current"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("cycle", resp.data)


class ImportViewTests(PerformanceAPITestCase):
    def test_preview_does_not_stage(self):
        resp = self.client.post(
            f"{BASE}/imports/", {"scheduled_csv": SCHEDULED, "worked_csv": WORKED, "preview": True}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["matched_count"], 2)
        self.assertEqual(resp.data["no_show_count"], 3)
        self.assertFalse(StagedEvent.objects.exists())

    def test_import_stages_events(self):
        resp = self.client.post(f"{BASE}/imports/", {"scheduled_csv": SCHEDULED, "worked_csv": WORKED}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["staged"]["staged_count"], StagedEvent.objects.count())

        resp = self.client.get(f"{BASE}/gaps/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["stats"]["total"], 3)

    def test_missing_column(self):
        resp = self.client.post(
            f"{BASE}/imports/", {"scheduled_csv": "Employee ID,Date\n1,2026-01-05\n", "worked_csv": WORKED},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("Missing required column", resp.data["detail"])

    def test_file_that_is_not_utf8(self):
        resp = self.client.post(
            f"{BASE}/imports/",
            {
                "scheduled_file": SimpleUploadedFile(
                    "scheduled.csv", b"Name,Date\n\xff\xfe\xfa", content_type="text/csv"
                ),
                "worked_csv": WORKED,
            },
            format="multipart",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["scheduled_file"], ["File must be UTF-8 encoded CSV."])
        self.assertFalse(StagedEvent.objects.exists())


class CoachingAndPipViewTests(PerformanceAPITestCase):
    def setUp(self):
        super().setUp()
        self.record = CoachingRecord.objects.create(
            organization=self.organization, team_member=self.ria, stage=1,
            triggered_at=datetime.datetime(2026, 1, 10, 15, tzinfo=datetime.timezone.utc), triggered_points=6,
        )

    def test_coaching_letter_pdf(self):
        resp = self.client.get(f"{BASE}/coaching/{self.record.id}/letter/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp["Content-Type"], "application/pdf")
        self.assertTrue(resp.content.startswith(b"%PDF"))
        self.record.refresh_from_db()
        self.assertTrue(self.record.letter_generated)

    def test_pip_create_and_toggle(self):
        resp = self.client.post(f"{BASE}/pips/", {
            "team_member": str(self.ria.id),
            "start_date": "2026-02-01",
            "end_date": "2026-03-01",
            "goals": [{"description": "No lates for 30 days"}],
            "milestones": [{"description": "Week one check-in", "due_date": "2026-02-08"}],
        }, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        pip = PerformanceImprovementPlan.objects.get(id=resp.data["id"])
        goal_id = pip.goals[0]["id"]
        milestone_id = pip.milestones[0]["id"]

        resp = self.client.post(f"{BASE}/pips/{pip.id}/goals/{goal_id}/toggle/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data["goals"][0]["is_met"])

        resp = self.client.post(f"{BASE}/pips/{pip.id}/milestones/{milestone_id}/toggle/")
        self.assertTrue(resp.data["milestones"][0]["completed"])

        resp = self.client.post(f"{BASE}/pips/{pip.id}/goals/missing/toggle/")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_pip_end_before_start(self):
        resp = self.client.post(f"{BASE}/pips/", {
            "team_member": str(self.ria.id), "start_date": "2026-03-01", "end_date": "2026-02-01",
        }, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_coaching_and_pip_lists_reject_bad_member_id(self):
        resp = self.client.get(f"{BASE}/coaching/", {"team_member": str(self.ria.id)})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([row["id"] for row in resp.data], [str(self.record.id)])
        self.assertEqual(self.client.get(f"{BASE}/coaching/", {"team_member": str(self.sam.id)}).data, [])

        for url in (f"{BASE}/coaching/", f"{BASE}/pips/"):
            resp = self.client.get(url, {"team_member": "not-a-uuid"})
            self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertIn("team_member", resp.data)
