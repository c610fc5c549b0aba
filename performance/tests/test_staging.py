import datetime

from django.core.cache import cache
from django.test import TestCase, override_settings

from core.exceptions import InvalidPointType, StagedEventNotFound
from nexus.models import ActivityLog
from performance.models import PerformanceCycle, PointEvent, PointReduction, QueuedDecisionBatch, StagedEvent
from performance.staging import DecisionQueue, approve_staged_event, excuse_staged_event, reject_staged_event
from performance.tests.base import PerformanceFixtures


class SingleDecisionTests(PerformanceFixtures, TestCase):
    def test_approve_creates_point_event_and_logs(self):
        staged = self.stage(self.sam)
        approve_staged_event(self.organization, self.manager, staged)

        event = PointEvent.objects.get(team_member=self.sam)
        self.assertEqual((event.event_type, event.points), ("tardiness_major", 2))
        self.assertEqual(event.notes, "Arrived 20 min late")
        self.assertEqual(event.cycle, self.cycle)
        self.assertFalse(StagedEvent.objects.exists())

        log = ActivityLog.objects.get(activity_type="performance_event_approved")
        self.assertFalse(log.details["was_modified"])
        self.assertEqual(log.details["team_member_id"], str(self.sam.id))
        self.assertEqual(log.details["event_date"], self.today.isoformat())

    def test_approve_with_modification(self):
        staged = self.stage(self.sam)
        approve_staged_event(
            self.organization, self.manager, staged, modification={"event_type": "tardiness_minor", "points": 1}
        )
        event = PointEvent.objects.get(team_member=self.sam)
        self.assertEqual((event.event_type, event.points), ("tardiness_minor", 1))
        log = ActivityLog.objects.get(activity_type="performance_event_approved")
        self.assertTrue(log.details["was_modified"])
        self.assertEqual(log.details["original_event_type"], "tardiness_major")
        self.assertEqual(log.details["original_points"], 2)

    def test_negative_points_become_mapped_reduction(self):
        staged = self.stage(self.sam, "stayed_late", -1, description="Stayed 75 min late")
        approve_staged_event(self.organization, self.manager, staged)
        reduction = PointReduction.objects.get(team_member=self.sam)
        self.assertEqual((reduction.reduction_type, reduction.points), ("stay_late", -1))

    def test_unscheduled_is_informational(self):
        staged = self.stage(self.sam, "unscheduled_worked", 0)
        approve_staged_event(self.organization, self.manager, staged)
        self.assertFalse(StagedEvent.objects.exists())
        self.assertFalse(PointEvent.objects.exists())
        self.assertFalse(ActivityLog.objects.exists())

    def test_approve_outside_cycles_creates_cycle(self):
        old_date = self.cycle.start_date - datetime.timedelta(days=200)
        staged = self.stage(self.sam, event_date=old_date)
        approve_staged_event(self.organization, self.manager, staged)
        event = PointEvent.objects.get(team_member=self.sam)
        self.assertTrue(event.cycle.contains(old_date))
        self.assertFalse(event.cycle.is_current)
        self.assertEqual(PerformanceCycle.objects.get(is_current=True), self.cycle)

    def test_reject_and_excuse(self):
        first = self.stage(self.sam)
        second = self.stage(self.ria, "no_call_no_show", 6)
        reject_staged_event(self.organization, self.manager, first)
        excuse_staged_event(self.organization, self.manager, second, "SICK OK")
        self.assertFalse(StagedEvent.objects.exists())
        self.assertFalse(PointEvent.objects.exists())
        excused = ActivityLog.objects.get(activity_type="performance_event_excused")
        self.assertEqual(excused.details["reason"], "SICK OK")
        self.assertEqual(excused.details["team_member_id"], str(self.ria.id))
        self.assertTrue(ActivityLog.objects.filter(activity_type="performance_event_rejected").exists())


class DecisionQueueTests(PerformanceFixtures, TestCase):
    def setUp(self):
        super().setUp()
        self.late = self.stage(self.sam)
        self.early = self.stage(self.sam, "arrived_early", -1, description="Arrived 40 min early")
        self.no_show = self.stage(self.ria, "no_call_no_show", 6)

    def queue(self):
        return DecisionQueue.load(self.organization, self.manager)

    def test_requeue_replaces_and_undo_restores(self):
        queue = self.queue()
        queue.queue(self.late.id, "approve")
        queue.queue(self.late.id, "excuse", reason="LATE OK")
        self.assertEqual(len(queue.decisions), 1)
        self.assertEqual(queue.decisions[str(self.late.id)]["action"], "excuse")

        queue.undo()
        self.assertEqual(queue.decisions[str(self.late.id)]["action"], "approve")
        queue.undo()
        self.assertEqual(queue.decisions, {})
        self.assertFalse(queue.has_undo())
        self.assertIsNone(queue.undo())

    def test_undo_single_event(self):
        queue = self.queue()
        queue.queue(self.late.id, "approve")
        queue.queue(self.no_show.id, "reject")
        withdrawn = queue.undo(self.late.id)
        self.assertEqual(withdrawn["action"], "approve")
        self.assertEqual(list(queue.decisions), [str(self.no_show.id)])

    def test_validation(self):
        queue = self.queue()
        with self.assertRaises(InvalidPointType):
            queue.queue(self.late.id, "excuse")
        with self.assertRaises(InvalidPointType):
            queue.queue(self.late.id, "shrug")
        with self.assertRaises(StagedEventNotFound):
            queue.queue("00000000-0000-0000-0000-000000000000", "approve")

    def test_pending_and_projected_points(self):
        self.add_event(self.sam, "tardiness_minor", 1)
        queue = self.queue()
        queue.queue(self.late.id, "approve")
        queue.queue(self.early.id, "approve", modification={"points": -1})
        self.assertEqual(list(queue.pending_for(self.sam)), [])
        self.assertEqual(queue.projected_points(self.sam), 2)

        queue.undo(self.early.id)
        self.assertEqual([e.id for e in queue.pending_for(self.sam)], [self.early.id])
        self.assertEqual(queue.projected_points(self.sam), 3)

    def test_state_survives_reload(self):
        queue = self.queue()
        queue.queue(self.late.id, "approve")
        queue.save()
        reloaded = self.queue()
        self.assertEqual(list(reloaded.decisions), [str(self.late.id)])
        self.assertTrue(reloaded.has_undo())
        # Another manager has their own queue
        self.assertEqual(DecisionQueue.load(self.organization, self.crew).decisions, {})

    def test_saved_queue_does_not_depend_on_the_cache(self):
        queue = self.queue()
        queue.queue(self.late.id, "approve")
        queue.queue(self.no_show.id, "reject")
        queue.save()
        cache.clear()

        reloaded = self.queue()
        self.assertEqual(list(reloaded.decisions), [str(self.late.id), str(self.no_show.id)])
        batch = QueuedDecisionBatch.objects.get(organization=self.organization, user=self.manager)
        self.assertEqual(len(batch.decisions), 2)

        reloaded.clear()
        self.assertFalse(QueuedDecisionBatch.objects.exists())

    @override_settings(PERFORMANCE_DECISION_QUEUE_TTL=0)
    def test_idle_queue_expires(self):
        queue = self.queue()
        queue.queue(self.late.id, "approve")
        queue.save()
        self.assertEqual(self.queue().decisions, {})
        self.assertFalse(QueuedDecisionBatch.objects.exists())

    def test_projected_points_ignore_events_outside_the_cycle(self):
        self.add_event(self.sam, "tardiness_minor", 1)
        later = self.stage(self.sam, "no_call_no_show", 6, event_date=self.cycle.end_date + datetime.timedelta(days=10))
        queue = self.queue()
        queue.queue(later.id, "approve")
        self.assertEqual(queue.projected_points(self.sam), 1)

        queue.queue(self.late.id, "approve")
        self.assertEqual(queue.projected_points(self.sam), 3)

    def test_commit_applies_all_and_logs_after_commit(self):
        queue = self.queue()
        queue.queue(self.late.id, "approve")
        queue.queue(self.early.id, "reject")
        queue.queue(self.no_show.id, "excuse", reason="SICK OK")
        queue.save()

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            summary = queue.commit()

        self.assertEqual(len(callbacks), 1)
        self.assertEqual(
            summary, {"approved": 1, "rejected": 1, "excused": 1, "skipped": 0, "errors": []}
        )
        self.assertFalse(StagedEvent.objects.exists())
        self.assertEqual(PointEvent.objects.get().team_member, self.sam)
        self.assertEqual(ActivityLog.objects.count(), 3)
        self.assertEqual(self.queue().decisions, {})

    def test_commit_skips_events_that_are_gone(self):
        queue = self.queue()
        queue.queue(self.late.id, "approve")
        queue.queue(self.no_show.id, "reject")
        self.late.delete()

        with self.captureOnCommitCallbacks(execute=True):
            summary = queue.commit()
        self.assertEqual(summary["skipped"], 1)
        self.assertEqual(summary["rejected"], 1)
        self.assertFalse(PointEvent.objects.exists())

    def test_commit_collects_errors(self):
        queue = self.queue()
        queue.queue(self.late.id, "approve", modification={"points": 0})
        queue.queue(self.no_show.id, "approve")

        with self.captureOnCommitCallbacks(execute=True):
            summary = queue.commit()
        self.assertEqual(summary["approved"], 1)
        self.assertEqual(len(summary["errors"]), 1)
        self.assertEqual(summary["errors"][0]["event_id"], str(self.late.id))
        self.assertTrue(StagedEvent.objects.filter(id=self.late.id).exists())
