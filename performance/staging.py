"""
Manager decisions on staged events.

Decisions can be applied one at a time (approve/reject/excuse) or collected in
a DecisionQueue and saved together. The queue is stored per manager in the
database, so a review session survives page reloads and reaches every worker
until it is committed, cleared or left idle past its TTL.
"""
import datetime
import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from core.exceptions import InvalidPointType, StagedEventNotFound
from nexus.services import nexus
from .config import STAGED_REDUCTION_TYPE_MAP, get_performance_config
from .cycles import ensure_cycle_for_date, get_current_cycle
from .models import PointEvent, PointReduction, QueuedDecisionBatch, StagedEvent
from .services import EXCUSE_REASON_CODES, member_points

logger = logging.getLogger(__name__)

ACTIONS = ('approve', 'reject', 'excuse')
INFORMATIONAL_TYPES = ('unscheduled_worked',)
MAX_UNDO_HISTORY = 50


def _member_name(event):
    return event.team_member.full_name if event.team_member_id else 'Team member'


def _apply_approve(event: StagedEvent, user, modification: Optional[Dict[str, Any]] = None):
    """Write the approved points and delete the staged row. Returns NEXUS kwargs or None."""
    modification = modification or {}
    event_type = modification.get('event_type') or event.event_type
    points = modification.get('points')
    points = event.suggested_points if points is None else int(points)

    if event_type in INFORMATIONAL_TYPES:
        event.delete()
        return None

    organization = event.organization
    config = get_performance_config(organization)
    cycle = ensure_cycle_for_date(organization, event.event_date)

    if points < 0:
        reduction_type = STAGED_REDUCTION_TYPE_MAP.get(event_type, event_type)
        if reduction_type not in config['reduction_values']:
            raise InvalidPointType(f"Unknown point reduction type: {reduction_type}")
        PointReduction.objects.create(
            organization=organization,
            team_member=event.team_member,
            cycle=cycle,
            reduction_type=reduction_type,
            points=points,
            event_date=event.event_date,
            notes=event.description,
            created_by=user,
        )
        event_type = reduction_type
    elif points > 0:
        if event_type not in config['point_values']:
            raise InvalidPointType(f"Unknown point event type: {event_type}")
        PointEvent.objects.create(
            organization=organization,
            team_member=event.team_member,
            cycle=cycle,
            event_type=event_type,
            points=points,
            event_date=event.event_date,
            notes=event.description,
            created_by=user,
        )
    else:
        raise InvalidPointType('Approved events must carry points; reject or excuse instead.')

    details = {
        'team_member_id': event.team_member_id,
        'name': _member_name(event),
        'event_type': event_type,
        'original_event_type': event.event_type,
        'points': points,
        'original_points': event.suggested_points,
        'was_modified': bool(modification),
        'event_date': event.event_date,
        'staged_event_id': event.id,
    }
    event.delete()
    return {'activity_type': 'performance_event_approved', 'details': details}


def _apply_reject(event: StagedEvent, user):
    details = {
        'team_member_id': event.team_member_id,
        'name': _member_name(event),
        'event_type': event.event_type,
        'event_date': event.event_date,
        'staged_event_id': event.id,
    }
    event.delete()
    return {'activity_type': 'performance_event_rejected', 'details': details}


def _apply_excuse(event: StagedEvent, user, reason: str):
    if reason not in EXCUSE_REASON_CODES:
        raise InvalidPointType(f"Unknown excuse reason: {reason}")
    details = {
        'team_member_id': event.team_member_id,
        'name': _member_name(event),
        'event_type': event.event_type,
        'reason': reason,
        'event_date': event.event_date,
        'staged_event_id': event.id,
    }
    event.delete()
    return {'activity_type': 'performance_event_excused', 'details': details}


def _apply(event, user, decision):
    action = decision['action']
    if action == 'approve':
        return _apply_approve(event, user, decision.get('modification'))
    if action == 'reject':
        return _apply_reject(event, user)
    return _apply_excuse(event, user, decision.get('reason'))


def _decide(organization, user, event, decision):
    with transaction.atomic():
        log_kwargs = _apply(event, user, decision)
    if log_kwargs:
        nexus(organization=organization, user=user, **log_kwargs)
    return log_kwargs


def approve_staged_event(organization, user, event, modification=None):
    return _decide(organization, user, event, {'action': 'approve', 'modification': modification})


def reject_staged_event(organization, user, event):
    return _decide(organization, user, event, {'action': 'reject'})


def excuse_staged_event(organization, user, event, reason):
    return _decide(organization, user, event, {'action': 'excuse', 'reason': reason})


class DecisionQueue:
    """
    Queued manager decisions on staged events, with undo.

    Re-queueing an event replaces its earlier decision; undo() brings the
    replaced decision back.
    """

    def __init__(self, organization, user, decisions=None, history=None):
        self.organization = organization
        self.user = user
        self.decisions: "OrderedDict[str, Dict[str, Any]]" = OrderedDict(
            (d['event_id'], d) for d in (decisions or [])
        )
        self.history: List[Dict[str, Any]] = list(history or [])[-MAX_UNDO_HISTORY:]

    # -- persistence ---------------------------------------------------------

    @classmethod
    def load(cls, organization, user):
        batch = QueuedDecisionBatch.objects.filter(organization=organization, user=user).first()
        if batch is None:
            return cls(organization, user)
        expires_at = batch.updated_at + datetime.timedelta(seconds=settings.PERFORMANCE_DECISION_QUEUE_TTL)
        if expires_at <= timezone.now():
            batch.delete()
            return cls(organization, user)
        return cls(organization, user, batch.decisions, batch.history)

    def save(self):
        QueuedDecisionBatch.objects.update_or_create(
            organization=self.organization,
            user=self.user,
            defaults={'decisions': list(self.decisions.values()), 'history': self.history},
        )

    def clear(self):
        self.decisions.clear()
        self.history.clear()
        QueuedDecisionBatch.objects.filter(organization=self.organization, user=self.user).delete()

    # -- queueing ------------------------------------------------------------

    def queue(self, event_id, action: str, reason: str = None, modification: Dict[str, Any] = None):
        event_id = str(event_id)
        if action not in ACTIONS:
            raise InvalidPointType(f"Unknown decision: {action}")
        if action == 'excuse' and reason not in EXCUSE_REASON_CODES:
            raise InvalidPointType(f"Unknown excuse reason: {reason}")
        if not StagedEvent.objects.filter(organization=self.organization, id=event_id).exists():
            raise StagedEventNotFound()

        decision = {'event_id': event_id, 'action': action}
        if reason:
            decision['reason'] = reason
        if modification:
            decision['modification'] = {
                'event_type': modification.get('event_type'),
                'points': modification.get('points'),
            }

        replaced = self.decisions.pop(event_id, None)
        self.decisions[event_id] = decision
        self.history.append({'event_id': event_id, 'replaced': replaced})
        self.history = self.history[-MAX_UNDO_HISTORY:]
        return decision

    def undo(self, event_id=None):
        """Withdraw the latest decision, or the decision for ``event_id``."""
        if event_id is not None:
            event_id = str(event_id)
            self.history = [h for h in self.history if h['event_id'] != event_id]
            return self.decisions.pop(event_id, None)

        if not self.history:
            return None
        last = self.history.pop()
        withdrawn = self.decisions.pop(last['event_id'], None)
        if last['replaced']:
            self.decisions[last['event_id']] = last['replaced']
        return withdrawn

    def has_undo(self):
        return len(self.history) > 0

    @property
    def pending_decisions(self):
        return list(self.decisions.values())

    def pending_for(self, member):
        """Staged events for ``member`` that have no queued decision."""
        return StagedEvent.objects.filter(organization=self.organization, team_member=member).exclude(
            id__in=list(self.decisions.keys())
        )

    def projected_points(self, member, cycle=None) -> int:
        """Current points plus what the queued approvals dated inside ``cycle`` would add."""
        cycle = cycle or get_current_cycle(self.organization)
        queued = {
            d['event_id']: d for d in self.decisions.values() if d['action'] == 'approve'
        }
        if not queued:
            return member_points(member, cycle)

        delta = 0
        events = StagedEvent.objects.filter(
            organization=self.organization,
            team_member=member,
            id__in=list(queued.keys()),
            event_date__gte=cycle.start_date,
            event_date__lte=cycle.end_date,
        )
        for event in events:
            modification = queued[str(event.id)].get('modification') or {}
            event_type = modification.get('event_type') or event.event_type
            if event_type in INFORMATIONAL_TYPES:
                continue
            points = modification.get('points')
            delta += event.suggested_points if points is None else int(points)
        return max(0, member_points(member, cycle) + delta)

    # -- saving --------------------------------------------------------------

    def commit(self) -> Dict[str, Any]:
        """Apply every queued decision in one transaction; logs are written after it commits."""
        summary = {'approved': 0, 'rejected': 0, 'excused': 0, 'skipped': 0, 'errors': []}
        counters = {'approve': 'approved', 'reject': 'rejected', 'excuse': 'excused'}
        pending_logs = []

        with transaction.atomic():
            for decision in self.decisions.values():
                event = (
                    StagedEvent.objects.select_for_update()
                    .select_related('team_member', 'organization')
                    .filter(organization=self.organization, id=decision['event_id'])
                    .first()
                )
                if event is None:
                    summary['skipped'] += 1
                    continue
                try:
                    with transaction.atomic():
                        log_kwargs = _apply(event, self.user, decision)
                except InvalidPointType as exc:
                    summary['errors'].append({'event_id': decision['event_id'], 'error': str(exc.detail)})
                    continue
                summary[counters[decision['action']]] += 1
                if log_kwargs:
                    pending_logs.append(log_kwargs)

            organization, user = self.organization, self.user
            transaction.on_commit(
                lambda: [nexus(organization=organization, user=user, **kwargs) for kwargs in pending_logs]
            )

        logger.info(
            "Staged decisions committed",
            extra={
                "organization_id": str(self.organization.id),
                "approved": summary['approved'],
                "rejected": summary['rejected'],
                "excused": summary['excused'],
                "skipped": summary['skipped'],
                "errors": len(summary['errors']),
            },
        )
        self.clear()
        return summary
