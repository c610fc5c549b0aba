"""
Point, coaching and PIP operations. Every manager decision is written to NEXUS.
"""
import datetime
import logging
import uuid
from typing import Any, Dict, Optional

from django.db.models import Sum
from django.utils import timezone

from core.exceptions import InvalidPointType, ReductionLimitReached, SickDayAllowanceExhausted
from core.timezone_utils import organization_today
from nexus.services import nexus
from .config import EXCUSE_REASONS, SICK_REASON, get_performance_config
from .cycles import get_current_cycle
from .ledger import sick_day_logs, time_off_usage
from .models import CoachingRecord, PerformanceImprovementPlan, PointEvent, PointReduction
from .reports import coaching_letter_pdf
from .scoring import calculate_coaching_stage, calculate_tier

logger = logging.getLogger(__name__)

EXCUSE_REASON_CODES = [code for code, _ in EXCUSE_REASONS]

COACHING_FIELDS = (
    'status', 'conversation_scheduled', 'conversation_date', 'barriers_discussed',
    'resources_identified', 'strategy_developed', 'notes',
)
PIP_FIELDS = ('status', 'start_date', 'end_date', 'goals', 'milestones', 'notes', 'outcome')


def member_points(member, cycle) -> int:
    events = PointEvent.objects.filter(team_member=member, cycle=cycle).aggregate(total=Sum('points'))['total'] or 0
    reductions = (
        PointReduction.objects.filter(team_member=member, cycle=cycle).aggregate(total=Sum('points'))['total'] or 0
    )
    return max(0, events + reductions)


def reductions_in_last_30_days(member, today: datetime.date) -> int:
    since = today - datetime.timedelta(days=30)
    total = (
        PointReduction.objects.filter(team_member=member, event_date__gte=since).aggregate(total=Sum('points'))['total']
        or 0
    )
    return abs(total)


def _check_coaching_threshold(organization, user, member, points, config) -> Optional[CoachingRecord]:
    stage = calculate_coaching_stage(points, config)
    if stage is None:
        return None
    open_record = (
        CoachingRecord.objects.filter(team_member=member, stage=stage)
        .exclude(status='completed')
        .exists()
    )
    if open_record:
        return None

    record = CoachingRecord.objects.create(
        organization=organization,
        team_member=member,
        stage=stage,
        triggered_at=timezone.now(),
        triggered_points=points,
        status='pending',
    )
    nexus(
        organization=organization,
        user=user,
        activity_type='performance_coaching_triggered',
        details={
            'team_member_id': member.id,
            'name': member.full_name,
            'stage': stage,
            'points': points,
            'coaching_record_id': record.id,
        },
    )
    return record


def add_point_event(organization, user, member, event_type: str, notes: str = None,
                    event_date: Optional[datetime.date] = None) -> Dict[str, Any]:
    config = get_performance_config(organization)
    if event_type not in config['point_values']:
        raise InvalidPointType(f"Unknown point event type: {event_type}")

    points = int(config['point_values'][event_type])
    cycle = get_current_cycle(organization)
    event_date = event_date or organization_today(organization)
    previous_tier = calculate_tier(member_points(member, cycle), config)

    event = PointEvent.objects.create(
        organization=organization,
        team_member=member,
        cycle=cycle,
        event_type=event_type,
        points=points,
        event_date=event_date,
        notes=notes,
        created_by=user,
    )
    nexus(
        organization=organization,
        user=user,
        activity_type='performance_point_added',
        details={
            'team_member_id': member.id,
            'name': member.full_name,
            'event_type': event_type,
            'points': points,
            'event_date': event_date,
            'notes': notes,
        },
    )

    current = member_points(member, cycle)
    coaching_record = _check_coaching_threshold(organization, user, member, current, config)
    tier = calculate_tier(current, config)
    if tier != previous_tier:
        nexus(
            organization=organization,
            user=user,
            activity_type='performance_tier_changed',
            details={
                'team_member_id': member.id,
                'name': member.full_name,
                'previous_tier': previous_tier,
                'new_tier': tier,
                'points': current,
            },
        )

    logger.info(
        "Point event added",
        extra={"team_member_id": str(member.id), "event_type": event_type, "points": points},
    )
    return {
        'entry': event,
        'current_points': current,
        'tier': tier,
        'coaching_stage': calculate_coaching_stage(current, config),
        'coaching_record': coaching_record,
    }


def add_point_reduction(organization, user, member, reduction_type: str, notes: str = None,
                        event_date: Optional[datetime.date] = None) -> Dict[str, Any]:
    config = get_performance_config(organization)
    if reduction_type not in config['reduction_values']:
        raise InvalidPointType(f"Unknown point reduction type: {reduction_type}")

    max_reduction = int(config['max_reduction_per_30_days'])
    today = organization_today(organization)
    used = reductions_in_last_30_days(member, today)
    if used >= max_reduction:
        raise ReductionLimitReached(f"Maximum {max_reduction} point reduction per 30 days reached")

    points = int(config['reduction_values'][reduction_type])
    adjusted = points
    if used + abs(points) > max_reduction:
        adjusted = -(max_reduction - used)
    if adjusted == 0:
        raise ReductionLimitReached(f"Maximum {max_reduction} point reduction per 30 days reached")

    cycle = get_current_cycle(organization)
    event_date = event_date or today
    reduction = PointReduction.objects.create(
        organization=organization,
        team_member=member,
        cycle=cycle,
        reduction_type=reduction_type,
        points=adjusted,
        event_date=event_date,
        notes=notes,
        created_by=user,
    )
    capped = adjusted != points
    nexus(
        organization=organization,
        user=user,
        activity_type='performance_reduction_added',
        details={
            'team_member_id': member.id,
            'name': member.full_name,
            'reduction_type': reduction_type,
            'points': adjusted,
            'event_date': event_date,
            'capped': capped,
        },
    )
    if capped:
        logger.info(
            "Point reduction capped at 30-day limit",
            extra={"team_member_id": str(member.id), "requested": points, "applied": adjusted},
        )
    current = member_points(member, cycle)
    return {
        'entry': reduction,
        'capped': capped,
        'current_points': current,
        'tier': calculate_tier(current, config),
    }


def _entry_type_field(entry):
    return 'reduction_type' if isinstance(entry, PointReduction) else 'event_type'


def _entry_details(entry) -> Dict[str, Any]:
    return {
        'team_member_id': entry.team_member_id,
        'name': entry.team_member.full_name,
        'entry_id': entry.id,
        'event_type': entry.kind,
        'points': entry.points,
        'event_date': entry.event_date,
    }


def modify_entry(organization, user, entry, new_type: str, new_points: Optional[int] = None):
    """Reclassify a point event or reduction in place."""
    config = get_performance_config(organization)
    is_reduction = isinstance(entry, PointReduction)
    values = config['reduction_values'] if is_reduction else config['point_values']
    if new_type not in values:
        raise InvalidPointType(f"Unknown type: {new_type}")
    if new_points is None:
        new_points = int(values[new_type])
    if (is_reduction and new_points >= 0) or (not is_reduction and new_points <= 0):
        raise InvalidPointType('Point events must add points and reductions must remove them.')

    type_field = _entry_type_field(entry)
    original_type = getattr(entry, type_field)
    original_points = entry.points

    setattr(entry, type_field, new_type)
    entry.points = new_points
    entry.notes = f"{entry.notes or ''} [Modified from {original_type}]".strip()
    entry.save(update_fields=[type_field, 'points', 'notes'])

    nexus(
        organization=organization,
        user=user,
        activity_type='performance_event_modified',
        details={
            'team_member_id': entry.team_member_id,
            'name': entry.team_member.full_name,
            'entry_id': entry.id,
            'original_type': original_type,
            'new_type': new_type,
            'original_points': original_points,
            'new_points': new_points,
            'event_date': entry.event_date,
        },
    )
    return entry


def excuse_entry(organization, user, entry, reason: str):
    details = _entry_details(entry)
    details.update({'excuse_reason': reason, 'original_notes': entry.notes})
    entry.delete()
    nexus(organization=organization, user=user, activity_type='performance_event_excused', details=details)


def remove_entry(organization, user, entry):
    details = _entry_details(entry)
    details['original_notes'] = entry.notes
    entry.delete()
    nexus(organization=organization, user=user, activity_type='performance_event_removed', details=details)


def log_sick_day(organization, user, member, sick_date: datetime.date, notes: str = None, force: bool = False):
    config = get_performance_config(organization)
    today = organization_today(organization)
    usage = time_off_usage(member, config, sick_day_logs(organization), today)
    if usage['sick_days_used'] >= usage['sick_days_available'] and not force:
        raise SickDayAllowanceExhausted(
            f"{member.full_name} has used {usage['sick_days_used']} of "
            f"{usage['sick_days_available']} protected sick days."
        )

    return nexus(
        organization=organization,
        user=user,
        activity_type='performance_event_excused',
        details={
            'team_member_id': member.id,
            'name': member.full_name,
            'event_type': 'sick_day_manual',
            'reason': SICK_REASON,
            'event_date': sick_date,
            'notes': notes or None,
            'source': 'manual_entry',
        },
    )


# =============================================================================
# Coaching
# =============================================================================

def update_coaching_record(organization, user, record: CoachingRecord, updates: Dict[str, Any]) -> CoachingRecord:
    was_completed = record.status == 'completed'
    for field in COACHING_FIELDS:
        if field in updates:
            setattr(record, field, updates[field])

    if record.status == 'completed' and not was_completed:
        record.completed_at = timezone.now()
        record.completed_by = user
    record.save()

    if record.status == 'completed' and not was_completed:
        nexus(
            organization=organization,
            user=user,
            activity_type='performance_coaching_completed',
            details={
                'team_member_id': record.team_member_id,
                'name': record.team_member.full_name,
                'stage': record.stage,
                'coaching_record_id': record.id,
            },
        )
    return record


def generate_coaching_letter(organization, record: CoachingRecord) -> bytes:
    """Render the coaching letter PDF and mark the record as having one."""
    content = coaching_letter_pdf(record, organization_name=organization.name)
    if not record.letter_generated:
        record.letter_generated = True
        record.save(update_fields=['letter_generated', 'updated_at'])
    logger.info("Coaching letter generated", extra={"coaching_record_id": str(record.id), "stage": record.stage})
    return content


# =============================================================================
# Performance improvement plans
# =============================================================================

def _normalize_items(items):
    normalized = []
    for item in items or []:
        item = {key: value.isoformat() if hasattr(value, 'isoformat') else value for key, value in dict(item).items()}
        item['id'] = str(item.get('id') or uuid.uuid4())
        normalized.append(item)
    return normalized


def create_pip(organization, user, member, data: Dict[str, Any]) -> PerformanceImprovementPlan:
    pip = PerformanceImprovementPlan.objects.create(
        organization=organization,
        team_member=member,
        status=data.get('status', 'active'),
        start_date=data['start_date'],
        end_date=data['end_date'],
        goals=_normalize_items(data.get('goals')),
        milestones=_normalize_items(data.get('milestones')),
        notes=data.get('notes'),
        created_by=user,
    )
    nexus(
        organization=organization,
        user=user,
        activity_type='performance_pip_created',
        details={
            'team_member_id': member.id,
            'name': member.full_name,
            'pip_id': pip.id,
            'start_date': pip.start_date,
            'end_date': pip.end_date,
            'goal_count': len(pip.goals),
        },
    )
    return pip


def update_pip(organization, user, pip: PerformanceImprovementPlan, updates: Dict[str, Any]):
    was_terminal = pip.status in pip.TERMINAL_STATUSES
    for field in PIP_FIELDS:
        if field in updates:
            value = updates[field]
            if field in ('goals', 'milestones'):
                value = _normalize_items(value)
            setattr(pip, field, value)

    completed_now = pip.status in pip.TERMINAL_STATUSES and not was_terminal
    if completed_now:
        pip.completed_at = timezone.now()
    pip.save()

    details = {
        'team_member_id': pip.team_member_id,
        'name': pip.team_member.full_name,
        'pip_id': pip.id,
        'status': pip.status,
        'changed_fields': sorted(f for f in PIP_FIELDS if f in updates),
    }
    nexus(organization=organization, user=user, activity_type='performance_pip_updated', details=details)
    if completed_now:
        nexus(
            organization=organization,
            user=user,
            activity_type='performance_pip_completed',
            details={**details, 'outcome': pip.outcome or pip.status},
        )
    return pip


def _toggle(items, item_id, flag):
    for item in items:
        if str(item.get('id')) == str(item_id):
            item[flag] = not item.get(flag, False)
            return True
    return False


def toggle_pip_goal(organization, user, pip, goal_id):
    goals = [dict(g) for g in pip.goals]
    if not _toggle(goals, goal_id, 'is_met'):
        return None
    return update_pip(organization, user, pip, {'goals': goals})


def toggle_pip_milestone(organization, user, pip, milestone_id):
    milestones = [dict(m) for m in pip.milestones]
    if not _toggle(milestones, milestone_id, 'completed'):
        return None
    return update_pip(organization, user, pip, {'milestones': milestones})
