"""
Gap scanner: scheduled shifts with no worked shift for the same member and day.

A gap is resolved by the latest NEXUS decision logged for the member on that
date, so the scanner never stores a status of its own.
"""
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Any, Dict, Optional

from core.exceptions import InvalidPointType
from nexus.models import ActivityLog
from nexus.services import nexus
from .config import SICK_REASON, get_performance_config
from .cycles import ensure_cycle_for_date
from .models import ImportedShift, PointEvent
from .services import EXCUSE_REASON_CODES

logger = logging.getLogger(__name__)

DECISION_TYPES = (
    'performance_event_approved',
    'performance_event_rejected',
    'performance_event_excused',
)
RESOLUTIONS = ('unresolved', 'sick_day', 'excused', 'demerit', 'dismissed')


def _resolution_for(log) -> str:
    if log.activity_type == 'performance_event_excused':
        reason = str((log.details or {}).get('reason') or '')
        return 'sick_day' if 'SICK' in reason.upper() else 'excused'
    if log.activity_type == 'performance_event_approved':
        return 'demerit'
    return 'dismissed'


def _decision_index(organization, start_date, end_date):
    """{(team_member_id, 'YYYY-MM-DD'): latest decision log}"""
    logs = ActivityLog.objects.filter(organization=organization, activity_type__in=DECISION_TYPES)
    index = {}
    for log in logs.order_by('created_at'):
        details = log.details or {}
        member_id = details.get('team_member_id')
        event_date = details.get('event_date')
        if not member_id or not event_date:
            continue
        event_date = str(event_date)[:10]
        if start_date and event_date < start_date.isoformat():
            continue
        if end_date and event_date > end_date.isoformat():
            continue
        index[(str(member_id), event_date)] = log
    return index


def find_gaps(organization, start_date=None, end_date=None, team_member=None):
    shifts = ImportedShift.objects.filter(organization=organization).select_related('team_member')
    if start_date:
        shifts = shifts.filter(shift_date__gte=start_date)
    if end_date:
        shifts = shifts.filter(shift_date__lte=end_date)
    if team_member:
        shifts = shifts.filter(team_member=team_member)

    worked = defaultdict(set)
    scheduled = []
    for shift in shifts:
        if shift.kind == 'worked':
            worked[shift.external_employee_id].add(shift.shift_date)
        else:
            scheduled.append(shift)

    seen = set()
    gaps = []
    for shift in scheduled:
        key = (shift.external_employee_id, shift.shift_date, shift.time_in)
        # Re-imports of the same week record the same scheduled shift twice
        if key in seen or shift.shift_date in worked[shift.external_employee_id]:
            continue
        seen.add(key)
        gaps.append(shift)
    return gaps


def scan_gaps(organization, start_date=None, end_date=None, team_member=None) -> Dict[str, Any]:
    gaps = find_gaps(organization, start_date, end_date, team_member)
    decisions = _decision_index(organization, start_date, end_date)

    rows = []
    stats = {
        'total': 0,
        'unresolved': 0,
        'excused': 0,
        'demerits': 0,
        'dismissed': 0,
        'unresolved_hours': Decimal('0'),
        'unresolved_pay': Decimal('0'),
    }
    for shift in gaps:
        log = None
        if shift.team_member_id:
            log = decisions.get((str(shift.team_member_id), shift.shift_date.isoformat()))
        resolution = _resolution_for(log) if log else 'unresolved'

        stats['total'] += 1
        if resolution == 'unresolved':
            stats['unresolved'] += 1
            stats['unresolved_hours'] += shift.hours
            stats['unresolved_pay'] += shift.scheduled_pay or Decimal('0')
        elif resolution in ('excused', 'sick_day'):
            stats['excused'] += 1
        elif resolution == 'demerit':
            stats['demerits'] += 1
        else:
            stats['dismissed'] += 1

        rows.append({
            'scheduled_shift_id': shift.id,
            'team_member_id': shift.team_member_id,
            'employee_id': shift.external_employee_id,
            'name': shift.team_member.full_name if shift.team_member else f"{shift.first_name} {shift.last_name}".strip(),
            'shift_date': shift.shift_date,
            'time_in': shift.time_in,
            'time_out': shift.time_out,
            'role': shift.role,
            'scheduled_hours': shift.hours,
            'scheduled_pay': shift.scheduled_pay,
            'resolution': resolution,
            'resolution_details': (log.details if log else None),
            'resolved_at': log.created_at if log else None,
        })

    rows.sort(key=lambda r: (r['shift_date'], r['name']), reverse=True)
    return {'gaps': rows, 'stats': stats}


def resolve_gap(organization, user, shift: ImportedShift, decision: str, reason: Optional[str] = None,
                event_type: Optional[str] = None, notes: Optional[str] = None):
    """Excuse a gap, or convert it into a demerit point event."""
    if shift.team_member is None:
        raise InvalidPointType('This shift is not linked to a team member.')
    member = shift.team_member
    details = {
        'team_member_id': member.id,
        'name': member.full_name,
        'event_date': shift.shift_date,
        'notes': notes,
        'source': 'gap_scanner',
        'shift_role': shift.role,
        'scheduled_hours': shift.hours,
    }

    if decision == 'excuse':
        if reason not in EXCUSE_REASON_CODES:
            raise InvalidPointType(f"Unknown excuse reason: {reason}")
        details.update({
            'event_type': 'sick_day_manual' if reason == SICK_REASON else 'excused_absence',
            'reason': reason,
        })
        return nexus(organization=organization, user=user, activity_type='performance_event_excused', details=details)

    if decision != 'demerit':
        raise InvalidPointType(f"Unknown gap decision: {decision}")
    config = get_performance_config(organization)
    event_type = event_type or 'no_call_no_show'
    if event_type not in config['point_values']:
        raise InvalidPointType(f"Unknown point event type: {event_type}")
    points = int(config['point_values'][event_type])
    PointEvent.objects.create(
        organization=organization,
        team_member=member,
        cycle=ensure_cycle_for_date(organization, shift.shift_date),
        event_type=event_type,
        points=points,
        event_date=shift.shift_date,
        notes=notes or f"Gap Scanner: {member.full_name} - {shift.shift_date} ({shift.role or 'shift'})",
        created_by=user,
        related_shift_id=shift.id,
    )
    details.update({'event_type': event_type, 'points': points})
    logger.info(
        "Gap converted to demerit",
        extra={"team_member_id": str(member.id), "shift_date": str(shift.shift_date), "points": points},
    )
    return nexus(organization=organization, user=user, activity_type='performance_event_approved', details=details)
