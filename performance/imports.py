"""
Stage detected attendance events from a shift import for manager review.
"""
import logging
import uuid
from decimal import Decimal
from typing import Any, Dict

from django.db import transaction
from django.db.models import Q

from core.timezone_utils import make_organization_aware
from nexus.services import nexus
from team.models import TeamMember
from .config import get_performance_config
from .models import ImportedShift, StagedEvent

logger = logging.getLogger(__name__)

UNSCHEDULED_EVENT = 'unscheduled_worked'


def match_team_members(organization, employee_ids):
    """Map export employee ids to team members (external_employee_id first, then punch_id)."""
    employee_ids = set(employee_ids)
    members = TeamMember.objects.filter(organization=organization).filter(
        Q(external_employee_id__in=employee_ids) | Q(punch_id__in=employee_ids)
    )
    by_punch, by_external = {}, {}
    for member in members:
        if member.punch_id in employee_ids:
            by_punch[member.punch_id] = member
        if member.external_employee_id in employee_ids:
            by_external[member.external_employee_id] = member
    return {**by_punch, **by_external}


def _shift_hours(shift):
    hours = shift['regular_hours'] + shift['ot_hours']
    if hours:
        return hours
    return (Decimal(shift['minutes']) / Decimal(60)).quantize(Decimal('0.01'))


def _skip_reason(member, event_type, rules):
    if member.security_level in rules.get('exempt_security_levels', []):
        return 'exempt'
    if event_type == UNSCHEDULED_EVENT:
        if not rules.get('track_unscheduled_shifts', True):
            return 'unscheduled'
        if member.security_level in rules.get('unscheduled_exempt_levels', []):
            return 'unscheduled'
    return None


def stage_import(organization, user, result: Dict[str, Any]) -> Dict[str, Any]:
    """Create StagedEvents and ImportedShifts for one import. Returns a summary."""
    config = get_performance_config(organization)
    rules = config['tracking_rules']
    batch_id = uuid.uuid4()

    employee_ids = [d['employee_id'] for d in result['deltas']]
    members = match_team_members(organization, employee_ids)

    unmatched = {}
    skipped = {'exempt': 0, 'unscheduled': 0}
    staged = []
    shifts = []

    for kind in ('scheduled', 'worked'):
        for shift in result.get(kind, []):
            shifts.append(ImportedShift(
                organization=organization,
                team_member=members.get(shift['employee_id']),
                kind=kind,
                external_employee_id=shift['employee_id'],
                first_name=shift['first_name'],
                last_name=shift['last_name'],
                shift_date=shift['date'],
                time_in=make_organization_aware(shift['time_in'], organization),
                time_out=make_organization_aware(shift['time_out'], organization),
                role=shift['role'] or None,
                location=shift['location'] or None,
                hours=_shift_hours(shift),
                wage_rate=shift.get('wage') or None,
                import_batch_id=batch_id,
            ))

    for delta in result['deltas']:
        member = members.get(delta['employee_id'])
        if member is None:
            unmatched.setdefault(delta['employee_id'], delta['employee_name'])
            continue
        for event in delta['events']:
            reason = _skip_reason(member, event['type'], rules)
            if reason:
                skipped[reason] += 1
                continue
            staged.append(StagedEvent(
                organization=organization,
                team_member=member,
                event_type=event['type'],
                suggested_points=event['suggested_points'],
                description=event['description'],
                event_date=delta['date'],
                role=delta['role'] or None,
                scheduled_in=make_organization_aware(delta['scheduled_in'], organization),
                scheduled_out=make_organization_aware(delta['scheduled_out'], organization),
                worked_in=make_organization_aware(delta['worked_in'], organization),
                worked_out=make_organization_aware(delta['worked_out'], organization),
                start_variance=delta['start_variance'],
                end_variance=delta['end_variance'],
                source='import',
                import_batch_id=batch_id,
                external_employee_id=delta['employee_id'],
                created_by=user,
            ))

    with transaction.atomic():
        ImportedShift.objects.bulk_create(shifts)
        StagedEvent.objects.bulk_create(staged)

    summary = {
        'import_batch_id': batch_id,
        'staged_count': len(staged),
        'shifts_recorded': len(shifts),
        'skipped_exempt': skipped['exempt'],
        'skipped_unscheduled': skipped['unscheduled'],
        'unmatched_employees': [
            {'employee_id': employee_id, 'name': name} for employee_id, name in unmatched.items()
        ],
        'date_range': result['date_range'],
    }
    nexus(
        organization=organization,
        user=user,
        activity_type='performance_events_imported',
        details={
            'import_batch_id': batch_id,
            'staged_count': len(staged),
            'scheduled_count': result['scheduled_count'],
            'worked_count': result['worked_count'],
            'unmatched_count': len(unmatched),
            'date_range': result['date_range'],
        },
    )
    if unmatched:
        logger.warning(
            "Shift import has unmatched employees",
            extra={"organization_id": str(organization.id), "unmatched": list(unmatched)},
        )
    return summary
