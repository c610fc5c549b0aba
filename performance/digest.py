"""
Team overview and the weekly performance digest.

The overview lists who needs attention (active coaching) and who sits one
point below the next tier. The digest covers one Monday-Sunday week: every
viewer gets a personal digest; shift leads and above also get a team summary,
and managers (Bravo and above) may open any member's personal digest.
"""
import datetime
import logging
from collections import Counter
from typing import Any, Dict, List, Optional

from rest_framework.exceptions import PermissionDenied

from core.timezone_utils import organization_today
from team.models import TeamMember
from .config import COACHING_STAGE_LABELS, TIER_LABELS, get_performance_config
from .ledger import member_performance, team_performance

logger = logging.getLogger(__name__)

# Highest security level allowed to see each part of the digest
TEAM_SUMMARY_MAX_LEVEL = 4
FULL_TEAM_MAX_LEVEL = 2


def _member_row(perf) -> Dict[str, Any]:
    return {
        'team_member_id': perf['team_member_id'],
        'name': perf['name'],
        'current_points': perf['current_points'],
        'tier': perf['tier'],
    }


def tier_distribution(performances) -> Dict[str, int]:
    counts = Counter(p['tier'] for p in performances)
    return {'tier1': counts[1], 'tier2': counts[2], 'tier3': counts[3]}


def attention_needed(performances) -> List[Dict[str, Any]]:
    """Members in active coaching, most points first."""
    rows = []
    for perf in performances:
        stage = perf['coaching_stage']
        if not stage:
            continue
        row = _member_row(perf)
        row['coaching_stage'] = stage
        row['coaching_stage_label'] = COACHING_STAGE_LABELS.get(stage, '')
        rows.append(row)
    rows.sort(key=lambda r: r['current_points'], reverse=True)
    return rows


def approaching_tier_change(performances, config) -> List[Dict[str, Any]]:
    """Members sitting exactly on their tier's upper bound, one point from the next tier."""
    thresholds = config['tier_thresholds']
    bounds = {1: thresholds['tier1_max'], 2: thresholds['tier2_max']}
    rows = []
    for perf in performances:
        upper = bounds.get(perf['tier'])
        if upper is None or perf['current_points'] != upper:
            continue
        row = _member_row(perf)
        row['next_tier'] = perf['tier'] + 1
        row['points_to_next_tier'] = upper + 1 - perf['current_points']
        rows.append(row)
    rows.sort(key=lambda r: r['name'].lower())
    return rows


def team_overview(performances, config) -> Dict[str, Any]:
    attention = attention_needed(performances)
    approaching = approaching_tier_change(performances, config)
    return {
        'total_members': len(performances),
        'tier_distribution': tier_distribution(performances),
        'attention_needed': attention,
        'approaching_tier_change': approaching,
        'all_clear': bool(performances) and not attention and not approaching,
    }


def digest_week(today: datetime.date, week_of: Optional[datetime.date] = None):
    """(monday, sunday) of the week containing ``week_of``, else of the last full week before ``today``."""
    if week_of is not None:
        start = week_of - datetime.timedelta(days=week_of.weekday())
    else:
        start = today - datetime.timedelta(days=today.weekday() + 7)
    return start, start + datetime.timedelta(days=6)


def _in_week(entry, week_start, week_end):
    return entry['entry_type'] != 'sick_day' and week_start <= entry['event_date'] <= week_end


def _describe(entry):
    sign = '+' if entry['points'] > 0 else ''
    return f"{sign}{entry['points']} pts: {entry['label']}"


def personal_digest(perf, week_start: datetime.date, week_end: datetime.date, today: datetime.date) -> Dict[str, Any]:
    member = perf['team_member']
    week_entries = [e for e in perf['ledger'] if _in_week(e, week_start, week_end)]
    week_days = []
    for offset in range(7):
        day = week_start + datetime.timedelta(days=offset)
        week_days.append({
            'date': day,
            'day_name': f"{day:%A}",
            'events': [_describe(e) for e in week_entries if e['event_date'] == day],
        })

    time_off = perf['time_off']
    stage = perf['coaching_stage']
    seniority = None
    if member.hire_date:
        seniority = max(0, (today - member.hire_date).days // 365)

    return {
        'team_member_id': perf['team_member_id'],
        'name': perf['name'],
        'first_name': member.first_name or 'Team Member',
        'week_days': week_days,
        'points_this_week': sum(e['points'] for e in week_entries),
        'points_total': perf['current_points'],
        'tier': perf['tier'],
        'tier_label': TIER_LABELS[perf['tier']],
        'coaching_stage': stage,
        'coaching_stage_label': COACHING_STAGE_LABELS.get(stage, '') if stage else '',
        # Reductions earned so far this cycle
        'team_assists': sum(1 for e in perf['ledger'] if e['entry_type'] == 'reduction'),
        'attendance': perf['attendance'],
        'sick_days_used': time_off['sick_days_used'],
        'sick_days_remaining': max(0, time_off['sick_days_available'] - time_off['sick_days_used']),
        'vacation_hours_used': time_off['vacation_hours_used'],
        'vacation_hours_available': time_off['vacation_hours_available'],
        'seniority_years': seniority,
    }


def team_summary(performances, config, week_start: datetime.date, week_end: datetime.date) -> Dict[str, Any]:
    week_entries = [
        (perf, entry) for perf in performances for entry in perf['ledger'] if _in_week(entry, week_start, week_end)
    ]
    assists = Counter(
        perf['team_member_id'] for perf, entry in week_entries if entry['entry_type'] == 'reduction'
    )
    names = {perf['team_member_id']: perf['name'] for perf in performances}
    top_mvp = None
    if assists:
        member_id, contributions = assists.most_common(1)[0]
        top_mvp = {'team_member_id': member_id, 'name': names[member_id], 'contributions': contributions}

    return {
        'total_members': len(performances),
        'points_issued': sum(e['points'] for _, e in week_entries if e['points'] > 0),
        'points_reduced': -sum(e['points'] for _, e in week_entries if e['points'] < 0),
        'tier_distribution': tier_distribution(performances),
        'approaching_threshold': len(approaching_tier_change(performances, config)),
        'active_coaching': len(attention_needed(performances)),
        'top_mvp': top_mvp,
    }


def digest_access(user) -> Dict[str, bool]:
    level = user.security_level
    return {
        'team_summary': level <= TEAM_SUMMARY_MAX_LEVEL,
        'full_team': level <= FULL_TEAM_MAX_LEVEL,
    }


def member_for_user(organization, user) -> Optional[TeamMember]:
    members = TeamMember.objects.filter(organization=organization)
    member = members.filter(user=user).first()
    if member is None and user.email:
        member = members.filter(email__iexact=user.email).first()
    return member


def weekly_digest(organization, user, cycle, member=None, week_of=None) -> Dict[str, Any]:
    """
    Build the digest ``user`` is allowed to see.

    ``member`` selects another team member's personal digest, which only
    Bravo and above may do. Without it the viewer's own team member record
    is used; viewers with no record get ``personal: None``.
    """
    access = digest_access(user)
    own = member_for_user(organization, user)
    if member is not None and member != own and not access['full_team']:
        raise PermissionDenied("Only managers can view another team member's digest.")
    target = member or own

    today = organization_today(organization)
    week_start, week_end = digest_week(today, week_of)
    config = get_performance_config(organization)

    performances = team_performance(organization, cycle) if access['team_summary'] else []
    personal = None
    if target is not None:
        perf = next((p for p in performances if p['team_member_id'] == str(target.id)), None)
        if perf is None:
            perf = member_performance(organization, cycle, target)
        personal = personal_digest(perf, week_start, week_end, today)

    summary = None
    if access['team_summary'] and performances:
        summary = team_summary(performances, config, week_start, week_end)

    logger.info(
        "Weekly digest built",
        extra={
            "organization_id": str(organization.id),
            "user_id": str(user.id),
            "team_member_id": str(target.id) if target else None,
            "week_start": week_start.isoformat(),
        },
    )
    return {
        'week_of': f"{week_start:%A, %B %d}",
        'week_start': week_start,
        'week_end': week_end,
        'access': access,
        'personal': personal,
        'team': summary,
    }
