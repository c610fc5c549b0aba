"""
Points ledger: merges point events, reductions and sick days per member and
across the team, with running balances, filters, stats and pagination.
"""
import datetime
from collections import Counter, defaultdict
from typing import Any, Dict, Iterable, List, Optional

from core.timezone_utils import organization_today
from core.utils import paginate_list
from nexus.models import ActivityLog
from team.models import TeamMember
from .config import (
    ABSENCE_EVENT_TYPES,
    LEDGER_PAGE_SIZE,
    ROSTER_PAGE_SIZE,
    SICK_REASON,
    entry_label,
    get_performance_config,
)
from .models import CoachingRecord, PerformanceImprovementPlan, PointEvent, PointReduction, StagedEvent
from .scoring import calculate_coaching_stage, calculate_tier, sick_period_start

LEDGER_KINDS = ('all', 'demerit', 'merit')
ROSTER_FILTERS = ('all', 'pending', 'tier1', 'tier2', 'tier3', 'coaching')
ROSTER_SORTS = ('name_asc', 'name_desc', 'points_asc', 'points_desc', 'tier_asc', 'tier_desc', 'pending_desc')


def _entry(row) -> Dict[str, Any]:
    return {
        'id': str(row.id),
        'entry_type': row.entry_type,
        'type': row.kind,
        'label': entry_label(row.kind),
        'points': row.points,
        'event_date': row.event_date,
        'notes': row.notes or '',
        'created_at': row.created_at,
    }


def apply_running_balance(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Sort ascending and stamp each entry with max(0, previous + points)."""
    entries.sort(key=lambda e: (e['event_date'], e['created_at']))
    balance = 0
    for entry in entries:
        balance = max(0, balance + entry['points'])
        entry['running_balance'] = balance
    return entries


def build_member_ledger(events: Iterable[PointEvent], reductions: Iterable[PointReduction]) -> List[Dict[str, Any]]:
    return apply_running_balance([_entry(e) for e in events] + [_entry(r) for r in reductions])


def current_points(entries: Iterable[Dict[str, Any]]) -> int:
    return max(0, sum(e['points'] for e in entries if e['entry_type'] != 'sick_day'))


def sick_day_logs(organization, since: Optional[datetime.date] = None):
    qs = ActivityLog.objects.filter(organization=organization, activity_type='performance_event_excused')
    if since is not None:
        # A sick day can be logged after the fact but never before it happened
        qs = qs.filter(created_at__date__gte=since)
    return list(qs.only('id', 'created_at', 'details'))


def _log_event_date(log) -> Optional[datetime.date]:
    raw = (log.details or {}).get('event_date')
    if raw:
        try:
            return datetime.date.fromisoformat(str(raw)[:10])
        except ValueError:
            return None
    return log.created_at.date()


def sick_day_dates(member: TeamMember, logs, period_start: datetime.date) -> List[datetime.date]:
    """Distinct sick-day dates for ``member`` on or after ``period_start``."""
    full_name = member.full_name
    member_id = str(member.id)
    dates = set()
    for log in logs:
        details = log.details or {}
        if details.get('reason') != SICK_REASON:
            continue
        if details.get('team_member_id') != member_id and details.get('name') != full_name:
            continue
        day = _log_event_date(log)
        if day and day >= period_start:
            dates.add(day)
    return sorted(dates)


def time_off_usage(member: TeamMember, config: dict, logs, today: datetime.date) -> Dict[str, Any]:
    time_off = config.get('time_off') or {}
    period_start = sick_period_start(time_off.get('sick_reset_period', 'calendar_year'), member.hire_date, today)
    dates = sick_day_dates(member, logs, period_start)
    return {
        'enabled': time_off.get('enabled', True),
        'sick_days_used': len(dates),
        'sick_days_available': time_off.get('protected_sick_days', 3),
        'sick_period_start': period_start,
        'sick_day_dates': dates,
        'vacation_hours_used': 0,
        'vacation_hours_available': 0,
    }


def interleave_sick_days(ledger: List[Dict[str, Any]], sick_dates: Iterable[datetime.date]) -> List[Dict[str, Any]]:
    entries = [dict(e) for e in ledger]
    for day in sick_dates:
        entries.append({
            'id': f"sick-{day.isoformat()}",
            'entry_type': 'sick_day',
            'type': 'sick_day',
            'label': entry_label('sick_day'),
            'points': 0,
            'event_date': day,
            'notes': '',
            'created_at': datetime.datetime.combine(day, datetime.time.min, tzinfo=datetime.timezone.utc),
        })
    return apply_running_balance(entries)


def find_duplicates(entries: Iterable[Dict[str, Any]]) -> List[str]:
    """Keys ``type|date`` that occur more than once."""
    counts = Counter(
        f"{e['type']}|{e['event_date'].isoformat()}" for e in entries if e['entry_type'] != 'sick_day'
    )
    return sorted(key for key, count in counts.items() if count > 1)


def attendance_metrics(entries: Iterable[Dict[str, Any]], sick_days_used: int) -> Dict[str, int]:
    absences = sum(1 for e in entries if e['entry_type'] == 'event' and e['type'] in ABSENCE_EVENT_TYPES)
    return {
        'absences': absences,
        'sick_days': sick_days_used,
        'total_missed': absences + sick_days_used,
    }


def pending_counts(organization) -> Dict[str, int]:
    counts = Counter(
        str(member_id)
        for member_id in StagedEvent.objects.filter(organization=organization).values_list('team_member_id', flat=True)
    )
    return dict(counts)


def team_performance(organization, cycle, members=None) -> List[Dict[str, Any]]:
    """Performance snapshot for every active member in ``cycle``."""
    config = get_performance_config(organization)
    today = organization_today(organization)
    if members is None:
        members = list(TeamMember.objects.filter(organization=organization, is_active=True))

    events_by_member = defaultdict(list)
    for event in PointEvent.objects.filter(organization=organization, cycle=cycle):
        events_by_member[event.team_member_id].append(event)
    reductions_by_member = defaultdict(list)
    for reduction in PointReduction.objects.filter(organization=organization, cycle=cycle):
        reductions_by_member[reduction.team_member_id].append(reduction)
    coaching_by_member = defaultdict(list)
    for record in CoachingRecord.objects.filter(organization=organization):
        coaching_by_member[record.team_member_id].append(record)
    active_pips = {
        pip.team_member_id: pip
        for pip in PerformanceImprovementPlan.objects.filter(organization=organization, status='active')
    }
    pending = pending_counts(organization)

    earliest = min(
        (sick_period_start(config['time_off'].get('sick_reset_period', 'calendar_year'), m.hire_date, today)
         for m in members),
        default=today,
    )
    logs = sick_day_logs(organization, since=earliest)

    results = []
    for member in members:
        ledger = build_member_ledger(events_by_member[member.id], reductions_by_member[member.id])
        points = current_points(ledger)
        time_off = time_off_usage(member, config, logs, today)
        results.append({
            'team_member': member,
            'team_member_id': str(member.id),
            'name': member.full_name,
            'current_points': points,
            'tier': calculate_tier(points, config),
            'coaching_stage': calculate_coaching_stage(points, config),
            'active_pip': active_pips.get(member.id),
            'ledger': ledger,
            'timeline': interleave_sick_days(ledger, time_off['sick_day_dates']),
            'coaching_records': coaching_by_member[member.id],
            'time_off': time_off,
            'attendance': attendance_metrics(ledger, time_off['sick_days_used']),
            'duplicates': find_duplicates(ledger),
            'pending_count': pending.get(str(member.id), 0),
        })
    return results


def member_performance(organization, cycle, member) -> Dict[str, Any]:
    return team_performance(organization, cycle, members=[member])[0]


def ledger_rows(
    performances: List[Dict[str, Any]],
    date_from: Optional[datetime.date] = None,
    date_to: Optional[datetime.date] = None,
    kind: str = 'all',
    member_id: Optional[str] = None,
    search: str = '',
) -> List[Dict[str, Any]]:
    """Every member's entries and sick days, filtered, newest first."""
    rows = []
    for perf in performances:
        if member_id and perf['team_member_id'] != str(member_id):
            continue
        for entry in perf['timeline']:
            row = dict(entry)
            row['team_member_id'] = perf['team_member_id']
            row['team_member_name'] = perf['name']
            row['tier'] = perf['tier']
            rows.append(row)

    if date_from:
        rows = [r for r in rows if r['event_date'] >= date_from]
    if date_to:
        rows = [r for r in rows if r['event_date'] <= date_to]
    if kind == 'demerit':
        rows = [r for r in rows if r['points'] > 0]
    elif kind == 'merit':
        rows = [r for r in rows if r['points'] < 0]
    needle = (search or '').strip().lower()
    if needle:
        rows = [
            r for r in rows
            if needle in r['team_member_name'].lower() or needle in r['label'].lower() or needle in r['notes'].lower()
        ]

    rows.sort(key=lambda r: (r['event_date'], r['created_at']), reverse=True)
    return rows


def team_ledger(
    performances: List[Dict[str, Any]],
    date_from: Optional[datetime.date] = None,
    date_to: Optional[datetime.date] = None,
    kind: str = 'all',
    member_id: Optional[str] = None,
    search: str = '',
    page: int = 1,
    page_size: int = LEDGER_PAGE_SIZE,
) -> Dict[str, Any]:
    """The filtered team ledger, paginated and grouped by date."""
    rows = ledger_rows(performances, date_from, date_to, kind, member_id, search)
    stats = {
        'demerits': sum(1 for r in rows if r['points'] > 0),
        'merits': sum(1 for r in rows if r['points'] < 0),
        'net_points': sum(r['points'] for r in rows),
    }
    paged = paginate_list(rows, page=page, page_size=page_size)
    groups = []
    for row in paged['results']:
        if groups and groups[-1]['date'] == row['event_date']:
            groups[-1]['entries'].append(row)
        else:
            groups.append({'date': row['event_date'], 'entries': [row]})
    paged['groups'] = groups
    paged['stats'] = stats
    return paged


def _name(perf):
    return perf['name'].lower()


def _roster_sort_key(sort):
    return {
        'name_asc': (_name, False),
        'name_desc': (_name, True),
        'points_asc': (lambda p: (p['current_points'], _name(p)), False),
        'points_desc': (lambda p: (p['current_points'], _name(p)), True),
        'tier_asc': (lambda p: (p['tier'], p['current_points']), False),
        'tier_desc': (lambda p: (p['tier'], p['current_points']), True),
        'pending_desc': (lambda p: (-p['pending_count'], _name(p)), False),
    }.get(sort, (_name, False))


def roster(
    performances: List[Dict[str, Any]],
    search: str = '',
    roster_filter: str = 'all',
    sort: str = 'name_asc',
    page: int = 1,
    page_size: int = ROSTER_PAGE_SIZE,
) -> Dict[str, Any]:
    stats = {
        'total': len(performances),
        'pending': sum(1 for p in performances if p['pending_count'] > 0),
        'pending_events': sum(p['pending_count'] for p in performances),
        'tier1': sum(1 for p in performances if p['tier'] == 1),
        'tier2': sum(1 for p in performances if p['tier'] == 2),
        'tier3': sum(1 for p in performances if p['tier'] == 3),
        'coaching': sum(1 for p in performances if p['coaching_stage']),
    }

    rows = list(performances)
    needle = (search or '').strip().lower()
    if needle:
        rows = [p for p in rows if needle in p['name'].lower()]
    if roster_filter == 'pending':
        rows = [p for p in rows if p['pending_count'] > 0]
    elif roster_filter in ('tier1', 'tier2', 'tier3'):
        tier = int(roster_filter[-1])
        rows = [p for p in rows if p['tier'] == tier]
    elif roster_filter == 'coaching':
        rows = [p for p in rows if p['coaching_stage']]

    key, reverse = _roster_sort_key(sort)
    rows.sort(key=key, reverse=reverse)

    paged = paginate_list(rows, page=page, page_size=page_size)
    paged['stats'] = stats
    return paged
