"""
Scheduled vs worked shift comparison for 7shifts "Hours & Wages" exports.

Both files are parsed into shifts and aligned per employee and day: shifts are
sorted by in-time and numbered, so the second scheduled shift of a day is
compared with the second worked shift. The key is ``<employee>-<yyyymmdd>-<seq>``.
"""
import csv
import datetime
import io
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List

from .config import DEFAULT_PERFORMANCE_CONFIG

REQUIRED_COLUMNS = ('employee id', 'date', 'first', 'last', 'in time', 'out time')
TIME_RE = re.compile(r'(\d{1,2}):(\d{2})\s*(AM|PM)', re.IGNORECASE)


def _clean(value):
    return (value or '').replace('"', '').replace("'", '').strip()


def _decimal(value):
    try:
        return Decimal(_clean(value) or '0')
    except InvalidOperation:
        return Decimal('0')


def parse_time(value: str, day: datetime.date) -> datetime.datetime:
    """``"10:00AM "`` or ``" 3:00 PM"`` on ``day``; raises ValueError otherwise."""
    match = TIME_RE.search((value or '').strip().upper())
    if not match:
        raise ValueError(f"Invalid time format: {value}")
    hours, minutes, period = int(match.group(1)), int(match.group(2)), match.group(3).upper()
    if period == 'PM' and hours != 12:
        hours += 12
    elif period == 'AM' and hours == 12:
        hours = 0
    return datetime.datetime.combine(day, datetime.time(hours, minutes))


def parse_shifts_csv(content: str) -> List[Dict[str, Any]]:
    """Rows of a shifts export. Raises ValueError for an empty file or a missing column."""
    lines = (content or '').strip().splitlines()
    if len(lines) < 2:
        raise ValueError('CSV file is empty or has no data rows')

    reader = csv.reader(io.StringIO('\n'.join(lines)))
    header = next(reader)
    columns = {_clean(name).lower(): index for index, name in enumerate(header)}
    for column in REQUIRED_COLUMNS:
        if column not in columns:
            raise ValueError(f"Missing required column: {column}")

    def cell(cols, name):
        index = columns.get(name)
        if index is None or index >= len(cols):
            return ''
        return _clean(cols[index])

    rows = []
    for cols in reader:
        if not any(c.strip() for c in cols):
            continue
        employee_id = cell(cols, 'employee id')
        date = cell(cols, 'date')
        in_time = cell(cols, 'in time')
        out_time = cell(cols, 'out time')
        if not (employee_id and date and in_time and out_time):
            continue
        rows.append({
            'employee_id': employee_id,
            'date': datetime.date.fromisoformat(date),
            'first_name': cell(cols, 'first'),
            'last_name': cell(cols, 'last'),
            'location': cell(cols, 'location'),
            'in_time': in_time,
            'out_time': out_time,
            'role': cell(cols, 'role'),
            'regular_hours': _decimal(cell(cols, 'regular hours')),
            'ot_hours': _decimal(cell(cols, 'ot hours')),
            'wage': _decimal(cell(cols, 'wage')) if 'wage' in columns else None,
        })
    return rows


def process_shifts(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Attach parsed times, a per-day sequence number and the match key."""
    shifts = []
    for row in rows:
        time_in = parse_time(row['in_time'], row['date'])
        time_out = parse_time(row['out_time'], row['date'])
        shifts.append({**row, 'time_in': time_in, 'time_out': time_out})

    shifts.sort(key=lambda s: (s['date'], s['employee_id'], s['time_in']))

    sequence = {}
    for shift in shifts:
        group = (shift['employee_id'], shift['date'])
        sequence[group] = sequence.get(group, 0) + 1
        shift['sequence'] = sequence[group]
        shift['match_key'] = f"{shift['employee_id']}-{shift['date']:%Y%m%d}-{shift['sequence']}"
        shift['employee_name'] = f"{shift['first_name']} {shift['last_name']}".strip()
        shift['minutes'] = int((shift['time_out'] - shift['time_in']).total_seconds() // 60)
    return shifts


def format_time(value: datetime.datetime) -> str:
    return value.strftime('%I:%M %p').lstrip('0')


def format_variance(minutes) -> str:
    total = abs(round(minutes))
    hours, mins = divmod(total, 60)
    text = f"{hours}h {mins}m" if hours else f"{mins}m"
    if minutes > 0:
        return f"+{text}"
    if minutes < 0:
        return f"-{text}"
    return 'On time'


def _event(event_type, description, points):
    return {'type': event_type, 'description': description, 'suggested_points': points, 'auto_detected': True}


def detect_events(start_variance: int, end_variance: int, config: dict) -> List[Dict[str, Any]]:
    thresholds = config['detection_thresholds']
    point_values = config['point_values']
    reduction_values = config['reduction_values']
    events = []

    if start_variance >= thresholds['tardiness_major_min']:
        events.append(_event(
            'tardiness_major', f"Arrived {start_variance} min late", point_values.get('tardiness_major', 2),
        ))
    elif start_variance >= thresholds['tardiness_minor_min']:
        events.append(_event(
            'tardiness_minor', f"Arrived {start_variance} min late", point_values.get('tardiness_minor', 1),
        ))

    if end_variance <= -thresholds['early_departure_min']:
        events.append(_event(
            'early_departure', f"Left {abs(end_variance)} min early", point_values.get('early_departure', 2),
        ))

    if start_variance <= -thresholds['arrived_early_min']:
        events.append(_event(
            'arrived_early', f"Arrived {abs(start_variance)} min early", reduction_values.get('arrive_early', -1),
        ))

    if end_variance >= thresholds['stayed_late_min']:
        events.append(_event(
            'stayed_late', f"Stayed {end_variance} min late", reduction_values.get('stay_late', -1),
        ))
    return events


def empty_result(errors):
    return {
        'scheduled_count': 0,
        'worked_count': 0,
        'matched_count': 0,
        'no_show_count': 0,
        'unscheduled_count': 0,
        'deltas': [],
        'scheduled': [],
        'worked': [],
        'errors': errors,
        'date_range': {'start': None, 'end': None},
    }


def calculate_deltas(scheduled_csv: str, worked_csv: str, config: dict = None) -> Dict[str, Any]:
    config = config or DEFAULT_PERFORMANCE_CONFIG
    errors = []
    parsed = {}
    for label, content in (('scheduled', scheduled_csv), ('worked', worked_csv)):
        try:
            parsed[label] = process_shifts(parse_shifts_csv(content))
        except ValueError as exc:
            errors.append(f"Error parsing {label} CSV: {exc}")
    if errors:
        return empty_result(errors)

    scheduled, worked = parsed['scheduled'], parsed['worked']
    scheduled_map = {s['match_key']: s for s in scheduled}
    worked_map = {w['match_key']: w for w in worked}

    deltas = []
    counts = {'matched': 0, 'no_show': 0, 'unscheduled': 0}
    for key in dict.fromkeys([*scheduled_map, *worked_map]):
        sched = scheduled_map.get(key)
        work = worked_map.get(key)
        base = sched or work
        delta = {
            'match_key': key,
            'employee_id': base['employee_id'],
            'employee_name': base['employee_name'],
            'date': base['date'],
            'role': (sched or {}).get('role') or (work or {}).get('role') or '',
            'scheduled_in': sched['time_in'] if sched else None,
            'scheduled_out': sched['time_out'] if sched else None,
            'scheduled_minutes': sched['minutes'] if sched else None,
            'worked_in': work['time_in'] if work else None,
            'worked_out': work['time_out'] if work else None,
            'worked_minutes': work['minutes'] if work else None,
            'start_variance': 0,
            'end_variance': 0,
        }

        if sched and work:
            delta['status'] = 'matched'
            delta['start_variance'] = int((work['time_in'] - sched['time_in']).total_seconds() // 60)
            delta['end_variance'] = int((work['time_out'] - sched['time_out']).total_seconds() // 60)
            delta['events'] = detect_events(delta['start_variance'], delta['end_variance'], config)
        elif sched:
            delta['status'] = 'no_show'
            delta['events'] = [_event(
                'no_call_no_show',
                f"Scheduled {format_time(sched['time_in'])} - {format_time(sched['time_out'])}, did not clock in",
                config['point_values'].get('no_call_no_show', 6),
            )]
        else:
            delta['status'] = 'unscheduled'
            delta['events'] = [_event(
                'unscheduled_worked',
                f"Worked {format_time(work['time_in'])} - {format_time(work['time_out'])} without being scheduled",
                0,
            )]
        counts[delta['status']] += 1
        deltas.append(delta)

    deltas.sort(key=lambda d: (d['date'], d['employee_name']))
    dates = sorted(s['date'] for s in scheduled + worked)

    return {
        'scheduled_count': len(scheduled),
        'worked_count': len(worked),
        'matched_count': counts['matched'],
        'no_show_count': counts['no_show'],
        'unscheduled_count': counts['unscheduled'],
        'deltas': deltas,
        'scheduled': scheduled,
        'worked': worked,
        'errors': errors,
        'date_range': {'start': dates[0] if dates else None, 'end': dates[-1] if dates else None},
    }
