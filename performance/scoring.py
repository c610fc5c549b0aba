"""
Pure scoring rules: tiers, coaching stages, cycle and sick-day periods.
"""
import datetime
from typing import Optional, Tuple

QUADMESTER_LABELS = ('Jan-Apr', 'May-Aug', 'Sep-Dec')
TRIMESTER_LABELS = ('Jan-Mar', 'Apr-Jun', 'Jul-Sep', 'Oct-Dec')


def calculate_tier(points: int, config: dict) -> int:
    thresholds = config['tier_thresholds']
    if points <= thresholds['tier1_max']:
        return 1
    if points <= thresholds['tier2_max']:
        return 2
    return 3


def calculate_coaching_stage(points: int, config: dict) -> Optional[int]:
    thresholds = config['coaching_thresholds']
    for stage in (5, 4, 3, 2, 1):
        if points >= thresholds[f'stage{stage}']:
            return stage
    return None


def last_day_of_month(year: int, month: int) -> datetime.date:
    if month == 12:
        return datetime.date(year, 12, 31)
    return datetime.date(year, month + 1, 1) - datetime.timedelta(days=1)


def add_months(day: datetime.date, months: int) -> Tuple[int, int]:
    """(year, month) that is ``months`` after ``day``'s month."""
    index = day.year * 12 + (day.month - 1) + months
    return index // 12, index % 12 + 1


def cycle_boundaries(event_date: datetime.date, cycle_type: str = 'quadmester'):
    """Return (start, end, name) of the cycle containing ``event_date``."""
    year = event_date.year
    if cycle_type == 'trimester':
        quarter = (event_date.month - 1) // 3
        start_month = quarter * 3 + 1
        end_month = start_month + 2
        name = f"T{quarter + 1} {year} ({TRIMESTER_LABELS[quarter]})"
    else:
        third = (event_date.month - 1) // 4
        start_month = third * 4 + 1
        end_month = start_month + 3
        name = f"Q{third + 1} {year} ({QUADMESTER_LABELS[third]})"
    return datetime.date(year, start_month, 1), last_day_of_month(year, end_month), name


def sick_period_start(reset_period: str, hire_date: Optional[datetime.date], today: datetime.date) -> datetime.date:
    """
    First day counted towards the sick-day allowance.

    Fiscal year is treated as the calendar year. Anniversary periods restart on
    the most recent hire anniversary (Feb 29 hires roll to Feb 28).
    """
    if reset_period == 'anniversary' and hire_date:
        anniversary = _safe_date(today.year, hire_date.month, hire_date.day)
        if anniversary > today:
            anniversary = _safe_date(today.year - 1, hire_date.month, hire_date.day)
        return anniversary
    return datetime.date(today.year, 1, 1)


def _safe_date(year, month, day):
    try:
        return datetime.date(year, month, day)
    except ValueError:
        return datetime.date(year, month, 28)


def goal_progress(goal: dict) -> int:
    if goal.get('is_met'):
        return 100
    target = goal.get('target_value')
    current = goal.get('current_value')
    if target and current is not None:
        try:
            return min(100, round(float(current) / float(target) * 100))
        except (TypeError, ValueError, ZeroDivisionError):
            return 0
    return 0


def milestone_status(milestone: dict, today: datetime.date) -> str:
    if milestone.get('completed'):
        return 'completed'
    due = milestone.get('due_date')
    if isinstance(due, str) and due:
        due = datetime.date.fromisoformat(due[:10])
    if not due:
        return 'upcoming'
    if due < today:
        return 'overdue'
    if due == today:
        return 'due_today'
    return 'upcoming'
