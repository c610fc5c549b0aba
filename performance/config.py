"""
Team performance configuration.

Organizations store overrides in ``Organization.modules['team_performance']['config']``.
Overrides are deep-merged over DEFAULT_PERFORMANCE_CONFIG, so a partial
override (say one point value) keeps every other default.
"""
import copy

MODULE_ID = 'team_performance'

DEFAULT_PERFORMANCE_CONFIG = {
    'point_values': {
        'no_call_no_show': 6,
        'dropped_shift_no_coverage': 4,
        'unexcused_absence': 2,
        'tardiness_major': 2,
        'tardiness_minor': 1,
        'early_departure': 2,
        'late_notification': 1,
        'food_safety_violation': 3,
        'insubordination': 3,
    },
    'reduction_values': {
        'cover_shift_urgent': -2,
        'cover_shift_standard': -1,
        'stay_late': -1,
        'arrive_early': -1,
        'training_mentoring': -1,
        'special_event': -1,
    },
    'detection_thresholds': {
        'tardiness_minor_min': 5,
        'tardiness_major_min': 15,
        'early_departure_min': 30,
        'arrived_early_min': 30,
        'stayed_late_min': 60,
    },
    'tracking_rules': {
        'exempt_security_levels': [0, 1],
        'track_unscheduled_shifts': True,
        'unscheduled_exempt_levels': [0, 1, 2],
    },
    'tier_thresholds': {
        'tier1_max': 2,
        'tier2_max': 5,
    },
    'coaching_thresholds': {
        'stage1': 6,
        'stage2': 8,
        'stage3': 10,
        'stage4': 12,
        'stage5': 15,
    },
    'cycle_length_months': 4,
    'cycle_type': 'quadmester',
    'max_reduction_per_30_days': 3,
    'time_off': {
        'enabled': True,
        'protected_sick_days': 3,
        'sick_reset_period': 'calendar_year',
    },
}

EVENT_TYPE_LABELS = {
    'no_call_no_show': 'No-call/No-show',
    'dropped_shift_no_coverage': 'Dropped Shift (No Coverage)',
    'unexcused_absence': 'Unexcused Absence',
    'tardiness_major': 'Tardiness (>15 min)',
    'tardiness_minor': 'Tardiness (5-15 min)',
    'early_departure': 'Early Departure',
    'late_notification': 'Late Notification',
    'food_safety_violation': 'Food Safety Violation',
    'insubordination': 'Insubordination',
}

REDUCTION_TYPE_LABELS = {
    'cover_shift_urgent': 'Covered Shift (<24hr)',
    'cover_shift_standard': 'Covered Shift (24-48hr)',
    'stay_late': 'Stayed 2+ Hours Late',
    'arrive_early': 'Arrived 2+ Hours Early',
    'training_mentoring': 'Training/Mentoring',
    'special_event': 'Special Event/Catering',
}

ALL_EVENT_LABELS = {**EVENT_TYPE_LABELS, **REDUCTION_TYPE_LABELS, 'sick_day': 'Sick Day'}

TIER_LABELS = {1: 'Excellence', 2: 'Strong', 3: 'Focus'}

COACHING_STAGE_LABELS = {
    1: 'Informal Coaching',
    2: 'Formal Coaching',
    3: 'Final Professional Dev',
    4: 'Employment Review',
    5: 'Automatic Termination',
}

EXCUSE_REASONS = [
    ('SICK OK', 'Sick (ESA Protected)'),
    ('LATE OK', 'Approved Late Arrival'),
    ('EARLY DEPART OK', 'Approved Early Departure'),
    ('ABSENT OK', 'Approved Absence'),
    ('BEREAVEMENT', 'Bereavement Leave'),
    ('JURY DUTY', 'Jury Duty'),
    ('EMERGENCY', 'Family Emergency'),
    ('CHALLENGE ACCEPTED', 'Challenge Accepted (Ombudsman)'),
    ('DATA ERROR', 'Data Entry Error'),
    ('OTHER', 'Other'),
]

SICK_REASON = 'SICK OK'

ABSENCE_EVENT_TYPES = ('no_call_no_show', 'dropped_shift_no_coverage', 'unexcused_absence')

# Detected reductions use different keys than the reduction table
STAGED_REDUCTION_TYPE_MAP = {
    'stayed_late': 'stay_late',
    'arrived_early': 'arrive_early',
}

ROSTER_PAGE_SIZE = 12
LEDGER_PAGE_SIZE = 25


def deep_merge(base, override):
    """Merge ``override`` into a copy of ``base``; nested dicts merge key by key."""
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def get_performance_config(organization):
    overrides = organization.module_settings(MODULE_ID).get('config') or {}
    return deep_merge(DEFAULT_PERFORMANCE_CONFIG, overrides)


def entry_label(entry_type):
    return ALL_EVENT_LABELS.get(entry_type) or entry_type.replace('_', ' ').title()
