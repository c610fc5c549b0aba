"""
Activity type registry for NEXUS.

Each entry names the category, an optional message template and an optional
severity. Templates and severities may be callables that receive the details
dict. Types missing from the registry log under ``system`` with a humanized
message.
"""


def _name(details, fallback='Team member'):
    return details.get('name') or fallback


ACTIVITY_TYPES = {
    # Team
    'team_member_added': {
        'category': 'team',
        'message': lambda d: f"{_name(d)} added to the roster",
    },
    'team_member_updated': {
        'category': 'team',
        'message': lambda d: f"{_name(d)} updated",
    },
    'team_member_deactivated': {
        'category': 'team',
        'message': lambda d: f"{_name(d)} deactivated",
        'severity': 'warning',
    },

    # Performance
    'performance_point_added': {
        'category': 'team',
        'message': lambda d: f"{_name(d)}: +{d.get('points')} points ({d.get('event_type') or 'event'})",
        'severity': 'warning',
    },
    'performance_reduction_added': {
        'category': 'team',
        'message': lambda d: f"{_name(d)}: {d.get('points')} point reduction",
    },
    'performance_coaching_triggered': {
        'category': 'team',
        'message': lambda d: f"{_name(d)} reached Stage {d.get('stage')} coaching",
        'severity': 'warning',
    },
    'performance_coaching_completed': {
        'category': 'team',
        'message': lambda d: f"Coaching completed for {_name(d, 'team member')}",
    },
    'performance_pip_created': {
        'category': 'team',
        'message': lambda d: f"PIP created for {_name(d, 'team member')}",
        'severity': 'warning',
    },
    'performance_pip_updated': {
        'category': 'team',
        'message': lambda d: f"PIP updated for {_name(d, 'team member')}",
    },
    'performance_pip_completed': {
        'category': 'team',
        'message': lambda d: f"PIP {d.get('outcome') or 'completed'} for {_name(d, 'team member')}",
    },
    'performance_tier_changed': {
        'category': 'team',
        'message': lambda d: f"{_name(d)} moved to Tier {d.get('new_tier')}",
        'severity': lambda d: 'warning' if d.get('new_tier') == 3 else 'info',
    },
    'performance_event_approved': {
        'category': 'team',
        'message': lambda d: f"{_name(d)}: {d.get('event_type') or 'event'} approved",
    },
    'performance_event_rejected': {'category': 'team'},
    'performance_event_excused': {
        'category': 'team',
        'message': lambda d: f"{_name(d)}: excused ({d.get('reason') or d.get('excuse_reason') or 'no reason'})",
    },
    'performance_event_modified': {'category': 'team'},
    'performance_event_removed': {'category': 'team'},
    'performance_events_imported': {
        'category': 'team',
        'message': lambda d: f"{d.get('staged_count', 0)} attendance events staged for review",
    },
    'performance_config_updated': {
        'category': 'organization',
        'message': lambda d: "Team performance settings updated",
    },

    # Alerts and financial
    'temperature_out_of_range': {
        'category': 'alerts',
        'message': lambda d: (
            f"{d.get('equipment') or 'Equipment'} at {d.get('temperature')}°F "
            f"(safe {d.get('min_temp')}-{d.get('max_temp')}°F)"
        ),
        'severity': 'critical',
    },
    'price_change_detected': {
        'category': 'financial',
        'message': lambda d: f"Price change detected: {d.get('item') or 'item'}",
        'severity': 'warning',
    },
}

# Audience defaults for the broadcast settings screen, by security level
BROADCAST_DEFAULTS = {
    'performance_point_added': {'channels': ['in_app'], 'min_security_level': 3},
    'performance_coaching_triggered': {'channels': ['in_app', 'email'], 'min_security_level': 2},
    'performance_pip_created': {'channels': ['in_app', 'email'], 'min_security_level': 2},
    'performance_tier_changed': {'channels': ['in_app'], 'min_security_level': 3},
    'performance_events_imported': {'channels': ['in_app'], 'min_security_level': 3},
    'temperature_out_of_range': {'channels': ['in_app', 'sms'], 'min_security_level': 4},
    'price_change_detected': {'channels': ['in_app', 'email'], 'min_security_level': 2},
}

CHANNELS = ('in_app', 'email', 'sms')


def category_for(activity_type):
    return ACTIVITY_TYPES.get(activity_type, {}).get('category', 'system')


def _resolve(value, details):
    return value(details) if callable(value) else value


def severity_for(activity_type, details):
    return _resolve(ACTIVITY_TYPES.get(activity_type, {}).get('severity'), details)


def message_for(activity_type, details):
    return _resolve(ACTIVITY_TYPES.get(activity_type, {}).get('message'), details)
