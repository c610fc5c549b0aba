"""
NEXUS: the single entry point for recording activity.

Every manager decision in the performance module goes through ``nexus()``.
A failure here is logged and swallowed so it never breaks the calling flow.
"""
import json
import logging
import uuid
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.cache import cache
from django.db import transaction

from core.utils import humanize
from .events import category_for, message_for, severity_for
from .models import ActivityLog, ActivityStreamDiff, BroadcastConfig

logger = logging.getLogger(__name__)

BROADCAST_CACHE_KEY = 'nexus:broadcast:{organization_id}'
# Cached stand-in for "organization has no broadcast config"
_NO_CONFIG = '__none__'


def serialize_for_log(data):
    """Make details JSON-safe (UUIDs, dates, Decimals)."""
    if data is None:
        return None

    def default_serializer(obj):
        if isinstance(obj, uuid.UUID):
            return str(obj)
        if hasattr(obj, 'isoformat'):
            return obj.isoformat()
        return str(obj)

    return json.loads(json.dumps(data, default=default_serializer))


def get_broadcast_rules(organization_id) -> Optional[Dict[str, Any]]:
    key = BROADCAST_CACHE_KEY.format(organization_id=organization_id)
    cached = cache.get(key)
    if cached is not None:
        return None if cached == _NO_CONFIG else cached

    config = BroadcastConfig.objects.filter(organization_id=organization_id).first()
    rules = config.rules if config and config.rules else None
    cache.set(key, rules if rules is not None else _NO_CONFIG, settings.NEXUS_BROADCAST_CACHE_TTL)
    return rules


def clear_broadcast_cache(organization_id):
    cache.delete(BROADCAST_CACHE_KEY.format(organization_id=organization_id))


def resolve_broadcast(organization_id, activity_type):
    """Return (should_broadcast, channels) for an activity type."""
    rules = get_broadcast_rules(organization_id)
    if rules is None:
        return True, ['in_app']
    rule = rules.get(activity_type) or {}
    should_broadcast = rule.get('enabled') is not False
    channels = rule.get('channels') or ['in_app']
    return should_broadcast, list(channels)


def _user_name(user):
    if user is None:
        return None
    from team.models import TeamMember

    member = TeamMember.objects.filter(user=user).only('first_name', 'last_name').first()
    if member:
        return member.full_name
    return user.get_full_name() or user.email


def nexus(
    organization,
    user,
    activity_type: str,
    details: Dict[str, Any],
    metadata: Optional[Dict[str, Any]] = None,
    severity: Optional[str] = None,
    message: Optional[str] = None,
    requires_acknowledgment: Optional[bool] = None,
) -> Optional[ActivityLog]:
    """
    Record an activity and resolve how it is broadcast.

    Returns the created ActivityLog, or None when logging failed.
    """
    metadata = metadata or {}
    details = dict(details or {})
    try:
        category = category_for(activity_type)
        severity = severity or severity_for(activity_type, details) or 'info'
        if requires_acknowledgment is None:
            requires_acknowledgment = severity in ('warning', 'critical')
        message = message or message_for(activity_type, details) or humanize(activity_type)

        if not details.get('user_name'):
            details['user_name'] = _user_name(user)

        should_broadcast, channels = resolve_broadcast(organization.id, activity_type)
        # Only in-app delivery exists; other channels are resolved but not sent
        broadcast_channels = ['in_app'] if should_broadcast and 'in_app' in channels else []

        with transaction.atomic():
            log = ActivityLog.objects.create(
                organization=organization,
                user=user,
                activity_type=activity_type,
                category=category,
                severity=severity,
                message=message,
                requires_acknowledgment=requires_acknowledgment,
                details=serialize_for_log(details),
                metadata=serialize_for_log(metadata),
                broadcast_channels=broadcast_channels,
            )

            diffs = metadata.get('diffs') or {}
            if diffs.get('table_name') and diffs.get('record_id'):
                ActivityStreamDiff.objects.create(
                    activity_log=log,
                    organization=organization,
                    table_name=diffs['table_name'],
                    record_id=str(diffs['record_id']),
                    old_values=serialize_for_log(diffs.get('old_values') or {}),
                    new_values=serialize_for_log(diffs.get('new_values') or {}),
                    diff=serialize_for_log(diffs.get('diff') or {}),
                )

        logger.info(
            "NEXUS activity recorded",
            extra={
                "organization_id": str(organization.id),
                "activity_type": activity_type,
                "severity": severity,
                "channels": broadcast_channels,
            },
        )
        return log
    except Exception:
        logger.exception(
            "NEXUS failed to record activity",
            extra={"activity_type": activity_type, "organization_id": str(getattr(organization, 'id', ''))},
        )
        return None
