"""
Timezone utilities for organization-local dates.
"""
import zoneinfo

from django.utils import timezone as dj_timezone

DEFAULT_TIMEZONE = "America/Toronto"


def get_organization_timezone(organization):
    if organization and getattr(organization, "timezone", None):
        tz_str = str(organization.timezone).strip()
        if tz_str:
            return tz_str
    return DEFAULT_TIMEZONE


def _zone(tz_str):
    try:
        return zoneinfo.ZoneInfo(tz_str)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError):
        return zoneinfo.ZoneInfo(DEFAULT_TIMEZONE)


def to_organization_local(dt, organization):
    """Convert an aware datetime to the organization's local time."""
    if dt is None:
        return None
    if dj_timezone.is_naive(dt):
        dt = dj_timezone.make_aware(dt, zoneinfo.ZoneInfo("UTC"))
    return dt.astimezone(_zone(get_organization_timezone(organization)))


def organization_today(organization):
    """Today's date where the organization operates."""
    return to_organization_local(dj_timezone.now(), organization).date()


def make_organization_aware(dt, organization):
    """Attach the organization's timezone to a naive local datetime."""
    if dt is None or dj_timezone.is_aware(dt):
        return dt
    return dj_timezone.make_aware(dt, _zone(get_organization_timezone(organization)))
