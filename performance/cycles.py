"""
Performance cycle lookup and creation.
"""
import logging

from django.db import transaction

from core.timezone_utils import organization_today
from .config import get_performance_config
from .models import PerformanceCycle
from .scoring import add_months, cycle_boundaries, last_day_of_month

logger = logging.getLogger(__name__)


def make_current(cycle):
    """Flag ``cycle`` as the organization's only current cycle."""
    with transaction.atomic():
        PerformanceCycle.objects.filter(
            organization_id=cycle.organization_id, is_current=True
        ).exclude(id=cycle.id).update(is_current=False)
        if not cycle.is_current:
            cycle.is_current = True
            cycle.save(update_fields=['is_current'])
    return cycle


def get_current_cycle(organization):
    cycle = PerformanceCycle.objects.filter(organization=organization, is_current=True).first()
    if cycle:
        return cycle

    config = get_performance_config(organization)
    today = organization_today(organization)
    start = today.replace(day=1)
    end_year, end_month = add_months(start, int(config['cycle_length_months']) - 1)
    end = last_day_of_month(end_year, end_month)

    cycle = PerformanceCycle.objects.create(
        organization=organization,
        name=f"{start:%b %Y} - {end:%b %Y}",
        start_date=start,
        end_date=end,
        is_current=True,
    )
    logger.info(
        "Performance cycle created",
        extra={"organization_id": str(organization.id), "cycle_id": str(cycle.id)},
    )
    return cycle


def ensure_cycle_for_date(organization, event_date):
    """Find the cycle containing ``event_date`` or create it from the cycle type."""
    existing = (
        PerformanceCycle.objects.filter(
            organization=organization, start_date__lte=event_date, end_date__gte=event_date
        )
        .order_by('-is_current', '-start_date')
        .first()
    )
    if existing:
        return existing

    config = get_performance_config(organization)
    start, end, name = cycle_boundaries(event_date, config.get('cycle_type', 'quadmester'))
    today = organization_today(organization)

    with transaction.atomic():
        cycle = PerformanceCycle.objects.create(
            organization=organization,
            name=name,
            start_date=start,
            end_date=end,
            is_current=False,
        )
        if start <= today <= end:
            make_current(cycle)

    logger.info(
        "Performance cycle created for date",
        extra={"organization_id": str(organization.id), "cycle": name, "event_date": str(event_date)},
    )
    return cycle


def rollover_cycles(organizations):
    """Move each organization whose current cycle has ended onto the cycle covering today."""
    rolled = 0
    for organization in organizations:
        current = PerformanceCycle.objects.filter(organization=organization, is_current=True).first()
        today = organization_today(organization)
        if current is None or current.end_date >= today:
            continue
        cycle = ensure_cycle_for_date(organization, today)
        make_current(cycle)
        rolled += 1
        logger.info(
            "Performance cycle rolled over",
            extra={"organization_id": str(organization.id), "cycle_id": str(cycle.id)},
        )
    return rolled
