"""
Celery tasks for team performance
"""
from celery import shared_task
from accounts.models import Organization
from .cycles import rollover_cycles
import logging

logger = logging.getLogger(__name__)


@shared_task
def rollover_performance_cycles():
    """
    Start the next performance cycle for organizations whose current one ended
    Runs every 6 hours via Celery Beat
    """
    organizations = Organization.objects.filter(performance_cycles__is_current=True).distinct()
    rolled = rollover_cycles(organizations)
    logger.info(f"Rolled over {rolled} performance cycles")
    return f"Rolled over {rolled} cycles"
