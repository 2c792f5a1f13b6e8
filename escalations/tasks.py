# escalations/tasks.py

import logging

from celery import shared_task
from django.utils import timezone

from escalations.escalation import record_run

logger = logging.getLogger(__name__)


@shared_task
def run_escalation_check_task():
    """Hourly escalation sweep. Not retried: the next scheduled run picks up where this left off."""
    logger.info(f"Timer trigger fired at {timezone.now().isoformat()}")
    try:
        result = record_run('timer')
    except Exception:
        logger.exception("Scheduled escalation check failed")
        raise
    logger.info(f"Result: {result.as_dict()}")
    return result.as_dict()
