import logging

from celery import shared_task

from marketplace.services.subscription_service import get_lifecycle_manager

logger = logging.getLogger(__name__)


@shared_task(ignore_result=True)
def process_trial_ends():
    """Hourly: move every trial past its trial_end_date to active."""
    activated = get_lifecycle_manager().process_expired_trials()
    logger.info("process_trial_ends finished", extra={"activated": len(activated)})
    return activated
