"""
Celery tasks for the pricing backup system.

This module implements:
- On-demand backup creation requested by pricing configuration writes
- The daily scheduled backup
- Daily retention enforcement
"""

import logging
from typing import List, Optional

from django.contrib.auth import get_user_model

from celery import shared_task

from .models import PricingBackup
from .services import PricingBackupService

User = get_user_model()

logger = logging.getLogger(__name__)


def get_user_or_none(user_id: Optional[int]):
    """Resolve a user id passed through the broker, tolerating deleted users."""
    if user_id is None:
        return None
    user = User.objects.filter(pk=user_id).first()
    if user is None:
        logger.warning(f"User {user_id} not found, recording backup without a user")
    return user


@shared_task(
    bind=True,
    name="apps.pricing_backups.tasks.create_pricing_backup_if_needed",
    max_retries=3,
    default_retry_delay=60,  # 1 minute
)
def create_pricing_backup_if_needed(
    self,
    trigger: str,
    changed_by_id: Optional[int] = None,
    changed_areas: Optional[List[str]] = None,
    change_description: str = "",
    change_count: int = 1,
):
    """
    Create today's automatic pricing backup unless it already exists.

    Queued by pricing configuration writes. Only lock contention is retried:
    any other failure has already been logged by the service and retrying
    would not change the outcome.

    Returns:
        Service result dictionary
    """
    result = PricingBackupService.create_backup_if_needed(
        trigger=trigger,
        changed_by=get_user_or_none(changed_by_id),
        changed_areas=changed_areas,
        change_description=change_description,
        change_count=change_count,
    )

    if result.get("error_code") == "operation_in_progress":
        logger.info("Pricing backup operation in progress, retrying later")
        raise self.retry()

    if result.get("created"):
        logger.info(f"Pricing backup created by task: {result['backup']['change_day_id']}")
    elif not result.get("success"):
        logger.error(f"Pricing backup task failed: {result.get('error')}")

    return result


@shared_task(
    bind=True,
    name="apps.pricing_backups.tasks.scheduled_pricing_backup",
    max_retries=3,
    default_retry_delay=300,  # 5 minutes
)
def scheduled_pricing_backup(self):
    """
    Daily scheduled pricing backup.

    Takes today's automatic slot if no pricing change has taken it yet, so
    every day has a restore point even without admin activity.
    """
    logger.info("=" * 80)
    logger.info("Starting scheduled pricing backup")
    logger.info("=" * 80)

    result = PricingBackupService.create_backup_if_needed(
        trigger=PricingBackup.SCHEDULED,
        changed_areas=["other"],
        change_description="Scheduled daily pricing backup",
    )

    if result.get("error_code") == "operation_in_progress":
        raise self.retry()

    if not result.get("success"):
        logger.error(f"Scheduled pricing backup failed: {result.get('error')}")

    return result


@shared_task(
    bind=True,
    name="apps.pricing_backups.tasks.enforce_pricing_backup_retention",
    max_retries=3,
    default_retry_delay=300,  # 5 minutes
)
def enforce_pricing_backup_retention(self):
    """
    Delete pricing backups of change-days beyond the retention window.

    Returns:
        Retention result dictionary
    """
    try:
        result = PricingBackupService.enforce_retention()
        logger.info(f"Pricing backup retention: {result['message']}")
        return result

    except Exception as e:
        logger.error(f"Pricing backup retention failed: {e}", exc_info=True)
        raise self.retry(exc=e)
