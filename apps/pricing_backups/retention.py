"""
Change-day retention policy for pricing backups.
"""

import logging
from typing import Optional

from django.conf import settings
from django.db import transaction

from .models import PricingBackup

logger = logging.getLogger(__name__)


def get_retention_limit() -> int:
    """Number of distinct change-days to keep."""
    return getattr(settings, "PRICING_BACKUP_RETENTION_DAYS", 10)


class RetentionPolicy:
    """
    Keep only the N most recent change-days.

    Eviction is day-granular: every backup of an evicted day (automatic and
    manual) is deleted together. Enforcing an already compliant store is a
    no-op.
    """

    def __init__(self, max_change_days: Optional[int] = None):
        if max_change_days is None:
            max_change_days = get_retention_limit()
        if max_change_days < 1:
            raise ValueError("Retention must keep at least one change-day")
        self.max_change_days = max_change_days

    def enforce(self) -> dict:
        """
        Delete backups of every change-day beyond the retention window.

        Returns:
            Dictionary with deleted_count, deleted_change_days and message
        """
        change_days = PricingBackup.objects.distinct_change_days()

        if len(change_days) <= self.max_change_days:
            return {
                "deleted_count": 0,
                "deleted_change_days": [],
                "message": "Retention policy not needed",
            }

        change_days_to_delete = change_days[self.max_change_days:]
        deleted_count = 0

        with transaction.atomic():
            for change_day in change_days_to_delete:
                deleted_count += PricingBackup.objects.delete_all_for_change_day(change_day)

        logger.info(
            f"Retention policy deleted {deleted_count} backups from "
            f"{len(change_days_to_delete)} old change days: {', '.join(change_days_to_delete)}"
        )

        return {
            "deleted_count": deleted_count,
            "deleted_change_days": change_days_to_delete,
            "message": (
                f"Deleted {deleted_count} backups from "
                f"{len(change_days_to_delete)} old change days"
            ),
        }
