"""
Service layer for pricing backup operations.

This module provides high-level functions for:
- Creating the automatic backup of the day (once per change-day)
- Creating and replacing the manual backup of the day
- Deleting backups and enforcing retention

Backup creation never raises past this layer: collection, compression and
persistence failures are returned as failed results so that the pricing
change that triggered the backup is never blocked by it.
"""

import logging
from typing import List, Optional

from django.db import transaction
from django.utils import timezone

from .collector import SnapshotCollector, calculate_snapshot_metadata
from .compression import compress_snapshot
from .exceptions import DuplicateSnapshotError, OperationInProgressError, SnapshotNotFoundError
from .locks import (
    automatic_backup_operation,
    backup_operation_lock,
    get_lock_wait_timeout,
    manual_backup_operation,
)
from .models import PricingBackup, get_current_change_day
from .retention import RetentionPolicy

logger = logging.getLogger(__name__)

DEFAULT_MANUAL_DESCRIPTION = "Manual backup created by admin"
REPLACED_SUFFIX = " (Replaced previous manual backup)"


def _backup_summary(backup: PricingBackup) -> dict:
    return {
        "id": str(backup.id),
        "change_day_id": backup.change_day_id,
        "change_day": backup.change_day,
        "backup_trigger": backup.backup_trigger,
        "original_size": backup.original_size,
        "compressed_size": backup.compressed_size,
        "compression_ratio": backup.compression_ratio,
        "document_counts": backup.document_counts,
    }


def _skipped_result(change_day: str, existing_change_day_id: Optional[str] = None) -> dict:
    result = {
        "success": True,
        "created": False,
        "skipped": True,
        "change_day": change_day,
        "message": "Backup already exists for today",
    }
    if existing_change_day_id:
        result["existing_change_day_id"] = existing_change_day_id
    return result


def _failed_result(error: Exception, message: str) -> dict:
    error_code = "operation_in_progress" if isinstance(error, OperationInProgressError) else "backup_failed"
    return {
        "success": False,
        "created": False,
        "skipped": False,
        "error": str(error),
        "error_code": error_code,
        "message": message,
    }


class PricingBackupService:
    """Service for managing pricing backup operations."""

    @staticmethod
    def build_backup(
        trigger: str,
        change_day: str,
        changed_by=None,
        changed_areas: Optional[List[str]] = None,
        change_description: str = "",
        change_count: int = 1,
    ) -> PricingBackup:
        """
        Collect, compress and describe the current pricing data as an unsaved backup.

        Nothing is written here; the caller persists the returned instance
        only once the whole payload and its metadata are ready.

        Raises:
            CollectionError: If a configuration store cannot be read
            CompressionError: If the snapshot cannot be serialized or compressed
        """
        snapshot = SnapshotCollector().gather()
        compression_result = compress_snapshot(snapshot)
        metadata = calculate_snapshot_metadata(snapshot, compression_result)

        return PricingBackup(
            change_day=change_day,
            first_change_timestamp=timezone.now(),
            compressed_snapshot=compression_result["compressed_data"],
            backup_trigger=trigger,
            changed_by=changed_by,
            changed_areas=list(changed_areas or []),
            change_description=(change_description or "")[:500],
            change_count=change_count,
            **metadata,
        )

    @staticmethod
    def _run_retention() -> dict:
        """Run retention after a backup was written; failures are reported, not raised."""
        try:
            return RetentionPolicy().enforce()
        except Exception as e:
            logger.error(f"Retention policy enforcement failed: {e}", exc_info=True)
            return {"deleted_count": 0, "deleted_change_days": [], "error": str(e)}

    @staticmethod
    def _resolve_contention(
        error: OperationInProgressError, operation: str, change_day: str, trigger_class: str
    ) -> dict:
        """
        Decide the outcome of an automatic backup that could not get the lock.

        A concurrent creator of the same day's backup, or a slot that got
        filled while waiting, means there is nothing left to do.
        """
        if error.holder == operation:
            logger.info(f"Backup for {change_day} is being created by another worker, skipping")
            return _skipped_result(change_day)

        try:
            existing = (
                PricingBackup.objects.summaries()
                .for_day(change_day, trigger_class)
                .first()
            )
        except Exception as e:
            logger.error(f"Pricing backup slot check failed: {e}", exc_info=True)
            return _failed_result(e, "Failed to create pricing backup")

        if existing:
            logger.info(f"Backup already exists for {change_day}, skipping")
            return _skipped_result(change_day, existing.change_day_id)

        logger.warning(f"Pricing backup for {change_day} postponed: {error}")
        return _failed_result(error, "Failed to create pricing backup")

    @staticmethod
    def create_backup_if_needed(
        trigger: str,
        changed_by=None,
        changed_areas: Optional[List[str]] = None,
        change_description: str = "",
        change_count: int = 1,
    ) -> dict:
        """
        Create the backup for today's slot unless it already exists.

        Automatic triggers (pricing updates, the scheduler) share one slot per
        change-day, so however many changes happen in a day only the first
        one produces a backup.

        Args:
            trigger: What triggered the backup (see PricingBackup.TRIGGER_CHOICES)
            changed_by: User who made the change (None for scheduled backups)
            changed_areas: Pricing areas that were changed
            change_description: Brief description of the change
            change_count: Number of individual changes made

        Returns:
            Dictionary with success flag and either created, skipped or error details
        """
        if trigger == PricingBackup.MANUAL:
            return PricingBackupService.create_manual_backup(
                changed_by=changed_by,
                changed_areas=changed_areas,
                change_description=change_description or DEFAULT_MANUAL_DESCRIPTION,
                change_count=change_count,
            )

        try:
            change_day = get_current_change_day()
            trigger_class = PricingBackup.trigger_class_for(trigger)
            operation = automatic_backup_operation(change_day)

            with backup_operation_lock(operation=operation, wait_timeout=get_lock_wait_timeout()):
                existing = (
                    PricingBackup.objects.summaries()
                    .for_day(change_day, trigger_class)
                    .first()
                )
                if existing:
                    logger.info(f"Backup already exists for {change_day}, skipping")
                    return _skipped_result(change_day, existing.change_day_id)

                backup = PricingBackupService.build_backup(
                    trigger=trigger,
                    change_day=change_day,
                    changed_by=changed_by,
                    changed_areas=changed_areas,
                    change_description=change_description,
                    change_count=change_count,
                )

                try:
                    PricingBackup.objects.put(backup)
                except DuplicateSnapshotError:
                    # Another worker won the race for today's slot
                    logger.info(f"Concurrent backup detected for {change_day}, skipping")
                    return _skipped_result(change_day)

                retention_result = PricingBackupService._run_retention()

        except OperationInProgressError as e:
            return PricingBackupService._resolve_contention(e, operation, change_day, trigger_class)

        except Exception as e:
            logger.error(f"Pricing backup creation failed: {e}", exc_info=True)
            return _failed_result(e, "Failed to create pricing backup")

        logger.info(
            f"Pricing backup created: {backup.change_day_id} "
            f"({backup.original_size} -> {backup.compressed_size} bytes, "
            f"ratio {backup.compression_ratio})"
        )

        return {
            "success": True,
            "created": True,
            "skipped": False,
            "backup": _backup_summary(backup),
            "retention_policy": retention_result,
            "message": "Backup created successfully",
        }

    @staticmethod
    def create_manual_backup(
        changed_by=None,
        changed_areas: Optional[List[str]] = None,
        change_description: str = DEFAULT_MANUAL_DESCRIPTION,
        change_count: int = 1,
        force_replace: bool = False,
    ) -> dict:
        """
        Create the manual backup of the day.

        Manual backups live in their own slot next to the automatic one. An
        existing manual backup is only replaced when force_replace is set;
        otherwise the caller gets requires_confirmation and nothing changes.

        Returns:
            Dictionary with success flag and created, requires_confirmation or error details
        """
        changed_areas = changed_areas or ["other"]
        change_description = change_description or DEFAULT_MANUAL_DESCRIPTION

        try:
            change_day = get_current_change_day()

            with backup_operation_lock(
                operation=manual_backup_operation(change_day),
                wait_timeout=get_lock_wait_timeout(),
            ):
                existing = (
                    PricingBackup.objects.summaries()
                    .for_day(change_day, PricingBackup.MANUAL_CLASS)
                    .first()
                )

                if existing and not force_replace:
                    return {
                        "success": False,
                        "created": False,
                        "requires_confirmation": True,
                        "existing_backup": {
                            "change_day_id": existing.change_day_id,
                            "created_at": existing.created_at.isoformat(),
                            "change_description": existing.change_description,
                        },
                        "message": "A manual backup already exists for today. Do you want to replace it?",
                    }

                if existing:
                    change_description = f"{change_description[:500 - len(REPLACED_SUFFIX)]}{REPLACED_SUFFIX}"

                backup = PricingBackupService.build_backup(
                    trigger=PricingBackup.MANUAL,
                    change_day=change_day,
                    changed_by=changed_by,
                    changed_areas=changed_areas,
                    change_description=change_description,
                    change_count=change_count,
                )

                # The old manual backup is only removed together with writing its replacement
                with transaction.atomic():
                    if existing:
                        PricingBackup.objects.delete_by_change_day_ids([existing.change_day_id])
                        logger.info(f"Replacing manual backup {existing.change_day_id}")
                    PricingBackup.objects.put(backup)

                retention_result = PricingBackupService._run_retention()

        except Exception as e:
            logger.error(f"Manual pricing backup creation failed: {e}", exc_info=True)
            return _failed_result(e, "Failed to create manual backup")

        replaced = existing is not None
        logger.info(f"Manual pricing backup {'replaced' if replaced else 'created'}: {backup.change_day_id}")

        return {
            "success": True,
            "created": True,
            "replaced": replaced,
            "requires_confirmation": False,
            "backup": _backup_summary(backup),
            "retention_policy": retention_result,
            "message": (
                f"Manual backup replaced successfully for {change_day}"
                if replaced
                else f"Manual backup created successfully for {change_day}"
            ),
        }

    @staticmethod
    def delete_backups(change_day_ids: List[str], deleted_by=None) -> dict:
        """
        Delete specific backups by change-day id.

        Unknown ids abort the whole deletion. Backups are never deleted while
        a backup or restore is running.

        Raises:
            SnapshotNotFoundError: If any requested id does not exist
            OperationInProgressError: If another operation holds the lock
        """
        change_day_ids = list(dict.fromkeys(change_day_ids))

        with backup_operation_lock(operation="delete"):
            existing = set(
                PricingBackup.objects.filter(change_day_id__in=change_day_ids).values_list(
                    "change_day_id", flat=True
                )
            )
            missing = [change_day_id for change_day_id in change_day_ids if change_day_id not in existing]
            if missing:
                raise SnapshotNotFoundError(", ".join(missing))

            deleted_count = PricingBackup.objects.delete_by_change_day_ids(change_day_ids)

        logger.info(
            f"Deleted {deleted_count} pricing backups by "
            f"{deleted_by.get_username() if deleted_by else 'system'}: {', '.join(change_day_ids)}"
        )

        return {
            "success": True,
            "deleted_count": deleted_count,
            "deleted_backups": change_day_ids,
            "message": f"Successfully deleted {deleted_count} backups",
        }

    @staticmethod
    def enforce_retention() -> dict:
        """
        Enforce the change-day retention window.

        Raises:
            OperationInProgressError: If the lock stays busy past the wait timeout
        """
        with backup_operation_lock(operation="retention", wait_timeout=get_lock_wait_timeout()):
            return RetentionPolicy().enforce()
