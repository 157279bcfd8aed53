"""
Restoration of pricing configuration data from a backup.

Restoring is destructive: each data type present in the snapshot replaces
the live store wholesale. Every data type is restored in its own transaction,
so a failure in one does not undo or prevent the others; the result reports
what was restored and what failed per data type.
"""

import logging
from typing import Dict, Optional

from django.core.exceptions import ValidationError

from apps.configuration.stores import DATA_TYPES, DocumentStore, get_document_stores

from .collector import get_snapshot_documents
from .exceptions import DecompressionError, PartialRestoreError
from .locks import backup_operation_lock, restore_operation
from .models import PricingBackup

logger = logging.getLogger(__name__)


def _format_error(error: Exception) -> str:
    if isinstance(error, ValidationError):
        return "; ".join(error.messages)
    return str(error)


def validate_snapshot_structure(snapshot) -> None:
    """
    Check that a decompressed payload looks like a pricing snapshot.

    Raises:
        DecompressionError: If the payload has no data_types mapping
    """
    if not isinstance(snapshot, dict) or not isinstance(snapshot.get("data_types"), dict):
        raise DecompressionError("Snapshot payload is missing data_types")


def restore_from_backup(
    change_day_id: str,
    restored_by=None,
    restoration_notes: str = "",
    raise_on_partial: bool = False,
    stores: Optional[Dict[str, DocumentStore]] = None,
) -> dict:
    """
    Restore all pricing data from a backup.

    Args:
        change_day_id: Backup to restore
        restored_by: User performing the restore
        restoration_notes: Free-text notes recorded on the backup
        raise_on_partial: Raise PartialRestoreError instead of returning a partial result
        stores: Target stores (defaults to the live configuration stores)

    Returns:
        Dictionary with per data type results and totals

    Raises:
        SnapshotNotFoundError: If the backup does not exist
        DecompressionError: If the snapshot payload is corrupt
        OperationInProgressError: If another backup or restore is running
        PartialRestoreError: If raise_on_partial is set and any data type failed
    """
    stores = stores if stores is not None else get_document_stores()

    logger.info("=" * 80)
    logger.info(f"Restoring pricing backup {change_day_id}")
    logger.info(f"Restored by: {restored_by.get_username() if restored_by else 'system'}")
    logger.info("=" * 80)

    with backup_operation_lock(operation=restore_operation(change_day_id)):
        backup = PricingBackup.objects.get_by_change_day_id(change_day_id)
        snapshot = backup.get_snapshot()
        validate_snapshot_structure(snapshot)

        results = {}
        errors = []
        restored_data_types = []

        for data_type in DATA_TYPES:
            documents = get_snapshot_documents(snapshot, data_type)
            result = {"restored": 0, "errors": []}

            if not documents:
                # Nothing captured for this type; the live store is left untouched
                result["skipped"] = True
                results[data_type] = result
                logger.info(f"No {data_type} documents in backup, skipping")
                continue

            try:
                result["restored"] = stores[data_type].replace_all(documents)
                restored_data_types.append(data_type)
                logger.info(f"Restored {result['restored']} {data_type} documents")
            except Exception as e:
                message = f"{data_type}: {_format_error(e)}"
                result["errors"].append(message)
                errors.append(message)
                logger.error(f"Failed to restore {data_type}: {e}", exc_info=True)

            results[data_type] = result

        backup.mark_restored(restored_by=restored_by, notes=restoration_notes)

    total_restored = sum(result["restored"] for result in results.values())
    total_errors = len(errors)

    result = {
        "success": total_errors == 0,
        "change_day_id": backup.change_day_id,
        "change_day": backup.change_day,
        "results": results,
        "errors": errors,
        "total_restored": total_restored,
        "total_errors": total_errors,
        "restored_data_types": restored_data_types,
        "message": (
            f"Restored {total_restored} documents from {backup.change_day_id}"
            if total_errors == 0
            else f"Restored {total_restored} documents from {backup.change_day_id} with {total_errors} errors"
        ),
    }

    if total_errors:
        logger.warning(f"Pricing restore finished with errors: {'; '.join(errors)}")
    else:
        logger.info(f"Pricing restore completed: {total_restored} documents")

    if total_errors and raise_on_partial:
        raise PartialRestoreError(result)

    return result
