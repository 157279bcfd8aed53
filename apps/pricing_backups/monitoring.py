"""
Pricing backup monitoring and reporting.

This module implements:
- Metadata-only backup listings (snapshot payloads are never loaded)
- Backup details with stored counts reconciled against the payload
- Aggregate statistics and retention compliance
- Health status for the health endpoint
- Snapshot previews
"""

import logging
from typing import Dict, List, Optional

from django.conf import settings
from django.db.models import Avg, Count, Max, Min, Sum

from apps.configuration.stores import DATA_TYPES

from .collector import count_snapshot_documents
from .exceptions import DecompressionError
from .locks import is_operation_in_progress
from .models import PricingBackup, get_current_change_day
from .retention import get_retention_limit

logger = logging.getLogger(__name__)


def get_list_limit(limit: Optional[int] = None) -> int:
    """Clamp a requested list size to the configured bounds."""
    default_limit = getattr(settings, "PRICING_BACKUP_LIST_DEFAULT_LIMIT", 10)
    max_limit = getattr(settings, "PRICING_BACKUP_LIST_MAX_LIMIT", 50)

    if limit is None:
        limit = default_limit

    return max(1, min(int(limit), max_limit))


def summarize_backup(backup: PricingBackup) -> Dict:
    """Describe a backup without touching its snapshot payload."""
    return {
        "id": str(backup.id),
        "change_day_id": backup.change_day_id,
        "change_day": backup.change_day,
        "trigger_class": backup.trigger_class,
        "backup_trigger": backup.backup_trigger,
        "is_manual": backup.is_manual(),
        "first_change_timestamp": backup.first_change_timestamp.isoformat(),
        "changed_by": backup.changed_by.get_username() if backup.changed_by_id else None,
        "changed_areas": backup.changed_areas,
        "change_description": backup.change_description,
        "change_count": backup.change_count,
        "document_counts": backup.document_counts,
        "included_data_types": backup.included_data_types,
        "original_size": backup.original_size,
        "compressed_size": backup.compressed_size,
        "compressed_size_kb": backup.get_compressed_size_kb(),
        "compression_ratio": backup.compression_ratio,
        "has_been_restored": backup.has_been_restored,
        "last_restored_at": backup.last_restored_at.isoformat() if backup.last_restored_at else None,
        "restored_by": backup.restored_by.get_username() if backup.restored_by_id else None,
        "created_at": backup.created_at.isoformat(),
    }


def list_backup_summaries(limit: Optional[int] = None) -> List[Dict]:
    """
    List the backups of the most recent change-days.

    Args:
        limit: Number of change-days to include (capped at PRICING_BACKUP_LIST_MAX_LIMIT)

    Returns:
        Backup summaries, most recent day first
    """
    backups = PricingBackup.objects.last_n_change_days(get_list_limit(limit)).select_related(
        "changed_by", "restored_by"
    )
    return [summarize_backup(backup) for backup in backups]


def get_backup_details(change_day_id: str) -> Dict:
    """
    Get a backup summary with its counts verified against the payload.

    The stored document counts are recomputed from the decompressed
    snapshot; any mismatch is reported in ``discrepancies``. If the payload
    cannot be read, the stored counts are returned unverified.

    Raises:
        SnapshotNotFoundError: If the backup does not exist
    """
    backup = PricingBackup.objects.select_related("changed_by", "restored_by").get_by_change_day_id(
        change_day_id
    )
    details = summarize_backup(backup)
    stored_counts = backup.document_counts or {}

    try:
        snapshot = backup.get_snapshot()
    except DecompressionError as e:
        logger.error(f"Cannot read snapshot of {change_day_id}: {e}")
        details.update(
            {
                "stored_counts": stored_counts,
                "actual_counts": None,
                "discrepancies": [],
                "counts_verified": False,
                "snapshot_error": str(e),
            }
        )
        return details

    actual_counts = count_snapshot_documents(snapshot)
    discrepancies = [
        {"field": field, "stored": stored_counts.get(field), "actual": actual}
        for field, actual in actual_counts.items()
        if stored_counts.get(field) != actual
    ]

    if discrepancies:
        logger.warning(f"Backup {change_day_id} count discrepancies: {discrepancies}")

    details.update(
        {
            "stored_counts": stored_counts,
            "actual_counts": actual_counts,
            "discrepancies": discrepancies,
            "counts_verified": not discrepancies,
            "snapshot_timestamp": snapshot.get("timestamp"),
            "backup_version": (snapshot.get("metadata") or {}).get("backup_version"),
        }
    )
    return details


def get_backup_statistics() -> Dict:
    """
    Get pricing backup statistics.

    Returns:
        Dictionary with totals, size and ratio aggregates, counts per trigger,
        recent backups and retention compliance
    """
    queryset = PricingBackup.objects.summaries()
    retention_limit = get_retention_limit()

    aggregates = queryset.aggregate(
        total_original_size=Sum("original_size"),
        total_compressed_size=Sum("compressed_size"),
        average_compression_ratio=Avg("compression_ratio"),
        min_compression_ratio=Min("compression_ratio"),
        max_compression_ratio=Max("compression_ratio"),
    )

    total_backups = queryset.count()
    change_days = PricingBackup.objects.distinct_change_days()
    total_change_days = len(change_days)

    backups_by_trigger = {trigger: 0 for trigger, _ in PricingBackup.TRIGGER_CHOICES}
    for row in queryset.order_by().values("backup_trigger").annotate(count=Count("id")):
        backups_by_trigger[row["backup_trigger"]] = row["count"]

    recent_backups = [
        {
            "change_day_id": backup.change_day_id,
            "change_day": backup.change_day,
            "backup_trigger": backup.backup_trigger,
            "compressed_size": backup.compressed_size,
            "created_at": backup.created_at.isoformat(),
        }
        for backup in queryset.order_by("-created_at")[:5]
    ]

    warnings = []
    if total_backups == 0:
        warnings.append("No pricing backups exist")
    if total_change_days > retention_limit:
        warnings.append(
            f"{total_change_days} change days stored, retention limit is {retention_limit}"
        )

    average_ratio = aggregates["average_compression_ratio"]

    return {
        "total_backups": total_backups,
        "total_change_days": total_change_days,
        "newest_change_day": change_days[0] if change_days else None,
        "oldest_change_day": change_days[-1] if change_days else None,
        "total_original_size": aggregates["total_original_size"] or 0,
        "total_compressed_size": aggregates["total_compressed_size"] or 0,
        "average_compression_ratio": round(average_ratio, 4) if average_ratio is not None else None,
        "min_compression_ratio": aggregates["min_compression_ratio"],
        "max_compression_ratio": aggregates["max_compression_ratio"],
        "backups_by_trigger": backups_by_trigger,
        "restored_backups": queryset.filter(has_been_restored=True).count(),
        "recent_backups": recent_backups,
        "retention_limit": retention_limit,
        "retention_compliant": total_change_days <= retention_limit,
        "is_healthy": total_backups > 0 and total_change_days <= retention_limit,
        "warnings": warnings,
    }


def get_backup_health() -> Dict:
    """Get a short health status for the backup system."""
    statistics = get_backup_statistics()
    today = get_current_change_day()
    latest_backup = PricingBackup.objects.summaries().order_by("-created_at").first()

    return {
        "status": "healthy" if statistics["is_healthy"] else "warning",
        "total_backups": statistics["total_backups"],
        "total_change_days": statistics["total_change_days"],
        "retention_compliant": statistics["retention_compliant"],
        "has_backup_today": PricingBackup.objects.for_day(today).exists(),
        "operation_in_progress": is_operation_in_progress(),
        "latest_backup": (
            {
                "change_day_id": latest_backup.change_day_id,
                "change_day": latest_backup.change_day,
                "created_at": latest_backup.created_at.isoformat(),
            }
            if latest_backup
            else None
        ),
        "warnings": statistics["warnings"],
    }


def get_snapshot_preview(change_day_id: str, preview: bool = True) -> Dict:
    """
    Read the snapshot payload of a backup.

    Args:
        change_day_id: Backup to read
        preview: Return counts and the active catalog only instead of every document

    Raises:
        SnapshotNotFoundError: If the backup does not exist
        DecompressionError: If the snapshot payload is corrupt
    """
    backup = PricingBackup.objects.get_by_change_day_id(change_day_id)
    snapshot = backup.get_snapshot()

    if not preview:
        return {
            "change_day_id": backup.change_day_id,
            "change_day": backup.change_day,
            "snapshot": snapshot,
        }

    data_types = snapshot.get("data_types") or {}
    summary = {}
    for data_type in DATA_TYPES:
        section = data_types.get(data_type) or {}
        summary[data_type] = {
            key: value for key, value in section.items() if key != "documents"
        }

    return {
        "change_day_id": backup.change_day_id,
        "change_day": backup.change_day,
        "timestamp": snapshot.get("timestamp"),
        "metadata": snapshot.get("metadata") or {},
        "data_types": summary,
        "document_counts": count_snapshot_documents(snapshot),
    }
