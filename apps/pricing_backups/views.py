"""
API views for pricing backup management.

This module contains endpoints for:
- Manual backup creation
- Backup listing, details and snapshot previews
- Restoration and deletion
- Retention enforcement, statistics and health
"""

import logging

from rest_framework import permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from .exceptions import (
    DecompressionError,
    OperationInProgressError,
    PartialRestoreError,
    SnapshotNotFoundError,
)
from .monitoring import (
    get_backup_details,
    get_backup_health,
    get_backup_statistics,
    get_list_limit,
    get_snapshot_preview,
    list_backup_summaries,
)
from .restore import restore_from_backup
from .serializers import (
    BackupListQuerySerializer,
    DeleteBackupsSerializer,
    ManualBackupSerializer,
    RestoreBackupSerializer,
)
from .services import PricingBackupService

logger = logging.getLogger(__name__)

FALSE_VALUES = ("false", "0", "no", "off")


def _not_found(error: SnapshotNotFoundError) -> Response:
    return Response({"success": False, "error": str(error)}, status=status.HTTP_404_NOT_FOUND)


@api_view(["POST"])
@permission_classes([permissions.IsAdminUser])
def create_manual_backup(request):
    """
    Create the manual backup of the day.

    Body:
    - change_description: Optional description
    - force_replace: Replace an existing manual backup for today
    """
    serializer = ManualBackupSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    result = PricingBackupService.create_manual_backup(
        changed_by=request.user,
        change_description=serializer.validated_data["change_description"],
        force_replace=serializer.validated_data["force_replace"],
    )

    if result.get("requires_confirmation"):
        return Response(result, status=status.HTTP_409_CONFLICT)

    if not result["success"]:
        if result.get("error_code") == "operation_in_progress":
            return Response(result, status=status.HTTP_409_CONFLICT)
        return Response(result, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response(result, status=status.HTTP_201_CREATED)


@api_view(["GET"])
@permission_classes([permissions.IsAdminUser])
def backup_list(request):
    """
    List backups of the most recent change-days.

    Query parameters:
    - limit: Number of change-days (default: 10, max: 50)
    """
    serializer = BackupListQuerySerializer(data=request.query_params)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    limit = get_list_limit(serializer.validated_data.get("limit"))
    backups = list_backup_summaries(limit)

    return Response(
        {"success": True, "backups": backups, "count": len(backups), "limit": limit},
        status=status.HTTP_200_OK,
    )


@api_view(["GET"])
@permission_classes([permissions.IsAdminUser])
def backup_details(request, change_day_id):
    """Backup details with counts verified against the snapshot."""
    try:
        details = get_backup_details(change_day_id)
    except SnapshotNotFoundError as e:
        return _not_found(e)

    return Response({"success": True, "backup": details}, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes([permissions.IsAdminUser])
def backup_snapshot(request, change_day_id):
    """
    Read the snapshot of a backup.

    Query parameters:
    - preview: Summary only (default: true); false returns every document
    """
    preview = request.query_params.get("preview", "true").lower() not in FALSE_VALUES

    try:
        snapshot = get_snapshot_preview(change_day_id, preview=preview)
    except SnapshotNotFoundError as e:
        return _not_found(e)
    except DecompressionError as e:
        logger.error(f"Corrupt snapshot {change_day_id}: {e}")
        return Response(
            {"success": False, "error": str(e)},
            status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    return Response({"success": True, "preview": preview, **snapshot}, status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes([permissions.IsAdminUser])
def restore_backup(request):
    """
    Restore all pricing data from a backup.

    Returns 200 when every data type was restored, 207 when some failed.
    """
    serializer = RestoreBackupSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    change_day_id = serializer.validated_data["change_day_id"]

    try:
        result = restore_from_backup(
            change_day_id,
            restored_by=request.user,
            restoration_notes=serializer.validated_data["restoration_notes"],
            raise_on_partial=True,
        )
    except SnapshotNotFoundError as e:
        return _not_found(e)
    except OperationInProgressError as e:
        return Response({"success": False, "error": str(e)}, status=status.HTTP_409_CONFLICT)
    except DecompressionError as e:
        logger.error(f"Cannot restore corrupt snapshot {change_day_id}: {e}")
        return Response(
            {"success": False, "error": str(e)},
            status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )
    except PartialRestoreError as e:
        return Response(e.result, status=status.HTTP_207_MULTI_STATUS)

    return Response(result, status=status.HTTP_200_OK)


@api_view(["DELETE"])
@permission_classes([permissions.IsAdminUser])
def delete_backups(request):
    """
    Delete backups by change-day id.

    Body:
    - change_day_ids: List of change-day ids; unknown ids abort the deletion
    """
    serializer = DeleteBackupsSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        result = PricingBackupService.delete_backups(
            serializer.validated_data["change_day_ids"],
            deleted_by=request.user,
        )
    except SnapshotNotFoundError as e:
        return _not_found(e)
    except OperationInProgressError as e:
        return Response({"success": False, "error": str(e)}, status=status.HTTP_409_CONFLICT)

    return Response(result, status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes([permissions.IsAdminUser])
def enforce_retention(request):
    """Delete backups of change-days beyond the retention window."""
    try:
        result = PricingBackupService.enforce_retention()
    except OperationInProgressError as e:
        return Response({"success": False, "error": str(e)}, status=status.HTTP_409_CONFLICT)

    return Response({"success": True, **result}, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes([permissions.IsAdminUser])
def backup_statistics(request):
    """Aggregate backup statistics."""
    return Response(
        {"success": True, "statistics": get_backup_statistics()},
        status=status.HTTP_200_OK,
    )


@api_view(["GET"])
@permission_classes([permissions.IsAdminUser])
def backup_health(request):
    """Backup system health status."""
    return Response(get_backup_health(), status=status.HTTP_200_OK)
