"""
Request serializers for the pricing backup API.
"""

from django.conf import settings

from rest_framework import serializers

from .services import DEFAULT_MANUAL_DESCRIPTION


class ManualBackupSerializer(serializers.Serializer):
    """Serializer for manual backup creation."""

    change_description = serializers.CharField(
        max_length=500,
        required=False,
        allow_blank=True,
        default=DEFAULT_MANUAL_DESCRIPTION,
    )
    force_replace = serializers.BooleanField(required=False, default=False)


class BackupListQuerySerializer(serializers.Serializer):
    """Serializer for backup list query parameters."""

    limit = serializers.IntegerField(required=False, min_value=1)

    def validate_limit(self, value):
        """Cap the limit instead of rejecting large values."""
        return min(value, getattr(settings, "PRICING_BACKUP_LIST_MAX_LIMIT", 50))


class RestoreBackupSerializer(serializers.Serializer):
    """Serializer for restore requests."""

    change_day_id = serializers.CharField(max_length=100)
    restoration_notes = serializers.CharField(
        max_length=1000,
        required=False,
        allow_blank=True,
        default="",
    )


class DeleteBackupsSerializer(serializers.Serializer):
    """Serializer for backup deletion requests."""

    change_day_ids = serializers.ListField(
        child=serializers.CharField(max_length=100),
        allow_empty=False,
    )
