"""
Admin interface for pricing backup models.
"""

from django.contrib import admin
from django.utils.html import format_html

from .models import PricingBackup


@admin.register(PricingBackup)
class PricingBackupAdmin(admin.ModelAdmin):
    """Admin interface for PricingBackup model."""

    list_display = [
        "change_day_id",
        "change_day",
        "trigger_badge",
        "changed_by",
        "size_display",
        "compression_ratio",
        "has_been_restored",
        "created_at",
    ]
    list_filter = [
        "trigger_class",
        "backup_trigger",
        "has_been_restored",
        "change_day",
    ]
    search_fields = [
        "change_day_id",
        "change_day",
        "change_description",
        "changed_by__username",
    ]
    readonly_fields = [
        "id",
        "change_day_id",
        "change_day",
        "trigger_class",
        "first_change_timestamp",
        "included_data_types",
        "document_counts",
        "original_size",
        "compressed_size",
        "compression_ratio",
        "has_been_restored",
        "last_restored_at",
        "restored_by",
        "created_at",
        "updated_at",
    ]
    exclude = ["compressed_snapshot"]
    fieldsets = (
        (
            "Backup Information",
            {
                "fields": (
                    "id",
                    "change_day_id",
                    "change_day",
                    "trigger_class",
                    "first_change_timestamp",
                )
            },
        ),
        (
            "Change Context",
            {
                "fields": (
                    "changed_by",
                    "changed_areas",
                    "change_description",
                    "change_count",
                )
            },
        ),
        (
            "Snapshot",
            {
                "fields": (
                    "included_data_types",
                    "document_counts",
                    "original_size",
                    "compressed_size",
                    "compression_ratio",
                )
            },
        ),
        (
            "Restoration",
            {
                "fields": (
                    "has_been_restored",
                    "last_restored_at",
                    "restored_by",
                    "restoration_notes",
                )
            },
        ),
        (
            "Timestamps",
            {
                "fields": (
                    "created_at",
                    "updated_at",
                )
            },
        ),
    )
    ordering = ["-change_day", "-created_at"]

    def get_queryset(self, request):
        return super().get_queryset(request).summaries().select_related("changed_by")

    def has_add_permission(self, request):
        # Backups are only created through the backup service
        return False

    def trigger_badge(self, obj):
        """Display the trigger as a colored badge."""
        color = "purple" if obj.is_manual() else "blue"
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 10px; border-radius: 3px;">{}</span>',
            color,
            obj.get_backup_trigger_display(),
        )

    trigger_badge.short_description = "Trigger"

    def size_display(self, obj):
        """Display compressed size in human-readable format."""
        return f"{obj.get_compressed_size_kb():.2f} KB"

    size_display.short_description = "Size"
