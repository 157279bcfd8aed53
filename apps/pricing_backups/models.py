"""
Pricing backup models.

A PricingBackup is a compressed, point-in-time copy of all pricing
configuration data (price fixes, product catalogs, service configs).
Backups are partitioned by change-day: at most one automatic and one manual
backup exist per calendar day, and retention evicts whole days at a time.
"""

import time
import uuid
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxLengthValidator, MinValueValidator, RegexValidator
from django.db import IntegrityError, models, transaction
from django.utils import timezone

from .compression import decompress_snapshot
from .exceptions import DuplicateSnapshotError, SnapshotNotFoundError

CHANGE_DAY_FORMAT = "%Y-%m-%d"

change_day_validator = RegexValidator(
    regex=r"^\d{4}-\d{2}-\d{2}$",
    message="changeDay must be in YYYY-MM-DD format",
)


def get_current_change_day(now: Optional[datetime] = None) -> str:
    """
    Get the current change-day string (YYYY-MM-DD).

    The day boundary is pinned to PRICING_BACKUP_TIMEZONE (UTC by default)
    so every deployment agrees on which day a change belongs to.
    """
    now = now or timezone.now()
    tz = ZoneInfo(getattr(settings, "PRICING_BACKUP_TIMEZONE", "UTC"))
    return now.astimezone(tz).strftime(CHANGE_DAY_FORMAT)


class PricingBackupQuerySet(models.QuerySet):
    """Snapshot store operations for pricing backups."""

    def summaries(self):
        """Exclude the compressed payload so listing never loads snapshot bytes."""
        return self.defer("compressed_snapshot")

    def for_day(self, change_day: str, trigger_class: Optional[str] = None):
        queryset = self.filter(change_day=change_day)
        if trigger_class:
            queryset = queryset.filter(trigger_class=trigger_class)
        return queryset

    def distinct_change_days(self) -> list:
        """Return the distinct change-days present, most recent first."""
        return list(
            self.order_by("-change_day").values_list("change_day", flat=True).distinct()
        )

    def last_n_change_days(self, n: int):
        """
        Return every backup (automatic and manual) of the N most recent change-days,
        most recent day first, without the compressed payload.
        """
        change_days = self.distinct_change_days()[:n]
        return (
            self.summaries()
            .filter(change_day__in=change_days)
            .order_by("-change_day", "-created_at")
        )

    def get_by_change_day_id(self, change_day_id: str):
        try:
            return self.get(change_day_id=change_day_id)
        except self.model.DoesNotExist:
            raise SnapshotNotFoundError(change_day_id)

    def put(self, backup):
        """
        Validate and persist a backup.

        Raises:
            ValidationError: If a field is malformed (e.g. change_day format)
            DuplicateSnapshotError: If the change-day id or day slot is already taken
        """
        backup.assign_identifiers()
        backup.full_clean(validate_unique=False, validate_constraints=False)

        try:
            with transaction.atomic():
                backup.save(force_insert=True)
        except IntegrityError as e:
            raise DuplicateSnapshotError(
                f"Backup already exists for {backup.change_day} ({backup.trigger_class}): {e}"
            ) from e

        return backup

    def delete_by_change_day_ids(self, change_day_ids) -> int:
        _, deleted = self.filter(change_day_id__in=list(change_day_ids)).delete()
        return deleted.get(self.model._meta.label, 0)

    def delete_all_for_change_day(self, change_day: str) -> int:
        _, deleted = self.filter(change_day=change_day).delete()
        return deleted.get(self.model._meta.label, 0)


class PricingBackup(models.Model):
    """
    Compressed snapshot of all pricing configuration data for one change-day.

    Automatic backups (created before the first pricing change of a day, or
    by the scheduler) and manual backups occupy separate slots of the same
    change-day; the (change_day, trigger_class) pair is unique.
    """

    # Trigger choices
    PRICEFIX_UPDATE = "pricefix_update"
    PRODUCT_CATALOG_UPDATE = "product_catalog_update"
    SERVICE_CONFIG_UPDATE = "service_config_update"
    MANUAL = "manual"
    SCHEDULED = "scheduled"

    TRIGGER_CHOICES = [
        (PRICEFIX_UPDATE, "PriceFix Update"),
        (PRODUCT_CATALOG_UPDATE, "Product Catalog Update"),
        (SERVICE_CONFIG_UPDATE, "Service Config Update"),
        (MANUAL, "Manual"),
        (SCHEDULED, "Scheduled"),
    ]

    # Trigger class choices
    AUTO = "AUTO"
    MANUAL_CLASS = "MANUAL"

    TRIGGER_CLASS_CHOICES = [
        (AUTO, "Automatic"),
        (MANUAL_CLASS, "Manual"),
    ]

    CHANGED_AREA_CHOICES = [
        ("pricefix_services", "PriceFix services"),
        ("pricefix_tripcharge", "PriceFix trip charge"),
        ("product_catalog_families", "Product catalog families"),
        ("product_catalog_products", "Product catalog products"),
        ("service_config_saniclean", "SaniClean config"),
        ("service_config_foamingdrain", "Foaming drain config"),
        ("service_config_scrubservice", "Scrub service config"),
        ("service_config_handsanitizer", "Hand sanitizer config"),
        ("service_config_micromaxfloor", "Micromax floor config"),
        ("service_config_rpmwindow", "RPM window config"),
        ("service_config_sanipod", "SaniPod config"),
        ("service_config_custom", "Custom service config"),
        ("other", "Other"),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the backup",
    )

    change_day_id = models.CharField(
        max_length=100,
        unique=True,
        help_text="Unique identifier for this change-day backup",
    )

    change_day = models.CharField(
        max_length=10,
        validators=[change_day_validator],
        help_text="Calendar day (YYYY-MM-DD) the backup belongs to",
    )

    trigger_class = models.CharField(
        max_length=10,
        choices=TRIGGER_CLASS_CHOICES,
        help_text="Automatic or manual slot of the change-day",
    )

    first_change_timestamp = models.DateTimeField(
        help_text="Timestamp of the first change of the day",
    )

    compressed_snapshot = models.BinaryField(
        help_text="Gzip-compressed JSON snapshot of all pricing data",
    )

    # Snapshot metadata
    included_data_types = models.JSONField(
        default=dict,
        blank=True,
        help_text="Which pricing data types are included in the snapshot",
    )

    document_counts = models.JSONField(
        default=dict,
        blank=True,
        help_text="Document counts per data type (products counted within catalog families)",
    )

    original_size = models.BigIntegerField(
        validators=[MinValueValidator(0)],
        help_text="Size of the serialized snapshot in bytes",
    )

    compressed_size = models.BigIntegerField(
        validators=[MinValueValidator(0)],
        help_text="Size of the compressed snapshot in bytes",
    )

    compression_ratio = models.FloatField(
        help_text="Compressed size divided by original size (e.g. 0.3 means 70% reduction)",
    )

    backup_trigger = models.CharField(
        max_length=50,
        choices=TRIGGER_CHOICES,
        help_text="What triggered this backup",
    )

    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="pricing_backups",
        help_text="User whose change triggered the backup (null for scheduled backups)",
    )

    # Change context
    changed_areas = models.JSONField(
        default=list,
        blank=True,
        help_text="Pricing areas that were changed",
    )

    change_description = models.TextField(
        blank=True,
        validators=[MaxLengthValidator(500)],
        help_text="Brief description of the change",
    )

    change_count = models.PositiveIntegerField(
        default=1,
        help_text="Number of individual changes made",
    )

    # Restoration tracking
    has_been_restored = models.BooleanField(default=False)

    last_restored_at = models.DateTimeField(null=True, blank=True)

    restored_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="restored_pricing_backups",
        help_text="User who last restored this backup",
    )

    restoration_notes = models.TextField(
        blank=True,
        validators=[MaxLengthValidator(1000)],
    )

    created_at = models.DateTimeField(auto_now_add=True)

    updated_at = models.DateTimeField(auto_now=True)

    objects = PricingBackupQuerySet.as_manager()

    class Meta:
        db_table = "pricing_backups_backup"
        ordering = ["-change_day", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["change_day", "trigger_class"],
                name="pricing_backup_one_per_day_slot",
            ),
        ]
        indexes = [
            models.Index(fields=["-change_day", "-created_at"], name="pricing_backup_day_idx"),
            models.Index(fields=["backup_trigger", "-change_day"], name="pricing_backup_trigger_idx"),
            models.Index(fields=["changed_by", "-change_day"], name="pricing_backup_user_idx"),
        ]
        verbose_name = "Pricing Backup"
        verbose_name_plural = "Pricing Backups"

    def __str__(self):
        return f"{self.get_backup_trigger_display()} - {self.change_day} ({self.change_day_id})"

    @classmethod
    def trigger_class_for(cls, trigger: str) -> str:
        """Map a backup trigger to its change-day slot."""
        return cls.MANUAL_CLASS if trigger == cls.MANUAL else cls.AUTO

    @classmethod
    def generate_change_day_id(cls, change_day: str, trigger_class: str) -> str:
        """
        Generate the change-day id.

        Manual backups use a fixed id per day; automatic ones embed the
        creation time in milliseconds.
        """
        if trigger_class == cls.MANUAL_CLASS:
            return f"backup_{change_day}_manual"
        return f"backup_{change_day}_{int(time.time() * 1000)}"

    def assign_identifiers(self):
        """Derive trigger_class and change_day_id when they are not set."""
        if not self.trigger_class and self.backup_trigger:
            self.trigger_class = self.trigger_class_for(self.backup_trigger)
        if not self.change_day_id and self.change_day and self.trigger_class:
            self.change_day_id = self.generate_change_day_id(self.change_day, self.trigger_class)

    def save(self, *args, **kwargs):
        self.assign_identifiers()
        super().save(*args, **kwargs)

    def clean(self):
        if self.backup_trigger and self.trigger_class != self.trigger_class_for(self.backup_trigger):
            raise ValidationError(
                {"trigger_class": "Trigger class does not match the backup trigger"}
            )

        if not isinstance(self.changed_areas, list):
            raise ValidationError({"changed_areas": "Changed areas must be a list"})

        allowed = {value for value, _ in self.CHANGED_AREA_CHOICES}
        invalid = [area for area in self.changed_areas if area not in allowed]
        if invalid:
            raise ValidationError(
                {"changed_areas": f"Unknown changed areas: {', '.join(map(str, invalid))}"}
            )

    def is_manual(self):
        """Check if this backup occupies the manual slot of its day."""
        return self.trigger_class == self.MANUAL_CLASS

    def get_snapshot(self):
        """Decompress and return the snapshot payload."""
        return decompress_snapshot(self.compressed_snapshot)

    def get_compressed_size_kb(self):
        """Get compressed snapshot size in kilobytes."""
        return round(self.compressed_size / 1024, 2)

    def mark_restored(self, restored_by=None, notes=""):
        """Record a restoration of this backup."""
        self.has_been_restored = True
        self.last_restored_at = timezone.now()
        self.restored_by = restored_by
        self.restoration_notes = (notes or "")[:1000]
        self.save(
            update_fields=[
                "has_been_restored",
                "last_restored_at",
                "restored_by",
                "restoration_notes",
                "updated_at",
            ]
        )
