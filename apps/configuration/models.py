"""
Pricing configuration models.

The payloads stored here (service pricing tables, catalog families, service
configuration objects) have no fixed schema; they are kept as JSON so the
backup system can mirror them without knowing their internal shape.
"""

from django.db import models
from django.utils import timezone


class ConfigurationDocument(models.Model):
    """
    Abstract base for configuration documents.

    Timestamps use plain defaults rather than auto_now so that restored
    documents keep the timestamps recorded in the snapshot.
    """

    created_at = models.DateTimeField(
        default=timezone.now,
        help_text="Timestamp when the document was created",
    )

    updated_at = models.DateTimeField(
        default=timezone.now,
        help_text="Timestamp when the document was last updated",
    )

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if self.pk:
            self.updated_at = timezone.now()
        super().save(*args, **kwargs)


class PriceFix(ConfigurationDocument):
    """
    Service pricing master.

    Holds per-service pricing tables (restroom hygiene, foaming drain,
    scrub service, ...) and the trip charge schedule.
    """

    key = models.CharField(
        max_length=100,
        help_text="Identifier of the pricing document (e.g. 'default')",
    )

    label = models.CharField(
        max_length=255,
        blank=True,
        help_text="Human readable label",
    )

    services = models.JSONField(
        default=dict,
        blank=True,
        help_text="Pricing tables keyed by service",
    )

    trip_charge = models.JSONField(
        default=dict,
        blank=True,
        help_text="Trip charge pricing",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this pricing document is currently in use",
    )

    notes = models.TextField(
        blank=True,
        help_text="Free-text notes",
    )

    class Meta:
        db_table = "configuration_price_fix"
        ordering = ["id"]
        verbose_name = "Price Fix"
        verbose_name_plural = "Price Fixes"

    def __str__(self):
        return f"PriceFix {self.key}"


class ProductCatalog(ConfigurationDocument):
    """
    Versioned product catalog.

    ``families`` is a list of ``{"key", "label", "sortOrder", "products": [...]}``
    objects; each product carries its own pricing.
    """

    version = models.CharField(
        max_length=100,
        help_text="Catalog version identifier",
    )

    last_updated = models.CharField(
        max_length=100,
        blank=True,
        help_text="Free-form last updated marker supplied by the editor",
    )

    currency = models.CharField(
        max_length=3,
        default="USD",
    )

    families = models.JSONField(
        default=list,
        blank=True,
        help_text="Product families with their products",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this catalog is the active one",
    )

    note = models.TextField(blank=True)

    class Meta:
        db_table = "configuration_product_catalog"
        ordering = ["id"]
        indexes = [
            models.Index(fields=["is_active"], name="catalog_active_idx"),
        ]
        verbose_name = "Product Catalog"
        verbose_name_plural = "Product Catalogs"

    def __str__(self):
        return f"ProductCatalog {self.version}"

    def get_product_count(self):
        """Count products across all families."""
        return count_catalog_products(self.families)


class ServiceConfig(ConfigurationDocument):
    """
    Pricing configuration for a single service (saniclean, sanipod, ...).
    """

    service_id = models.CharField(
        max_length=100,
        help_text="Service identifier, e.g. 'saniclean'",
    )

    version = models.CharField(
        max_length=100,
        help_text="Configuration version, e.g. 'v1'",
    )

    label = models.CharField(max_length=255, blank=True)

    description = models.TextField(blank=True)

    config = models.JSONField(
        help_text="The pricing configuration object",
    )

    default_form_state = models.JSONField(
        null=True,
        blank=True,
        help_text="Optional default form state for the admin editor",
    )

    is_active = models.BooleanField(
        default=False,
        help_text="Whether this configuration is currently in use for the service",
    )

    admin_by_display = models.BooleanField(
        default=True,
        help_text="Whether to display in the admin form by default",
    )

    tags = models.JSONField(
        default=list,
        blank=True,
    )

    class Meta:
        db_table = "configuration_service_config"
        ordering = ["id"]
        indexes = [
            models.Index(fields=["service_id", "is_active"], name="service_config_active_idx"),
        ]
        verbose_name = "Service Config"
        verbose_name_plural = "Service Configs"

    def __str__(self):
        return f"ServiceConfig {self.service_id} ({self.version})"


def count_catalog_products(families) -> int:
    """
    Count products across a list of catalog families.

    Families without a products list count as zero.
    """
    if not isinstance(families, list):
        return 0

    total = 0
    for family in families:
        if isinstance(family, dict) and isinstance(family.get("products"), list):
            total += len(family["products"])
    return total
