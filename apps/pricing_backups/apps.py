"""
App configuration for the pricing backups app.
"""

from django.apps import AppConfig


class PricingBackupsConfig(AppConfig):
    """Configuration for the pricing backups app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.pricing_backups"
    verbose_name = "Pricing Backups"
