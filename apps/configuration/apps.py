"""
App configuration for the configuration app.
"""

from django.apps import AppConfig


class ConfigurationConfig(AppConfig):
    """Configuration for the configuration app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.configuration"
    verbose_name = "Pricing Configuration"
