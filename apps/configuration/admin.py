"""
Admin interface for pricing configuration models.
"""

from django.contrib import admin

from .models import PriceFix, ProductCatalog, ServiceConfig


@admin.register(PriceFix)
class PriceFixAdmin(admin.ModelAdmin):
    """Admin interface for PriceFix model."""

    list_display = ["key", "label", "is_active", "updated_at"]
    list_filter = ["is_active"]
    search_fields = ["key", "label"]
    readonly_fields = ["created_at", "updated_at"]


@admin.register(ProductCatalog)
class ProductCatalogAdmin(admin.ModelAdmin):
    """Admin interface for ProductCatalog model."""

    list_display = ["version", "currency", "product_count", "is_active", "updated_at"]
    list_filter = ["is_active", "currency"]
    search_fields = ["version", "note"]
    readonly_fields = ["created_at", "updated_at"]

    def product_count(self, obj):
        return obj.get_product_count()

    product_count.short_description = "Products"


@admin.register(ServiceConfig)
class ServiceConfigAdmin(admin.ModelAdmin):
    """Admin interface for ServiceConfig model."""

    list_display = ["service_id", "version", "label", "is_active", "admin_by_display", "updated_at"]
    list_filter = ["is_active", "service_id"]
    search_fields = ["service_id", "label", "description"]
    readonly_fields = ["created_at", "updated_at"]
