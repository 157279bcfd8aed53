"""
Serializers for pricing configuration documents.
"""

from rest_framework import serializers

from .models import PriceFix, ProductCatalog, ServiceConfig


class PriceFixSerializer(serializers.ModelSerializer):
    """Serializer for PriceFix model."""

    class Meta:
        model = PriceFix
        fields = [
            "id",
            "key",
            "label",
            "services",
            "trip_charge",
            "is_active",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]


class ProductCatalogSerializer(serializers.ModelSerializer):
    """Serializer for ProductCatalog model."""

    product_count = serializers.SerializerMethodField()

    class Meta:
        model = ProductCatalog
        fields = [
            "id",
            "version",
            "last_updated",
            "currency",
            "families",
            "is_active",
            "note",
            "product_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def get_product_count(self, obj):
        """Get number of products across all families."""
        return obj.get_product_count()

    def validate_families(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Families must be a list")
        return value


class ServiceConfigSerializer(serializers.ModelSerializer):
    """Serializer for ServiceConfig model."""

    class Meta:
        model = ServiceConfig
        fields = [
            "id",
            "service_id",
            "version",
            "label",
            "description",
            "config",
            "default_form_state",
            "is_active",
            "admin_by_display",
            "tags",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_tags(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Tags must be a list")
        return value
