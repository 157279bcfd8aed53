"""
API views for pricing configuration documents.

Every create or update first requests the automatic pricing backup of the
day, so the state before the first change of a day can be restored. The
backup status is reported back under ``pricing_backup``.
"""

from rest_framework import generics, permissions

from apps.pricing_backups.triggers import (
    request_price_fix_backup,
    request_product_catalog_backup,
    request_service_config_backup,
)

from .models import PriceFix, ProductCatalog, ServiceConfig
from .serializers import PriceFixSerializer, ProductCatalogSerializer, ServiceConfigSerializer


class PricingBackupMixin:
    """Request a pricing backup before a write and report it in the response."""

    backup_result = None

    def request_pricing_backup(self, serializer):
        raise NotImplementedError

    def perform_create(self, serializer):
        self.backup_result = self.request_pricing_backup(serializer)
        super().perform_create(serializer)

    def perform_update(self, serializer):
        self.backup_result = self.request_pricing_backup(serializer)
        super().perform_update(serializer)

    def finalize_response(self, request, response, *args, **kwargs):
        if self.backup_result is not None and isinstance(response.data, dict):
            response.data["pricing_backup"] = self.backup_result
        return super().finalize_response(request, response, *args, **kwargs)


class PriceFixListCreateAPIView(PricingBackupMixin, generics.ListCreateAPIView):
    """API endpoint for listing and creating price fixes."""

    queryset = PriceFix.objects.all()
    serializer_class = PriceFixSerializer
    permission_classes = [permissions.IsAdminUser]

    def request_pricing_backup(self, serializer):
        return request_price_fix_backup(self.request.data, changed_by=self.request.user)


class PriceFixDetailAPIView(PricingBackupMixin, generics.RetrieveUpdateAPIView):
    """API endpoint for retrieving and updating a price fix."""

    queryset = PriceFix.objects.all()
    serializer_class = PriceFixSerializer
    permission_classes = [permissions.IsAdminUser]

    def request_pricing_backup(self, serializer):
        return request_price_fix_backup(self.request.data, changed_by=self.request.user)


class ProductCatalogListCreateAPIView(PricingBackupMixin, generics.ListCreateAPIView):
    """API endpoint for listing and creating product catalogs."""

    queryset = ProductCatalog.objects.all()
    serializer_class = ProductCatalogSerializer
    permission_classes = [permissions.IsAdminUser]

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.request.query_params.get("active") == "true":
            queryset = queryset.filter(is_active=True)
        return queryset

    def request_pricing_backup(self, serializer):
        return request_product_catalog_backup(self.request.data, changed_by=self.request.user)


class ProductCatalogDetailAPIView(PricingBackupMixin, generics.RetrieveUpdateAPIView):
    """API endpoint for retrieving and updating a product catalog."""

    queryset = ProductCatalog.objects.all()
    serializer_class = ProductCatalogSerializer
    permission_classes = [permissions.IsAdminUser]

    def request_pricing_backup(self, serializer):
        return request_product_catalog_backup(
            self.request.data,
            changed_by=self.request.user,
            partial=serializer.partial,
        )


class ServiceConfigListCreateAPIView(PricingBackupMixin, generics.ListCreateAPIView):
    """API endpoint for listing and creating service configs."""

    queryset = ServiceConfig.objects.all()
    serializer_class = ServiceConfigSerializer
    permission_classes = [permissions.IsAdminUser]

    def get_queryset(self):
        queryset = super().get_queryset()

        service_id = self.request.query_params.get("service_id")
        if service_id:
            queryset = queryset.filter(service_id=service_id)

        if self.request.query_params.get("active") == "true":
            queryset = queryset.filter(is_active=True)

        return queryset

    def request_pricing_backup(self, serializer):
        return request_service_config_backup(
            self.request.data,
            service_id=serializer.validated_data.get("service_id"),
            changed_by=self.request.user,
        )


class ServiceConfigDetailAPIView(PricingBackupMixin, generics.RetrieveUpdateAPIView):
    """API endpoint for retrieving and updating a service config."""

    queryset = ServiceConfig.objects.all()
    serializer_class = ServiceConfigSerializer
    permission_classes = [permissions.IsAdminUser]

    def request_pricing_backup(self, serializer):
        return request_service_config_backup(
            self.request.data,
            service_id=serializer.instance.service_id,
            changed_by=self.request.user,
            partial=serializer.partial,
        )
