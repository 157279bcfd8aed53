"""
Pytest configuration and fixtures for pricing backup tests.
"""

import pytest

from apps.configuration.models import PriceFix, ProductCatalog, ServiceConfig
from apps.pricing_backups.collector import calculate_snapshot_metadata
from apps.pricing_backups.compression import compress_snapshot
from apps.pricing_backups.models import PricingBackup


def build_family(key, product_count):
    return {
        "key": key,
        "label": key.title(),
        "sortOrder": 1,
        "products": [
            {
                "key": f"{key}-{index}",
                "name": f"{key.title()} product {index}",
                "basePrice": {"amount": 10 + index, "currency": "USD", "unit": "each"},
            }
            for index in range(product_count)
        ],
    }


@pytest.fixture
def price_fix():
    return PriceFix.objects.create(
        key="default",
        label="Default pricing",
        services={
            "restroomHygiene": {"weekly": 25, "biweekly": 40},
            "foamingDrain": {"weekly": 10, "biweekly": 18},
        },
        trip_charge={"standard": 8, "beltway": 6},
    )


@pytest.fixture
def product_catalog():
    return ProductCatalog.objects.create(
        version="2024-01",
        last_updated="2024-01-15",
        families=[build_family("soap", 3), build_family("paper", 2)],
        is_active=True,
    )


@pytest.fixture
def service_config():
    return ServiceConfig.objects.create(
        service_id="saniclean",
        version="v1",
        label="SaniClean",
        config={"geographicPricing": {"insideBeltway": {"ratePerFixture": 7}}},
        is_active=True,
        tags=["restroom"],
    )


@pytest.fixture
def pricing_data(price_fix, product_catalog, service_config):
    """One document in each configuration store."""
    return {
        "price_fix": price_fix,
        "product_catalog": product_catalog,
        "service_config": service_config,
    }


def build_snapshot(price_fixes=None, catalogs=None, service_configs=None):
    """Build a snapshot payload from raw documents."""
    price_fixes = price_fixes or []
    catalogs = catalogs or []
    service_configs = service_configs or []
    return {
        "timestamp": "2024-01-15T10:00:00+00:00",
        "data_types": {
            "price_fix": {"documents": price_fixes, "count": len(price_fixes)},
            "product_catalog": {
                "documents": catalogs,
                "active": None,
                "count": len(catalogs),
                "active_count": 0,
                "product_count": 0,
            },
            "service_configs": {
                "documents": service_configs,
                "count": len(service_configs),
                "active_count": 0,
            },
        },
        "metadata": {
            "backup_version": "1.0",
            "total_documents": len(price_fixes) + len(catalogs) + len(service_configs),
        },
    }


@pytest.fixture
def make_backup():
    """
    Factory persisting a backup for an arbitrary change-day.

    The snapshot defaults to an empty payload; pass ``snapshot`` to store
    specific documents.
    """

    def _make_backup(change_day, trigger=PricingBackup.PRICEFIX_UPDATE, snapshot=None, **kwargs):
        snapshot = snapshot if snapshot is not None else build_snapshot()
        compression_result = compress_snapshot(snapshot)
        backup = PricingBackup(
            change_day=change_day,
            first_change_timestamp=kwargs.pop("first_change_timestamp", None)
            or "2024-01-15T10:00:00+00:00",
            compressed_snapshot=compression_result["compressed_data"],
            backup_trigger=trigger,
            **calculate_snapshot_metadata(snapshot, compression_result),
            **kwargs,
        )
        return PricingBackup.objects.put(backup)

    return _make_backup


@pytest.fixture
def snapshot_builder():
    """Expose build_snapshot to tests."""
    return build_snapshot
