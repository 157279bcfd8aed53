"""
Snapshot collection from the live configuration stores.
"""

import logging
from typing import Dict, Optional

from django.utils import timezone

from apps.configuration.models import count_catalog_products
from apps.configuration.stores import (
    DATA_TYPES,
    PRICE_FIX,
    PRODUCT_CATALOG,
    SERVICE_CONFIGS,
    DocumentStore,
    get_document_stores,
)

from .exceptions import CollectionError

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"


class SnapshotCollector:
    """
    Read the current state of every configuration store into one payload.

    The collection is a single logical read: if any store cannot be read,
    ``gather`` raises CollectionError and no snapshot should be written.
    """

    def __init__(self, stores: Optional[Dict[str, DocumentStore]] = None):
        self.stores = stores if stores is not None else get_document_stores()

    def gather(self) -> dict:
        """
        Collect all current pricing data.

        Returns:
            Snapshot payload with documents and counts per data type

        Raises:
            CollectionError: If any configuration store cannot be read
        """
        documents = {}
        for data_type in DATA_TYPES:
            try:
                documents[data_type] = list(self.stores[data_type].list_all())
            except Exception as e:
                logger.error(f"Failed to read {data_type} store: {e}")
                raise CollectionError(f"Failed to collect {data_type} data: {e}") from e

        price_fixes = documents[PRICE_FIX]
        catalogs = documents[PRODUCT_CATALOG]
        service_configs = documents[SERVICE_CONFIGS]

        active_catalog = next((catalog for catalog in catalogs if catalog.get("is_active")), None)

        snapshot = {
            "timestamp": timezone.now().isoformat(),
            "data_types": {
                PRICE_FIX: {
                    "documents": price_fixes,
                    "count": len(price_fixes),
                },
                PRODUCT_CATALOG: {
                    "documents": catalogs,
                    "active": active_catalog,
                    "count": len(catalogs),
                    "active_count": 1 if active_catalog else 0,
                    "product_count": count_snapshot_products(catalogs),
                },
                SERVICE_CONFIGS: {
                    "documents": service_configs,
                    "count": len(service_configs),
                    "active_count": sum(1 for config in service_configs if config.get("is_active")),
                },
            },
            "metadata": {
                "backup_version": BACKUP_VERSION,
                "total_documents": len(price_fixes) + len(catalogs) + len(service_configs),
            },
        }

        logger.info(
            f"Collected pricing snapshot: {len(price_fixes)} price fixes, "
            f"{len(catalogs)} catalogs, {len(service_configs)} service configs"
        )

        return snapshot


def count_snapshot_products(catalogs) -> int:
    """Count products across the families of every catalog document."""
    return sum(count_catalog_products(catalog.get("families")) for catalog in catalogs or [])


def get_snapshot_documents(snapshot: dict, data_type: str) -> list:
    """Return the documents of one data type, or an empty list if absent."""
    section = (snapshot.get("data_types") or {}).get(data_type) or {}
    documents = section.get("documents")
    return documents if isinstance(documents, list) else []


def count_snapshot_documents(snapshot: dict) -> dict:
    """
    Compute document counts for a snapshot payload.

    Product catalogs are counted by the products inside their families,
    which is the number administrators care about.
    """
    return {
        "price_fix_count": len(get_snapshot_documents(snapshot, PRICE_FIX)),
        "product_catalog_count": count_snapshot_products(
            get_snapshot_documents(snapshot, PRODUCT_CATALOG)
        ),
        "service_config_count": len(get_snapshot_documents(snapshot, SERVICE_CONFIGS)),
    }


def calculate_snapshot_metadata(snapshot: dict, compression_result: dict) -> dict:
    """
    Calculate the metadata stored alongside a compressed snapshot.

    All data types are always included, even when empty: an empty store is
    part of the state being captured.
    """
    return {
        "included_data_types": {data_type: True for data_type in DATA_TYPES},
        "document_counts": count_snapshot_documents(snapshot),
        "original_size": compression_result["original_size"],
        "compressed_size": compression_result["compressed_size"],
        "compression_ratio": compression_result["compression_ratio"],
    }
