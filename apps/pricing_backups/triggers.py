"""
Pricing change detection and backup triggering.

Writes to the pricing configuration stores request the automatic backup of
the day before they are applied. The request is queued to Celery and never
waits on, or fails, the write itself.
"""

import logging
from typing import List, Optional

from .models import PricingBackup
from .tasks import create_pricing_backup_if_needed

logger = logging.getLogger(__name__)

SERVICE_AREA_MAPPING = {
    "saniclean": "service_config_saniclean",
    "foamingdrain": "service_config_foamingdrain",
    "scrubservice": "service_config_scrubservice",
    "saniscrub": "service_config_scrubservice",
    "handsanitizer": "service_config_handsanitizer",
    "micromaxfloor": "service_config_micromaxfloor",
    "microfibermopping": "service_config_micromaxfloor",
    "rpmwindow": "service_config_rpmwindow",
    "rpmwindows": "service_config_rpmwindow",
    "sanipod": "service_config_sanipod",
}

# Catalog fields that describe the catalog itself rather than its products
CATALOG_METADATA_FIELDS = ("families", "version", "last_updated")


def _unique(areas: List[str]) -> List[str]:
    return list(dict.fromkeys(areas))


def detect_price_fix_changed_areas(data: dict) -> List[str]:
    """Determine which price fix areas a write touches."""
    areas = []
    services = data.get("services")

    if services:
        areas.append("pricefix_services")
    if data.get("trip_charge") or (isinstance(services, dict) and services.get("tripCharge")):
        areas.append("pricefix_tripcharge")

    if not areas:
        return ["other"]

    return _unique(areas)


def detect_product_catalog_changed_areas(data: dict, partial: bool = False) -> List[str]:
    """Determine which product catalog areas a write touches."""
    areas = []

    families = data.get("families")
    if families:
        if isinstance(families, list) and any(
            isinstance(family, dict) and family.get("products") for family in families
        ):
            areas.append("product_catalog_products")
        areas.append("product_catalog_families")

    if partial and any(key not in CATALOG_METADATA_FIELDS for key in data):
        areas.append("product_catalog_products")

    return _unique(areas) or ["product_catalog_families"]


def detect_service_config_changed_areas(service_id: Optional[str]) -> List[str]:
    """Map a service id to its changed area; unknown services count as custom."""
    return [SERVICE_AREA_MAPPING.get((service_id or "").lower(), "service_config_custom")]


def count_product_catalog_changes(data: dict, partial: bool = False) -> int:
    """
    Count the changes in a product catalog write.

    Each product of each submitted family counts as one change, a family
    without products as one. Partial updates also count their top-level keys.
    """
    change_count = 0

    families = data.get("families")
    if isinstance(families, list):
        for family in families:
            products = family.get("products") if isinstance(family, dict) else None
            if isinstance(products, list):
                change_count += len(products)
            else:
                change_count += 1

    if partial:
        change_count += len(data)

    return max(change_count, 1)


def request_backup(
    trigger: str,
    changed_by=None,
    changed_areas: Optional[List[str]] = None,
    change_description: str = "",
    change_count: int = 1,
) -> dict:
    """
    Queue the automatic backup of the day.

    Returns:
        Dictionary with queued flag and task id, or the broker error
    """
    username = changed_by.get_username() if changed_by else "Unknown"
    logger.info(f"Requesting pricing backup before {trigger} by {username}")

    try:
        task = create_pricing_backup_if_needed.delay(
            trigger=trigger,
            changed_by_id=changed_by.pk if changed_by else None,
            changed_areas=changed_areas or ["other"],
            change_description=(change_description or "")[:500],
            change_count=max(int(change_count or 1), 1),
        )
    except Exception as e:
        logger.error(f"Failed to queue pricing backup: {e}", exc_info=True)
        return {"queued": False, "task_id": None, "error": str(e)}

    return {"queued": True, "task_id": task.id, "error": None}


def request_price_fix_backup(data: dict, changed_by=None) -> dict:
    changed_areas = detect_price_fix_changed_areas(data)
    username = changed_by.get_username() if changed_by else "Unknown"
    return request_backup(
        trigger=PricingBackup.PRICEFIX_UPDATE,
        changed_by=changed_by,
        changed_areas=changed_areas,
        change_description=f"PriceFix update by {username}: {', '.join(changed_areas)}",
        change_count=len(data),
    )


def request_product_catalog_backup(data: dict, changed_by=None, partial: bool = False) -> dict:
    changed_areas = detect_product_catalog_changed_areas(data, partial)
    username = changed_by.get_username() if changed_by else "Unknown"
    return request_backup(
        trigger=PricingBackup.PRODUCT_CATALOG_UPDATE,
        changed_by=changed_by,
        changed_areas=changed_areas,
        change_description=(
            f"ProductCatalog {'partial' if partial else 'full'} update by {username}: "
            f"{', '.join(changed_areas)}"
        ),
        change_count=count_product_catalog_changes(data, partial),
    )


def request_service_config_backup(
    data: dict, service_id: Optional[str] = None, changed_by=None, partial: bool = False
) -> dict:
    service_id = service_id or data.get("service_id") or "unknown"
    username = changed_by.get_username() if changed_by else "Unknown"
    return request_backup(
        trigger=PricingBackup.SERVICE_CONFIG_UPDATE,
        changed_by=changed_by,
        changed_areas=detect_service_config_changed_areas(service_id),
        change_description=(
            f"ServiceConfig {'partial' if partial else 'full'} update for {service_id} by {username}"
        ),
        change_count=len(data),
    )
