"""
Document store adapters for the configuration models.

The backup system treats every configuration data set as a collection of
opaque documents. ``DocumentStore`` exposes a model through that narrow
interface: list everything, delete everything, bulk insert documents.
"""

import json
import logging
from typing import Dict, Iterable, List

from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import transaction

from .models import PriceFix, ProductCatalog, ServiceConfig

logger = logging.getLogger(__name__)

# Data type keys used in snapshots
PRICE_FIX = "price_fix"
PRODUCT_CATALOG = "product_catalog"
SERVICE_CONFIGS = "service_configs"

DATA_TYPES = (PRICE_FIX, PRODUCT_CATALOG, SERVICE_CONFIGS)

# Keys dropped before insert so the database assigns fresh identifiers
IDENTIFIER_KEYS = ("id", "_id", "pk")


class DocumentStore:
    """Expose a configuration model as a collection of JSON documents."""

    def __init__(self, model):
        self.model = model
        self.field_names = {
            field.attname for field in model._meta.concrete_fields if not field.primary_key
        }

    def __repr__(self):
        return f"DocumentStore({self.model.__name__})"

    def to_document(self, instance) -> dict:
        """
        Convert a model instance into a JSON-native document.

        Datetimes become ISO-8601 strings so the document survives a JSON
        round trip unchanged.
        """
        document = {"id": instance.pk}
        for field in instance._meta.concrete_fields:
            if field.primary_key:
                continue
            document[field.attname] = field.value_from_object(instance)
        return json.loads(json.dumps(document, cls=DjangoJSONEncoder))

    def list_all(self) -> List[dict]:
        """Return every document in the store, ordered by identifier."""
        return [self.to_document(instance) for instance in self.model.objects.order_by("pk")]

    def delete_all(self) -> int:
        """Delete every document. Returns the number of deleted documents."""
        _, deleted = self.model.objects.all().delete()
        return deleted.get(self.model._meta.label, 0)

    def build_instance(self, document: dict):
        """
        Build and validate an unsaved instance from a document.

        Raises:
            ValidationError: If the document has unknown fields or fails model validation
        """
        if not isinstance(document, dict):
            raise ValidationError(f"{self.model.__name__} document must be an object")

        fields = {key: value for key, value in document.items() if key not in IDENTIFIER_KEYS}

        unknown = sorted(set(fields) - self.field_names)
        if unknown:
            raise ValidationError(
                f"Unknown {self.model.__name__} fields: {', '.join(unknown)}"
            )

        instance = self.model(**fields)
        instance.full_clean()
        return instance

    def bulk_insert(self, documents: Iterable[dict]) -> int:
        """
        Insert documents with their identifiers stripped.

        Every document is validated before anything is written, so a single
        invalid document rejects the whole batch.
        """
        instances = [self.build_instance(document) for document in documents]
        self.model.objects.bulk_create(instances)
        return len(instances)

    def replace_all(self, documents: Iterable[dict]) -> int:
        """
        Replace the whole store with the given documents in one transaction.

        Returns:
            Number of inserted documents
        """
        documents = list(documents)
        with transaction.atomic():
            deleted = self.delete_all()
            inserted = self.bulk_insert(documents)

        logger.info(
            f"Replaced {self.model.__name__} store: {deleted} deleted, {inserted} inserted"
        )
        return inserted


def get_document_stores() -> Dict[str, DocumentStore]:
    """Return the live configuration stores keyed by snapshot data type."""
    return {
        PRICE_FIX: DocumentStore(PriceFix),
        PRODUCT_CATALOG: DocumentStore(ProductCatalog),
        SERVICE_CONFIGS: DocumentStore(ServiceConfig),
    }
