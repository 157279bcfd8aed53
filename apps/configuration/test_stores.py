"""
Tests for the configuration document stores.
"""

from django.core.exceptions import ValidationError

import pytest

from apps.configuration.models import PriceFix, ProductCatalog, ServiceConfig
from apps.configuration.stores import DATA_TYPES, DocumentStore, get_document_stores


@pytest.mark.django_db
class TestDocumentStore:
    """Test exposing configuration models as document collections."""

    def test_list_all_returns_json_documents(self):
        catalog = ProductCatalog.objects.create(
            version="v1",
            families=[{"key": "soap", "products": [{"key": "a"}]}],
        )

        documents = DocumentStore(ProductCatalog).list_all()

        assert len(documents) == 1
        assert documents[0]["id"] == catalog.pk
        assert documents[0]["families"] == [{"key": "soap", "products": [{"key": "a"}]}]
        assert documents[0]["currency"] == "USD"
        assert isinstance(documents[0]["created_at"], str)

    def test_bulk_insert_strips_identifiers(self):
        existing = PriceFix.objects.create(key="existing")
        store = DocumentStore(PriceFix)

        inserted = store.bulk_insert([{"id": existing.pk, "key": "copy"}, {"_id": "abc", "key": "other"}])

        assert inserted == 2
        assert PriceFix.objects.count() == 3
        assert PriceFix.objects.get(pk=existing.pk).key == "existing"

    def test_bulk_insert_validates_every_document(self):
        store = DocumentStore(ServiceConfig)

        with pytest.raises(ValidationError):
            store.bulk_insert(
                [
                    {"service_id": "saniclean", "version": "v1", "config": {"rate": 1}},
                    {"service_id": "sanipod", "version": "v1"},
                ]
            )

        assert ServiceConfig.objects.count() == 0

    def test_bulk_insert_rejects_unknown_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            DocumentStore(PriceFix).bulk_insert([{"key": "a", "colour": "red"}])

        assert "colour" in exc_info.value.messages[0]

    def test_bulk_insert_rejects_non_objects(self):
        with pytest.raises(ValidationError):
            DocumentStore(PriceFix).bulk_insert(["not a document"])

    def test_replace_all_is_atomic(self):
        PriceFix.objects.create(key="live")
        store = DocumentStore(PriceFix)

        with pytest.raises(ValidationError):
            store.replace_all([{"key": "new"}, {"key": None}])

        assert list(PriceFix.objects.values_list("key", flat=True)) == ["live"]

    def test_replace_all(self):
        PriceFix.objects.create(key="live")
        store = DocumentStore(PriceFix)

        assert store.replace_all([{"key": "a"}, {"key": "b"}]) == 2
        assert list(PriceFix.objects.values_list("key", flat=True)) == ["a", "b"]

    def test_timestamps_survive_round_trip(self):
        PriceFix.objects.create(key="a")
        store = DocumentStore(PriceFix)
        documents = store.list_all()

        store.replace_all(documents)

        restored = store.list_all()[0]
        assert restored["created_at"] == documents[0]["created_at"]
        assert restored["updated_at"] == documents[0]["updated_at"]

    def test_delete_all(self):
        PriceFix.objects.create(key="a")
        PriceFix.objects.create(key="b")

        assert DocumentStore(PriceFix).delete_all() == 2
        assert PriceFix.objects.count() == 0

    def test_registry(self):
        stores = get_document_stores()

        assert tuple(stores) == DATA_TYPES
        assert stores["service_configs"].model is ServiceConfig


@pytest.mark.django_db
class TestConfigurationModels:
    """Test configuration model helpers."""

    def test_product_count(self):
        catalog = ProductCatalog(
            version="v1",
            families=[{"products": [1, 2]}, {"products": [3]}, {"key": "empty"}],
        )

        assert catalog.get_product_count() == 3

    def test_save_bumps_updated_at(self):
        price_fix = PriceFix.objects.create(key="a")
        original = price_fix.updated_at

        price_fix.label = "changed"
        price_fix.save()

        assert price_fix.updated_at >= original
