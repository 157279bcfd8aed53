"""
Tests for pricing backup creation, deletion and retention services.
"""

from unittest.mock import patch

from django.core.cache import cache

import pytest

from apps.pricing_backups.exceptions import (
    CollectionError,
    DuplicateSnapshotError,
    OperationInProgressError,
    SnapshotNotFoundError,
)
from apps.pricing_backups.locks import (
    BACKUP_OPERATION_LOCK,
    backup_operation_lock,
    restore_operation,
)
from apps.pricing_backups.models import PricingBackup
from apps.pricing_backups.retention import RetentionPolicy
from apps.pricing_backups.services import PricingBackupService

TODAY = "2024-03-01"


@pytest.fixture
def fixed_day():
    with patch("apps.pricing_backups.services.get_current_change_day", return_value=TODAY):
        yield TODAY


@pytest.mark.django_db
class TestCreateBackupIfNeeded:
    """Test automatic once-per-day backup creation."""

    def test_creates_backup_with_matching_counts(self, fixed_day, pricing_data, staff_user):
        """Test that the first backup of a day captures every store."""
        result = PricingBackupService.create_backup_if_needed(
            trigger=PricingBackup.PRICEFIX_UPDATE,
            changed_by=staff_user,
            changed_areas=["pricefix_services"],
            change_description="Price update",
        )

        assert result["success"] is True
        assert result["created"] is True
        assert result["skipped"] is False

        backup = PricingBackup.objects.get()
        assert backup.change_day == TODAY
        assert backup.trigger_class == PricingBackup.AUTO
        assert backup.changed_by == staff_user
        assert backup.changed_areas == ["pricefix_services"]
        assert backup.document_counts == {
            "price_fix_count": 1,
            "product_catalog_count": 5,
            "service_config_count": 1,
        }
        assert backup.compression_ratio < 1.0
        assert result["backup"]["change_day_id"] == backup.change_day_id

        snapshot = backup.get_snapshot()
        assert snapshot["data_types"]["price_fix"]["documents"][0]["key"] == "default"
        assert snapshot["data_types"]["product_catalog"]["active"]["version"] == "2024-01"
        assert snapshot["data_types"]["product_catalog"]["product_count"] == 5
        assert snapshot["data_types"]["service_configs"]["active_count"] == 1
        assert snapshot["metadata"] == {"backup_version": "1.0", "total_documents": 3}

    def test_second_call_same_day_is_skipped(self, fixed_day, pricing_data):
        """Test that only the first automatic trigger of a day creates a backup."""
        first = PricingBackupService.create_backup_if_needed(trigger=PricingBackup.PRICEFIX_UPDATE)
        second = PricingBackupService.create_backup_if_needed(
            trigger=PricingBackup.SERVICE_CONFIG_UPDATE
        )

        assert first["created"] is True
        assert second["success"] is True
        assert second["skipped"] is True
        assert second["created"] is False
        assert second["existing_change_day_id"] == first["backup"]["change_day_id"]
        assert PricingBackup.objects.count() == 1

    def test_manual_backup_does_not_block_automatic_backup(self, fixed_day, pricing_data):
        PricingBackupService.create_manual_backup()

        result = PricingBackupService.create_backup_if_needed(trigger=PricingBackup.SCHEDULED)

        assert result["created"] is True
        assert PricingBackup.objects.for_day(TODAY).count() == 2

    def test_manual_trigger_is_delegated(self, fixed_day, pricing_data):
        result = PricingBackupService.create_backup_if_needed(trigger=PricingBackup.MANUAL)

        assert result["created"] is True
        assert PricingBackup.objects.get().change_day_id == f"backup_{TODAY}_manual"

    def test_backup_of_empty_stores(self, fixed_day):
        result = PricingBackupService.create_backup_if_needed(trigger=PricingBackup.SCHEDULED)

        assert result["created"] is True
        backup = PricingBackup.objects.get()
        assert backup.document_counts == {
            "price_fix_count": 0,
            "product_catalog_count": 0,
            "service_config_count": 0,
        }
        assert all(backup.included_data_types.values())

    def test_concurrent_creation_is_reported_as_skipped(self, fixed_day, pricing_data):
        """Test that losing the race for today's slot is not an error."""
        with patch.object(
            PricingBackup.objects, "put", side_effect=DuplicateSnapshotError("taken")
        ):
            result = PricingBackupService.create_backup_if_needed(
                trigger=PricingBackup.PRICEFIX_UPDATE
            )

        assert result["success"] is True
        assert result["skipped"] is True
        assert result["created"] is False

    def test_collection_failure_returns_failed_result(self, fixed_day, pricing_data):
        """Test that collection errors never escape and nothing is persisted."""
        with patch("apps.pricing_backups.services.SnapshotCollector") as mock_collector:
            mock_collector.return_value.gather.side_effect = CollectionError("store unreachable")

            result = PricingBackupService.create_backup_if_needed(
                trigger=PricingBackup.PRICEFIX_UPDATE
            )

        assert result["success"] is False
        assert result["created"] is False
        assert "store unreachable" in result["error"]
        assert result["error_code"] == "backup_failed"
        assert PricingBackup.objects.count() == 0

    def test_restore_in_progress_returns_operation_in_progress(self, fixed_day, pricing_data):
        with backup_operation_lock(operation=restore_operation("backup_2024-02-28_manual")):
            result = PricingBackupService.create_backup_if_needed(
                trigger=PricingBackup.PRICEFIX_UPDATE
            )

        assert result["success"] is False
        assert result["error_code"] == "operation_in_progress"
        assert PricingBackup.objects.count() == 0

    def test_concurrent_creator_holding_lock_is_skipped(self, fixed_day, pricing_data):
        """Test that a second same-day request arriving mid-creation is skipped."""
        concurrent_results = []
        build_backup = PricingBackupService.build_backup

        def build_while_second_request_arrives(**kwargs):
            concurrent_results.append(
                PricingBackupService.create_backup_if_needed(trigger=PricingBackup.SCHEDULED)
            )
            return build_backup(**kwargs)

        with patch.object(
            PricingBackupService, "build_backup", side_effect=build_while_second_request_arrives
        ):
            result = PricingBackupService.create_backup_if_needed(
                trigger=PricingBackup.PRICEFIX_UPDATE
            )

        assert result["created"] is True
        assert concurrent_results[0]["success"] is True
        assert concurrent_results[0]["skipped"] is True
        assert PricingBackup.objects.count() == 1

    def test_slot_filled_while_lock_busy_is_skipped(self, fixed_day, pricing_data, make_backup):
        existing = make_backup(TODAY)

        with backup_operation_lock(operation="delete"):
            result = PricingBackupService.create_backup_if_needed(
                trigger=PricingBackup.PRICEFIX_UPDATE
            )

        assert result["success"] is True
        assert result["skipped"] is True
        assert result["existing_change_day_id"] == existing.change_day_id

    def test_waits_for_running_operation(self, fixed_day, pricing_data, settings):
        settings.PRICING_BACKUP_LOCK_WAIT_TIMEOUT = 5
        cache.add(BACKUP_OPERATION_LOCK, "restore:backup_2024-02-28_manual|token", 60)

        with patch(
            "apps.pricing_backups.locks.time.sleep",
            side_effect=lambda _: cache.delete(BACKUP_OPERATION_LOCK),
        ) as mock_sleep:
            result = PricingBackupService.create_backup_if_needed(
                trigger=PricingBackup.PRICEFIX_UPDATE
            )

        mock_sleep.assert_called_once()
        assert result["created"] is True
        assert PricingBackup.objects.count() == 1

    def test_invalid_timezone_returns_failed_result(self, pricing_data, settings):
        settings.PRICING_BACKUP_TIMEZONE = "Not/AZone"

        result = PricingBackupService.create_backup_if_needed(
            trigger=PricingBackup.PRICEFIX_UPDATE
        )

        assert result["success"] is False
        assert result["error_code"] == "backup_failed"
        assert PricingBackup.objects.count() == 0

    def test_lock_is_released_after_creation(self, fixed_day, pricing_data):
        PricingBackupService.create_backup_if_needed(trigger=PricingBackup.PRICEFIX_UPDATE)

        with backup_operation_lock():
            pass

    def test_creation_runs_retention(self, fixed_day, pricing_data, make_backup):
        for day in range(1, 11):
            make_backup(f"2024-02-{day:02d}")

        result = PricingBackupService.create_backup_if_needed(trigger=PricingBackup.PRICEFIX_UPDATE)

        assert result["retention_policy"]["deleted_change_days"] == ["2024-02-01"]
        assert len(PricingBackup.objects.distinct_change_days()) == 10

    def test_retention_failure_does_not_fail_creation(self, fixed_day, pricing_data):
        with patch(
            "apps.pricing_backups.services.RetentionPolicy.enforce",
            side_effect=RuntimeError("retention broken"),
        ):
            result = PricingBackupService.create_backup_if_needed(
                trigger=PricingBackup.PRICEFIX_UPDATE
            )

        assert result["success"] is True
        assert result["created"] is True
        assert result["retention_policy"]["error"] == "retention broken"
        assert PricingBackup.objects.count() == 1


@pytest.mark.django_db
class TestCreateManualBackup:
    """Test manual backup creation and replacement."""

    def test_creates_manual_backup(self, fixed_day, pricing_data, staff_user):
        result = PricingBackupService.create_manual_backup(
            changed_by=staff_user,
            change_description="Before catalog cleanup",
        )

        assert result["success"] is True
        assert result["created"] is True
        assert result["replaced"] is False

        backup = PricingBackup.objects.get()
        assert backup.change_day_id == f"backup_{TODAY}_manual"
        assert backup.backup_trigger == PricingBackup.MANUAL
        assert backup.changed_areas == ["other"]
        assert backup.change_description == "Before catalog cleanup"

    def test_existing_manual_backup_requires_confirmation(self, fixed_day, pricing_data):
        """Test that an existing manual backup is not replaced without confirmation."""
        PricingBackupService.create_manual_backup(change_description="First")
        original = PricingBackup.objects.get()

        result = PricingBackupService.create_manual_backup(change_description="Second")

        assert result["success"] is False
        assert result["requires_confirmation"] is True
        assert result["existing_backup"]["change_day_id"] == original.change_day_id
        assert PricingBackup.objects.for_day(TODAY, PricingBackup.MANUAL_CLASS).count() == 1
        assert PricingBackup.objects.get().id == original.id

    def test_force_replace_leaves_one_manual_backup(self, fixed_day, pricing_data, price_fix):
        PricingBackupService.create_manual_backup(change_description="First")
        original = PricingBackup.objects.get()

        price_fix.label = "Changed"
        price_fix.save()

        result = PricingBackupService.create_manual_backup(
            change_description="Second",
            force_replace=True,
        )

        assert result["success"] is True
        assert result["replaced"] is True

        backup = PricingBackup.objects.get()
        assert backup.id != original.id
        assert backup.change_description == "Second (Replaced previous manual backup)"
        assert backup.get_snapshot()["data_types"]["price_fix"]["documents"][0]["label"] == "Changed"

    def test_failed_replacement_keeps_previous_manual_backup(self, fixed_day, pricing_data):
        PricingBackupService.create_manual_backup(change_description="First")
        original = PricingBackup.objects.get()

        with patch("apps.pricing_backups.services.SnapshotCollector") as mock_collector:
            mock_collector.return_value.gather.side_effect = CollectionError("boom")
            result = PricingBackupService.create_manual_backup(force_replace=True)

        assert result["success"] is False
        assert PricingBackup.objects.get().id == original.id

    def test_manual_backup_during_restore_returns_operation_in_progress(self, fixed_day, pricing_data):
        with backup_operation_lock(operation=restore_operation("backup_2024-02-28_manual")):
            result = PricingBackupService.create_manual_backup()

        assert result["success"] is False
        assert result["error_code"] == "operation_in_progress"
        assert PricingBackup.objects.count() == 0

    def test_invalid_timezone_returns_failed_result(self, pricing_data, settings):
        settings.PRICING_BACKUP_TIMEZONE = "Not/AZone"

        result = PricingBackupService.create_manual_backup()

        assert result["success"] is False
        assert result["error_code"] == "backup_failed"

    def test_replacement_description_is_truncated(self, fixed_day, pricing_data):
        PricingBackupService.create_manual_backup()

        PricingBackupService.create_manual_backup(change_description="x" * 500, force_replace=True)

        backup = PricingBackup.objects.get()
        assert len(backup.change_description) == 500
        assert backup.change_description.endswith("(Replaced previous manual backup)")


@pytest.mark.django_db
class TestDeleteBackups:
    """Test deleting backups by change-day id."""

    def test_delete_backups(self, make_backup, staff_user):
        first = make_backup("2024-01-14")
        second = make_backup("2024-01-15")
        make_backup("2024-01-16")

        result = PricingBackupService.delete_backups(
            [first.change_day_id, second.change_day_id], deleted_by=staff_user
        )

        assert result["deleted_count"] == 2
        assert PricingBackup.objects.count() == 1

    def test_unknown_id_deletes_nothing(self, make_backup):
        backup = make_backup("2024-01-14")

        with pytest.raises(SnapshotNotFoundError):
            PricingBackupService.delete_backups([backup.change_day_id, "backup_1999-01-01_manual"])

        assert PricingBackup.objects.count() == 1

    def test_delete_refused_during_restore(self, make_backup):
        backup = make_backup("2024-01-14")

        with backup_operation_lock(operation=restore_operation(backup.change_day_id)):
            with pytest.raises(OperationInProgressError):
                PricingBackupService.delete_backups([backup.change_day_id])

        assert PricingBackup.objects.count() == 1

    def test_retention_refused_during_restore(self, make_backup, settings):
        settings.PRICING_BACKUP_RETENTION_DAYS = 1
        backup = make_backup("2024-01-14")
        make_backup("2024-01-15")

        with backup_operation_lock(operation=restore_operation(backup.change_day_id)):
            with pytest.raises(OperationInProgressError):
                PricingBackupService.enforce_retention()

        assert PricingBackup.objects.count() == 2


@pytest.mark.django_db
class TestRetentionPolicy:
    """Test change-day retention."""

    def test_keeps_most_recent_days(self, make_backup):
        """Test that twelve change-days are reduced to the ten most recent."""
        for day in range(1, 13):
            make_backup(f"2024-01-{day:02d}")

        result = RetentionPolicy(max_change_days=10).enforce()

        assert result["deleted_count"] == 2
        assert result["deleted_change_days"] == ["2024-01-02", "2024-01-01"]
        assert PricingBackup.objects.distinct_change_days() == [
            f"2024-01-{day:02d}" for day in range(12, 2, -1)
        ]

    def test_evicts_whole_days(self, make_backup):
        make_backup("2024-01-01")
        make_backup("2024-01-01", trigger=PricingBackup.MANUAL)
        make_backup("2024-01-02")

        result = RetentionPolicy(max_change_days=1).enforce()

        assert result["deleted_count"] == 2
        assert PricingBackup.objects.distinct_change_days() == ["2024-01-02"]

    def test_compliant_store_is_unchanged(self, make_backup):
        make_backup("2024-01-01")

        result = RetentionPolicy(max_change_days=10).enforce()

        assert result["deleted_count"] == 0
        assert result["message"] == "Retention policy not needed"
        assert PricingBackup.objects.count() == 1

    def test_enforcement_is_idempotent(self, make_backup):
        for day in range(1, 5):
            make_backup(f"2024-01-{day:02d}")

        RetentionPolicy(max_change_days=2).enforce()
        second = RetentionPolicy(max_change_days=2).enforce()

        assert second["deleted_count"] == 0
        assert len(PricingBackup.objects.distinct_change_days()) == 2

    def test_limit_defaults_to_setting(self, settings):
        settings.PRICING_BACKUP_RETENTION_DAYS = 3

        assert RetentionPolicy().max_change_days == 3

    def test_limit_must_be_positive(self):
        with pytest.raises(ValueError):
            RetentionPolicy(max_change_days=0)
