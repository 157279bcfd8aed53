"""
Tests for the backup operation lock.
"""

from unittest.mock import patch

import pytest

from apps.pricing_backups.exceptions import OperationInProgressError
from apps.pricing_backups.locks import (
    automatic_backup_operation,
    backup_operation_lock,
    get_lock_holder,
    is_operation_in_progress,
)
from config import settings as project_settings


class TestBackupOperationLock:
    """Test acquiring, waiting for and releasing the lock."""

    def test_holder_is_recorded_and_released(self):
        with backup_operation_lock(operation=automatic_backup_operation("2024-03-01")):
            assert get_lock_holder() == "auto_backup:2024-03-01"
            assert is_operation_in_progress() is True

        assert get_lock_holder() is None
        assert is_operation_in_progress() is False

    def test_busy_lock_fails_immediately_without_wait(self):
        with backup_operation_lock(operation="delete"):
            with pytest.raises(OperationInProgressError) as exc_info:
                with backup_operation_lock(operation="retention"):
                    pass

        assert exc_info.value.holder == "delete"

    def test_busy_lock_gives_up_after_wait_timeout(self):
        with backup_operation_lock(operation="delete"):
            with patch("apps.pricing_backups.locks.time.sleep") as mock_sleep:
                with patch(
                    "apps.pricing_backups.locks.time.monotonic", side_effect=[0.0, 0.0, 1.0, 2.5]
                ):
                    with pytest.raises(OperationInProgressError):
                        with backup_operation_lock(operation="retention", wait_timeout=2):
                            pass

        assert mock_sleep.call_count == 2

    def test_lock_is_released_when_block_raises(self):
        with pytest.raises(RuntimeError):
            with backup_operation_lock(operation="delete"):
                raise RuntimeError("boom")

        assert is_operation_in_progress() is False


class TestLockCacheConfiguration:
    """Test that the lock lives in a cache shared across processes."""

    def test_default_cache_is_redis(self):
        backend = project_settings.CACHES["default"]["BACKEND"]

        assert backend == "django_prometheus.cache.backends.redis.RedisCache"
        assert project_settings.CACHES["default"]["OPTIONS"]["CLIENT_CLASS"] == (
            "django_redis.client.DefaultClient"
        )
