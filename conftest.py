"""
Pytest configuration and fixtures for the pricing backup service.
"""

import uuid

from django.core.cache import cache

import pytest
from rest_framework.test import APIClient

from config.celery import app as celery_app


@pytest.fixture(autouse=True)
def celery_eager():
    """Run Celery tasks in-process so no broker is needed."""
    # The app loads settings with the CELERY namespace, so the prefixed keys take precedence
    celery_app.conf.CELERY_TASK_ALWAYS_EAGER = True
    celery_app.conf.CELERY_TASK_EAGER_PROPAGATES = False
    yield
    celery_app.conf.CELERY_TASK_ALWAYS_EAGER = False


@pytest.fixture(autouse=True)
def local_cache(settings):
    """Use an in-process cache so tests do not need Redis."""
    settings.CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "pricing-backup-tests",
        },
    }
    # Busy locks fail immediately unless a test opts into waiting
    settings.PRICING_BACKUP_LOCK_WAIT_TIMEOUT = 0


@pytest.fixture(autouse=True)
def clear_cache(local_cache):
    """Start every test without a leftover backup operation lock."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def staff_user(django_user_model):
    """Fixture for creating a staff user allowed to manage pricing."""
    unique_id = str(uuid.uuid4())[:8]
    return django_user_model.objects.create_user(
        username=f"admin-{unique_id}",
        email=f"admin-{unique_id}@example.com",
        password="adminpass123",
        is_staff=True,
    )


@pytest.fixture
def regular_user(django_user_model):
    """Fixture for creating a non-staff user."""
    unique_id = str(uuid.uuid4())[:8]
    return django_user_model.objects.create_user(
        username=f"user-{unique_id}",
        email=f"user-{unique_id}@example.com",
        password="userpass123",
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def staff_client(api_client, staff_user):
    """API client authenticated as a staff user."""
    api_client.force_authenticate(user=staff_user)
    return api_client
