"""
Celery configuration for the pricing configuration backup service.
"""

import os

from celery import Celery
from celery.schedules import crontab

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("pricing_backup")

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

# Celery Beat Schedule for periodic tasks
app.conf.beat_schedule = {
    # Daily scheduled pricing snapshot at 2:00 AM (skipped if a change already created one)
    "daily-scheduled-pricing-backup": {
        "task": "apps.pricing_backups.tasks.scheduled_pricing_backup",
        "schedule": crontab(hour=2, minute=0),
        "options": {"queue": "backups", "priority": 9},
    },
    # Enforce the change-day retention window daily at 3:00 AM
    "daily-pricing-backup-retention": {
        "task": "apps.pricing_backups.tasks.enforce_pricing_backup_retention",
        "schedule": crontab(hour=3, minute=0),
        "options": {"queue": "backups", "priority": 5},
    },
}

# Task routing configuration
app.conf.task_routes = {
    "apps.pricing_backups.tasks.*": {"queue": "backups", "priority": 10},
}
