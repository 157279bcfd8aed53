"""
URL configuration for the pricing backup API.
"""

from django.urls import path

from . import views

app_name = "pricing_backups"

urlpatterns = [
    path("create/", views.create_manual_backup, name="create"),
    path("list/", views.backup_list, name="list"),
    path("details/<str:change_day_id>/", views.backup_details, name="details"),
    path("snapshot/<str:change_day_id>/", views.backup_snapshot, name="snapshot"),
    path("restore/", views.restore_backup, name="restore"),
    path("delete/", views.delete_backups, name="delete"),
    path("enforce-retention/", views.enforce_retention, name="enforce_retention"),
    path("statistics/", views.backup_statistics, name="statistics"),
    path("health/", views.backup_health, name="health"),
]
