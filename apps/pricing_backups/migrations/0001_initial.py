import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="PricingBackup",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for the backup", primary_key=True, serialize=False)),
                ("change_day_id", models.CharField(help_text="Unique identifier for this change-day backup", max_length=100, unique=True)),
                ("change_day", models.CharField(help_text="Calendar day (YYYY-MM-DD) the backup belongs to", max_length=10, validators=[django.core.validators.RegexValidator(message="changeDay must be in YYYY-MM-DD format", regex="^\\d{4}-\\d{2}-\\d{2}$")])),
                ("trigger_class", models.CharField(choices=[("AUTO", "Automatic"), ("MANUAL", "Manual")], help_text="Automatic or manual slot of the change-day", max_length=10)),
                ("first_change_timestamp", models.DateTimeField(help_text="Timestamp of the first change of the day")),
                ("compressed_snapshot", models.BinaryField(help_text="Gzip-compressed JSON snapshot of all pricing data")),
                ("included_data_types", models.JSONField(blank=True, default=dict, help_text="Which pricing data types are included in the snapshot")),
                ("document_counts", models.JSONField(blank=True, default=dict, help_text="Document counts per data type (products counted within catalog families)")),
                ("original_size", models.BigIntegerField(help_text="Size of the serialized snapshot in bytes", validators=[django.core.validators.MinValueValidator(0)])),
                ("compressed_size", models.BigIntegerField(help_text="Size of the compressed snapshot in bytes", validators=[django.core.validators.MinValueValidator(0)])),
                ("compression_ratio", models.FloatField(help_text="Compressed size divided by original size (e.g. 0.3 means 70% reduction)")),
                ("backup_trigger", models.CharField(choices=[("pricefix_update", "PriceFix Update"), ("product_catalog_update", "Product Catalog Update"), ("service_config_update", "Service Config Update"), ("manual", "Manual"), ("scheduled", "Scheduled")], help_text="What triggered this backup", max_length=50)),
                ("changed_areas", models.JSONField(blank=True, default=list, help_text="Pricing areas that were changed")),
                ("change_description", models.TextField(blank=True, help_text="Brief description of the change", validators=[django.core.validators.MaxLengthValidator(500)])),
                ("change_count", models.PositiveIntegerField(default=1, help_text="Number of individual changes made")),
                ("has_been_restored", models.BooleanField(default=False)),
                ("last_restored_at", models.DateTimeField(blank=True, null=True)),
                ("restoration_notes", models.TextField(blank=True, validators=[django.core.validators.MaxLengthValidator(1000)])),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("changed_by", models.ForeignKey(blank=True, help_text="User whose change triggered the backup (null for scheduled backups)", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="pricing_backups", to=settings.AUTH_USER_MODEL)),
                ("restored_by", models.ForeignKey(blank=True, help_text="User who last restored this backup", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="restored_pricing_backups", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Pricing Backup",
                "verbose_name_plural": "Pricing Backups",
                "db_table": "pricing_backups_backup",
                "ordering": ["-change_day", "-created_at"],
                "indexes": [
                    models.Index(fields=["-change_day", "-created_at"], name="pricing_backup_day_idx"),
                    models.Index(fields=["backup_trigger", "-change_day"], name="pricing_backup_trigger_idx"),
                    models.Index(fields=["changed_by", "-change_day"], name="pricing_backup_user_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("change_day", "trigger_class"), name="pricing_backup_one_per_day_slot"),
                ],
            },
        ),
    ]
