from django.db import migrations, models
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PriceFix",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, help_text="Timestamp when the document was created")),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now, help_text="Timestamp when the document was last updated")),
                ("key", models.CharField(help_text="Identifier of the pricing document (e.g. 'default')", max_length=100)),
                ("label", models.CharField(blank=True, help_text="Human readable label", max_length=255)),
                ("services", models.JSONField(blank=True, default=dict, help_text="Pricing tables keyed by service")),
                ("trip_charge", models.JSONField(blank=True, default=dict, help_text="Trip charge pricing")),
                ("is_active", models.BooleanField(default=True, help_text="Whether this pricing document is currently in use")),
                ("notes", models.TextField(blank=True, help_text="Free-text notes")),
            ],
            options={
                "verbose_name": "Price Fix",
                "verbose_name_plural": "Price Fixes",
                "db_table": "configuration_price_fix",
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="ProductCatalog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, help_text="Timestamp when the document was created")),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now, help_text="Timestamp when the document was last updated")),
                ("version", models.CharField(help_text="Catalog version identifier", max_length=100)),
                ("last_updated", models.CharField(blank=True, help_text="Free-form last updated marker supplied by the editor", max_length=100)),
                ("currency", models.CharField(default="USD", max_length=3)),
                ("families", models.JSONField(blank=True, default=list, help_text="Product families with their products")),
                ("is_active", models.BooleanField(default=True, help_text="Whether this catalog is the active one")),
                ("note", models.TextField(blank=True)),
            ],
            options={
                "verbose_name": "Product Catalog",
                "verbose_name_plural": "Product Catalogs",
                "db_table": "configuration_product_catalog",
                "ordering": ["id"],
                "indexes": [models.Index(fields=["is_active"], name="catalog_active_idx")],
            },
        ),
        migrations.CreateModel(
            name="ServiceConfig",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, help_text="Timestamp when the document was created")),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now, help_text="Timestamp when the document was last updated")),
                ("service_id", models.CharField(help_text="Service identifier, e.g. 'saniclean'", max_length=100)),
                ("version", models.CharField(help_text="Configuration version, e.g. 'v1'", max_length=100)),
                ("label", models.CharField(blank=True, max_length=255)),
                ("description", models.TextField(blank=True)),
                ("config", models.JSONField(help_text="The pricing configuration object")),
                ("default_form_state", models.JSONField(blank=True, help_text="Optional default form state for the admin editor", null=True)),
                ("is_active", models.BooleanField(default=False, help_text="Whether this configuration is currently in use for the service")),
                ("admin_by_display", models.BooleanField(default=True, help_text="Whether to display in the admin form by default")),
                ("tags", models.JSONField(blank=True, default=list)),
            ],
            options={
                "verbose_name": "Service Config",
                "verbose_name_plural": "Service Configs",
                "db_table": "configuration_service_config",
                "ordering": ["id"],
                "indexes": [models.Index(fields=["service_id", "is_active"], name="service_config_active_idx")],
            },
        ),
    ]
