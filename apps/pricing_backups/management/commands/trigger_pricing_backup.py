"""
Management command to trigger a pricing backup manually.

This command is used by:
- Deployment pipelines before pricing data migrations
- Manual backup operations from the shell
"""

from django.core.management.base import BaseCommand, CommandError

from apps.pricing_backups.models import PricingBackup
from apps.pricing_backups.services import DEFAULT_MANUAL_DESCRIPTION, PricingBackupService


class Command(BaseCommand):
    help = 'Create a pricing backup for today'

    def add_arguments(self, parser):
        parser.add_argument(
            '--manual',
            action='store_true',
            help='Create the manual backup of the day instead of the automatic one'
        )
        parser.add_argument(
            '--force-replace',
            action='store_true',
            help='Replace an existing manual backup for today'
        )
        parser.add_argument(
            '--description',
            type=str,
            default='',
            help='Description stored with the backup'
        )

    def handle(self, *args, **options):
        manual = options['manual']
        description = options['description']

        self.stdout.write(f"Triggering {'manual' if manual else 'automatic'} pricing backup...")

        if manual:
            result = PricingBackupService.create_manual_backup(
                change_description=description or DEFAULT_MANUAL_DESCRIPTION,
                force_replace=options['force_replace'],
            )
        else:
            result = PricingBackupService.create_backup_if_needed(
                trigger=PricingBackup.SCHEDULED,
                changed_areas=['other'],
                change_description=description or 'Backup triggered from the command line',
            )

        if result.get('requires_confirmation'):
            raise CommandError(
                f"{result['message']} Use --force-replace to replace "
                f"{result['existing_backup']['change_day_id']}."
            )

        if not result['success']:
            raise CommandError(f"Pricing backup failed: {result.get('error')}")

        if result.get('skipped'):
            self.stdout.write(self.style.WARNING(result['message']))
            return

        backup = result['backup']
        self.stdout.write(
            self.style.SUCCESS(
                f"Pricing backup created: {backup['change_day_id']} "
                f"({backup['compressed_size']} bytes, ratio {backup['compression_ratio']})"
            )
        )

        retention = result.get('retention_policy') or {}
        if retention.get('deleted_count'):
            self.stdout.write(
                f"Retention removed {retention['deleted_count']} backups from "
                f"{', '.join(retention['deleted_change_days'])}"
            )
