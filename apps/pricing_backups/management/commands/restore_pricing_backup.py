"""
Management command to restore pricing data from a backup.

Restoring replaces the live price fixes, product catalogs and service
configs with the contents of the backup.
"""

from django.core.management.base import BaseCommand, CommandError

from apps.pricing_backups.exceptions import PricingBackupError
from apps.pricing_backups.restore import restore_from_backup


class Command(BaseCommand):
    help = 'Restore pricing data from a pricing backup'

    def add_arguments(self, parser):
        parser.add_argument(
            'change_day_id',
            type=str,
            help='Change-day id of the backup to restore'
        )
        parser.add_argument(
            '--notes',
            type=str,
            default='Restored from the command line',
            help='Restoration notes stored on the backup'
        )
        parser.add_argument(
            '--yes',
            action='store_true',
            help='Skip the confirmation prompt'
        )

    def handle(self, *args, **options):
        change_day_id = options['change_day_id']

        if not options['yes']:
            answer = input(
                f"This will replace all live pricing data with backup {change_day_id}. "
                f"Continue? [y/N] "
            )
            if answer.strip().lower() not in ('y', 'yes'):
                self.stdout.write(self.style.WARNING('Restore cancelled'))
                return

        try:
            result = restore_from_backup(change_day_id, restoration_notes=options['notes'])
        except PricingBackupError as e:
            raise CommandError(f'Restore failed: {str(e)}')

        for data_type, data_type_result in result['results'].items():
            if data_type_result.get('skipped'):
                self.stdout.write(f"  {data_type}: skipped (no documents in backup)")
            elif data_type_result['errors']:
                self.stdout.write(
                    self.style.ERROR(f"  {data_type}: {'; '.join(data_type_result['errors'])}")
                )
            else:
                self.stdout.write(f"  {data_type}: {data_type_result['restored']} documents")

        if not result['success']:
            raise CommandError(result['message'])

        self.stdout.write(self.style.SUCCESS(result['message']))
