"""
Management command to enforce the pricing backup retention window.
"""

from django.core.management.base import BaseCommand, CommandError

from apps.pricing_backups.exceptions import OperationInProgressError
from apps.pricing_backups.services import PricingBackupService


class Command(BaseCommand):
    help = 'Delete pricing backups of change-days beyond the retention window'

    def handle(self, *args, **options):
        try:
            result = PricingBackupService.enforce_retention()
        except OperationInProgressError as e:
            raise CommandError(f'Retention not enforced: {str(e)}')

        if result['deleted_count']:
            self.stdout.write(
                self.style.SUCCESS(
                    f"{result['message']}: {', '.join(result['deleted_change_days'])}"
                )
            )
        else:
            self.stdout.write(result['message'])
