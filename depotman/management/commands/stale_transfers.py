"""
Management command to list transfers stuck in transit.

Usage:
    python manage.py stale_transfers
    python manage.py stale_transfers --days 14
"""

from django.core.management.base import BaseCommand

from depotman.service import get_depot


class Command(BaseCommand):
    """List in-transit transfers past the stale threshold."""

    help = 'Lists transfers approved but not received'

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            help='Approved more than this many days ago (default: STALE_TRANSFER_DAYS)'
        )

    def handle(self, *args, **options):
        stale = list(get_depot().transfers.stale(options['days']))

        for transfer in stale:
            self.stdout.write(
                f'{transfer.transfer_number}  {transfer.from_location.code} → '
                f'{transfer.to_location.code}  approved {transfer.approval_date}'
            )

        self.stdout.write(f'{len(stale)} stale transfer(s)')
