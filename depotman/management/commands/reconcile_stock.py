"""
Management command to compare stock rows against the movement ledger.

Usage:
    python manage.py reconcile_stock
    python manage.py reconcile_stock --location main
    python manage.py reconcile_stock --fix
"""

from django.core.management.base import BaseCommand, CommandError

from depotman.exceptions import NotFoundError
from depotman.service import get_depot


class Command(BaseCommand):
    """Report (and optionally repair) ledger discrepancies."""

    help = 'Compares location stock with the sum of its movements'

    def add_arguments(self, parser):
        parser.add_argument(
            '--location',
            help='Only check this location code'
        )
        parser.add_argument(
            '--fix',
            action='store_true',
            help='Recalculate drifted rows from the ledger'
        )

    def handle(self, *args, **options):
        ledger = get_depot().ledger
        location = options['location']

        try:
            discrepancies = ledger.reconcile(location)
        except NotFoundError as exc:
            raise CommandError(str(exc)) from exc

        if not discrepancies:
            self.stdout.write(self.style.SUCCESS('Stock matches the ledger'))
            return

        for d in discrepancies:
            self.stdout.write(
                f'{d.stock.location.code} #{d.stock.product_id}'
                f'{f"/{d.stock.variant_id}" if d.stock.variant_id else ""}: '
                f'stock={d.stock.quantity} ledger={d.ledger_total} diff={d.difference:+d}'
            )

        if options['fix']:
            count = ledger.repair(location)
            self.stdout.write(self.style.SUCCESS(f'{count} row(s) repaired'))
        else:
            self.stdout.write(
                self.style.WARNING(f'{len(discrepancies)} discrepancy(ies) found')
            )
