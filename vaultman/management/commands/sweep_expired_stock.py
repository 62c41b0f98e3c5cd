"""
Management command to delete expired, unused stock units.

Usage:
    python manage.py sweep_expired_stock
    python manage.py sweep_expired_stock --dry-run
    python manage.py sweep_expired_stock --product 7
"""

from django.core.management.base import BaseCommand

from vaultman import stock
from vaultman.services.query import Expiry, StockQuery, build


class Command(BaseCommand):
    """Sweep expired stock command."""

    help = 'Remove itens de estoque expirados e não utilizados'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Mostra o que seria removido sem executar'
        )
        parser.add_argument(
            '--product',
            type=int,
            default=None,
            help='Limita a um produto'
        )

    def handle(self, *args, **options):
        product_id = options['product']

        if options['dry_run']:
            expired = build(StockQuery(
                product_ids=None if product_id is None else (product_id,),
                used=False,
                expiry=Expiry.EXPIRED,
            )).count()

            self.stdout.write(f'{expired} item(ns) seria(m) removido(s)')
        else:
            count = stock.sweep_expired(product_id=product_id)
            self.stdout.write(
                self.style.SUCCESS(f'{count} item(ns) removido(s)')
            )
