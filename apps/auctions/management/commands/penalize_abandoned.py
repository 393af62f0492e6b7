"""
Management command to penalize winners who did not confirm their purchase.

Usage:
    python manage.py penalize_abandoned
    python manage.py penalize_abandoned --dry-run
"""

from django.core.management.base import BaseCommand

from apps.auctions.services import get_abandoned_auctions, penalize_abandoned_auctions


class Command(BaseCommand):
    help = 'Debit the abandonment penalty from winners past the purchase grace period'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List abandoned auctions without penalizing anyone',
        )

    def handle(self, *args, **options):
        if options['dry_run']:
            abandoned = get_abandoned_auctions().select_related('winner')
            for auction in abandoned:
                self.stdout.write(f'  - {auction.id} | winner {auction.winner.email}')
            self.stdout.write(self.style.WARNING(
                f'--dry-run mode: {len(abandoned)} winner(s) would be penalized.'
            ))
            return

        count = penalize_abandoned_auctions()
        self.stdout.write(self.style.SUCCESS(f'Penalized {count} winner(s).'))
