"""
Management command to finalize every auction past its end date.

Safe to run from cron alongside ``run_scheduler``.

Usage:
    python manage.py finalize_auctions
    python manage.py finalize_auctions --dry-run
"""

from django.core.management.base import BaseCommand
from django.utils import timezone

from apps.auctions.models import Auction, AuctionStatus
from apps.auctions.services import finalize_expired_auctions


class Command(BaseCommand):
    help = 'Finalize active auctions whose end date has passed'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List expired auctions without finalizing them',
        )

    def handle(self, *args, **options):
        now = timezone.now()
        expired = Auction.objects.filter(status=AuctionStatus.ACTIVE, end_date__lte=now)

        if not expired.exists():
            self.stdout.write(self.style.SUCCESS('No expired auctions.'))
            return

        if options['dry_run']:
            for auction in expired.order_by('end_date'):
                self.stdout.write(f'  - {auction.id} | ended {auction.end_date:%Y-%m-%d %H:%M:%S}')
            self.stdout.write(self.style.WARNING('--dry-run mode: No changes made.'))
            return

        results = finalize_expired_auctions(now=now)
        for result in results:
            outcome = f'winner {result.winner_id} at {result.winning_bid}' if result.has_winner else 'no winner'
            self.stdout.write(f'  - {result.auction_id}: {outcome}')

        self.stdout.write(self.style.SUCCESS(f'Finalized {len(results)} auction(s).'))
