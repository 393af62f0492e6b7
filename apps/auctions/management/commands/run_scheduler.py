"""
Run the auction expiry sweep and penalty pass in the foreground.

Usage:
    python manage.py run_scheduler
"""

from django.conf import settings
from django.core.management.base import BaseCommand

from apps.auctions.scheduler import build_scheduler


class Command(BaseCommand):
    help = 'Run the auction scheduler (finalization sweep and abandonment penalties)'

    def handle(self, *args, **options):
        scheduler = build_scheduler()
        self.stdout.write(self.style.SUCCESS(
            f'Scheduler started: sweeping every {settings.AUCTION_SWEEP_INTERVAL_SECONDS}s. '
            'Press Ctrl+C to stop.'
        ))
        try:
            scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            self.stdout.write('Scheduler stopped.')
