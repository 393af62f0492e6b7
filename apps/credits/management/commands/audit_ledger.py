"""
Management command to verify ledger invariants of every account.

Usage:
    python manage.py audit_ledger
"""

from django.core.management.base import BaseCommand, CommandError

from apps.credits.models import CreditAccount
from apps.credits.services import audit_account, LedgerIntegrityError


class Command(BaseCommand):
    help = 'Check that every balance equals the sum of its movements'

    def handle(self, *args, **options):
        user_ids = CreditAccount.objects.values_list('user_id', flat=True)
        failures = []

        for user_id in user_ids.iterator():
            try:
                audit_account(user_id=user_id)
            except LedgerIntegrityError as e:
                failures.append(str(e))
                self.stdout.write(self.style.ERROR(f'  - {e}'))

        checked = user_ids.count()
        if failures:
            raise CommandError(f'{len(failures)} of {checked} account(s) failed the audit')

        self.stdout.write(self.style.SUCCESS(f'Audited {checked} account(s), all consistent.'))
