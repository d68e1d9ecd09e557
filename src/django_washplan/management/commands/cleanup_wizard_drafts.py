"""Management command to clean up expired wizard drafts."""

from django.core.management.base import BaseCommand
from django.utils import timezone

from django_washplan.drafts import purge_expired_drafts
from django_washplan.models import WizardDraft


class Command(BaseCommand):
    help = 'Delete subscription wizard drafts that are past their expiry'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show count of drafts that would be deleted without actually deleting'
        )

    def handle(self, *args, **options):
        now = timezone.now()

        if options['dry_run']:
            expired = WizardDraft.objects.expired(now)
            self.stdout.write(f'Would delete {expired.count()} expired wizard drafts')
            for draft in expired:
                self.stdout.write(f'  - {draft}')
            return

        deleted = purge_expired_drafts(now)
        self.stdout.write(
            self.style.SUCCESS(f'Deleted {deleted} expired wizard drafts')
        )
