from django.core.management.base import BaseCommand
from attendance.services import purge_expired_tokens


class Command(BaseCommand):
    help = "Delete QR and photo check-in tokens past the retention window."

    def handle(self, *args, **options):
        deleted = purge_expired_tokens()
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} expired check-in token(s)"))
