from datetime import timedelta
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from django.utils.dateparse import parse_date
from academics.models import Session
from attendance import services


class Command(BaseCommand):
    help = "Mark missing attendance as absent (or not enrolled) for a date."

    def add_arguments(self, parser):
        parser.add_argument("--date", help="YYYY-MM-DD, defaults to yesterday")
        parser.add_argument("--session", type=int, help="Only finalize this session id")

    def handle(self, *args, **options):
        if options["date"]:
            day = parse_date(options["date"])
            if day is None:
                raise CommandError(f"Invalid date: {options['date']}")
        else:
            day = timezone.localdate() - timedelta(days=1)

        if options["session"]:
            session = Session.objects.filter(pk=options["session"]).first()
            if session is None:
                raise CommandError(f"Session {options['session']} not found")
            results = {session.pk: services.finalize_attendance(session, day)}
        else:
            results = services.finalize_day(day)

        for session_id, counts in results.items():
            self.stdout.write(
                f"Session {session_id}: {counts['absent']} absent, "
                f"{counts['not_enrolled']} not enrolled"
            )
        self.stdout.write(self.style.SUCCESS(f"Finalized {len(results)} session(s) for {day}"))
