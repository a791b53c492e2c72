from django.conf import settings
from django.core.management.base import BaseCommand
from django_rq import get_scheduler
from jobs.tasks import finalize_yesterday_job, purge_expired_tokens_job

SCHEDULED = (
    (finalize_yesterday_job, "ATTENDANCE_FINALIZE_CRON", "15 0 * * *"),
    (purge_expired_tokens_job, "ATTENDANCE_PURGE_CRON", "30 3 * * *"),
)


class Command(BaseCommand):
    help = "Apply rq-scheduler cron schedules for attendance maintenance jobs"

    def handle(self, *args, **options):
        scheduler = get_scheduler("default")
        names = tuple(func.__name__ for func, _, _ in SCHEDULED)
        # Clear existing jobs to avoid duplicates
        for job in scheduler.get_jobs():
            if job.func_name.endswith(names):
                scheduler.cancel(job)
        for func, setting, default in SCHEDULED:
            cron = getattr(settings, setting, default)
            scheduler.cron(cron, func=func, repeat=None, queue_name="default")
            self.stdout.write(self.style.SUCCESS(f"Scheduled {func.__name__} with cron '{cron}'"))
