import logging
from datetime import timedelta
from django_rq import job
from django.utils import timezone
from django.utils.dateparse import parse_date
from academics.models import Session
from attendance import services

logger = logging.getLogger(__name__)


@job("default")
def finalize_attendance_job(session_id: int, day: str):
    session = Session.objects.get(pk=session_id)
    return services.finalize_attendance(session, parse_date(day))


@job("default")
def finalize_yesterday_job():
    # runs after midnight, so close out the previous day
    day = timezone.localdate() - timedelta(days=1)
    results = services.finalize_day(day)
    for session_id in results:
        logger.info("Nightly finalize for session %s on %s", session_id, day)
    return {str(k): v for k, v in results.items()}


@job("default")
def purge_expired_tokens_job():
    return services.purge_expired_tokens()
