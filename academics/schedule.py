from datetime import date, datetime, timedelta
from typing import List, Optional

from django.utils import timezone


def session_dates(session, until: Optional[date] = None, since: Optional[date] = None) -> List[date]:
    """
    Scheduled meeting dates for a session, oldest first.

    Dates fall between the session's start and end dates on its configured
    weekdays (every day when none are set), optionally narrowed to
    ``since``/``until``.
    """
    first = session.start_date
    last = session.end_date
    if since is not None and since > first:
        first = since
    if until is not None and until < last:
        last = until
    days = set(session.weekday_names)
    out = []
    current = first
    while current <= last:
        if not days or current.strftime("%A").lower() in days:
            out.append(current)
        current += timedelta(days=1)
    return out


def is_scheduled(session, day: date) -> bool:
    if day < session.start_date or day > session.end_date:
        return False
    days = session.weekday_names
    return not days or day.strftime("%A").lower() in days


def session_window(session, day: date):
    """
    Aware start/end datetimes of a session on ``day``, or (None, None).

    ``end`` is None when the session has a start time but no end time.
    """
    if session.start_time is None:
        return None, None
    start = timezone.make_aware(datetime.combine(day, session.start_time))
    end = None
    if session.end_time is not None:
        end = timezone.make_aware(datetime.combine(day, session.end_time))
        if end <= start:
            end += timedelta(days=1)
    return start, end
