from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

ON_TIME = "on time"
LATE = "late"
ABSENT = "absent"
EXCUSED = "excused"
NOT_ENROLLED = "not enrolled"

STATUS_CHOICES = [
    (ON_TIME, "On time"),
    (LATE, "Late"),
    (ABSENT, "Absent"),
    (EXCUSED, "Excused"),
    (NOT_ENROLLED, "Not enrolled"),
]

# statuses that count as attended
PRESENT_STATUSES = {ON_TIME, LATE}

MODERATE = "moderate"
MISSED = "missed"

SEVERITY_CHOICES = [
    (MODERATE, "Late"),
    (MISSED, "Checked in after session ended"),
]

MAX_GRACE_MINUTES = 60


@dataclass(frozen=True)
class Classification:
    status: str
    late_minutes: Optional[int] = None
    severity: Optional[str] = None

    @property
    def is_late(self) -> bool:
        return self.status == LATE

    @property
    def message(self) -> str:
        if self.status == ON_TIME:
            return "Checked in on time"
        if self.status == LATE and self.severity == MISSED:
            return (
                f"Checked in after session ended ({self.late_minutes} min late)"
            )
        if self.status == LATE:
            return f"Checked in {self.late_minutes} min late"
        return "No check-in recorded"


def clamp_grace(grace_period_minutes) -> int:
    if grace_period_minutes is None:
        return 0
    return max(0, min(MAX_GRACE_MINUTES, int(grace_period_minutes)))


def grace_end(session_start: datetime, grace_period_minutes) -> datetime:
    return session_start + timedelta(minutes=clamp_grace(grace_period_minutes))


def minutes_over(check_in_time: datetime, deadline: datetime) -> int:
    """Whole minutes past ``deadline``, partial minutes rounded up."""
    seconds = (check_in_time - deadline).total_seconds()
    if seconds <= 0:
        return 0
    return int(math.ceil(seconds / 60))


def classify(
    session_start: datetime,
    session_end: Optional[datetime],
    grace_period_minutes,
    check_in_time: Optional[datetime] = None,
) -> Classification:
    """
    Determine the status of a single check-in against a session window.

    A missing check-in is ``absent``. Check-ins up to the end of the grace
    period are ``on time``; anything after is ``late`` with the minutes past
    the grace period, tagged ``missed`` when the session had already ended.
    A session without a known end (``session_end`` is None) never tags
    ``missed``. Excused and not-enrolled are assigned by callers, never here.
    """
    if check_in_time is None:
        return Classification(ABSENT)
    deadline = grace_end(session_start, grace_period_minutes)
    if check_in_time <= deadline:
        return Classification(ON_TIME)
    late_by = minutes_over(check_in_time, deadline)
    if session_end is None or check_in_time <= session_end:
        return Classification(LATE, late_minutes=late_by, severity=MODERATE)
    return Classification(LATE, late_minutes=late_by, severity=MISSED)
