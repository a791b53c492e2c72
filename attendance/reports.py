from __future__ import annotations

import hashlib
from typing import Any, Dict, List

from django.conf import settings
from django.core.cache import cache
from django.db.models import Count, Max
from django.utils import timezone

from academics.models import Session
from academics.schedule import session_dates

from .analytics import date_statistics, enrollment_insights
from .models import AttendanceRecord
from .scoring import ScoringParams, score


def _cache_key(prefix: str, entity_id: str, window_key: str) -> str:
    return f"attendance:v1:{prefix}:{entity_id}:{window_key}"


def _params_key(params: ScoringParams) -> str:
    return hashlib.md5(repr(params).encode("utf-8")).hexdigest()[:12]


def _stamp(value) -> str:
    return f"{value.timestamp():.6f}" if value else "0"


def _student_label(student) -> str:
    name = f"{student.first_name} {student.last_name}".strip()
    return name or f"Student {student.pk}"


def session_report(session: Session, params: ScoringParams, as_of=None) -> Dict[str, Any]:
    """
    Scores and insights for every enrollment in a session up to ``as_of``,
    best score first, plus per-date totals. Cached until a record changes.
    """
    as_of = as_of or timezone.localdate()
    records = AttendanceRecord.objects.filter(
        enrollment__session=session, date__lte=as_of
    ).select_related("enrollment__student")
    agg = records.aggregate(latest=Max("updated_at"), n=Count("id"))
    enrolled = session.enrollments.aggregate(latest=Max("updated_at"), n=Count("id"))
    window_key = ":".join(
        [
            as_of.isoformat(),
            f"r{agg['n']}-{_stamp(agg['latest'])}",
            f"e{enrolled['n']}-{_stamp(enrolled['latest'])}",
            f"s{_stamp(session.updated_at)}",
            _params_key(params),
        ]
    )
    cache_id = _cache_key("session", str(session.pk), window_key)
    cached = cache.get(cache_id)
    if cached is not None:
        return cached

    by_enrollment: Dict[int, List[AttendanceRecord]] = {}
    for record in records:
        by_enrollment.setdefault(record.enrollment_id, []).append(record)

    possible = len(session_dates(session, until=as_of))
    rows: List[Dict[str, Any]] = []
    for enrollment in session.enrollments.select_related("student"):
        own = by_enrollment.get(enrollment.pk, [])
        result = score(own, params, total_possible_days=possible)
        rows.append(
            {
                "enrollment_id": enrollment.pk,
                "student_id": enrollment.student_id,
                "student": _student_label(enrollment.student),
                "status": enrollment.status,
                "score": result.as_dict(),
                "insights": enrollment_insights(own),
            }
        )
    rows.sort(
        key=lambda r: (
            r["score"]["weighted_score"] is None,
            -(r["score"]["weighted_score"] or 0),
            r["student"],
        )
    )

    report = {
        "session_id": session.pk,
        "as_of": as_of.isoformat(),
        "total_possible_days": possible,
        "enrollments": rows,
        "dates": date_statistics(records),
    }
    cache.set(cache_id, report, getattr(settings, "ATTENDANCE_REPORT_CACHE_SECONDS", 300))
    return report
