from __future__ import annotations

import json
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import IntegrityError, transaction
from django.db.models import F
from django.forms.models import model_to_dict
from django.utils import timezone

from academics.models import Enrollment, Session, SessionDateHost
from academics.schedule import is_scheduled, session_dates, session_window

from . import geo
from .classifier import (
    ABSENT,
    EXCUSED,
    LATE,
    MODERATE,
    NOT_ENROLLED,
    STATUS_CHOICES,
    Classification,
    classify,
)
from .errors import (
    AttendanceError,
    CheckInNotOpen,
    DuplicateAttendance,
    InvalidExcuseReason,
    LocationRequired,
    NotEnrolled,
    OutOfProximityRange,
)
from .models import AttendanceRecord, AuditLog, CheckInToken, ScoringConfig
from .scoring import ScoreResult, ScoringParams, score
from .tokens import check_token, compute_expiry, new_token_value

logger = logging.getLogger(__name__)

VALID_STATUSES = {s for s, _ in STATUS_CHOICES}


def _setting(name, default):
    return getattr(settings, name, default)


def _coord(value):
    if value is None or value == "":
        return None
    return Decimal(str(round(float(value), 8)))


def _snapshot(instance) -> Dict[str, Any]:
    return json.loads(json.dumps(model_to_dict(instance), cls=DjangoJSONEncoder))


def _audit(instance, operation, actor=None, old=None, new=None, reason=""):
    return AuditLog.objects.create(
        table_name=instance._meta.db_table,
        record_id=str(instance.pk),
        operation=operation,
        old_data=old,
        new_data=new,
        actor=actor,
        reason=reason or "",
    )


# --- check-in tokens ---------------------------------------------------------


def issue_token(session: Session, attendance_date: date, kind=CheckInToken.KIND_QR, created_by=None, now=None):
    """Open a check-in window for one session date."""
    now = now or timezone.now()
    expires_at = compute_expiry(
        attendance_date,
        session.start_time,
        session.grace_period_minutes,
        now,
        buffer_minutes=_setting("ATTENDANCE_TOKEN_BUFFER_MINUTES", 30),
        fallback_minutes=_setting("ATTENDANCE_TOKEN_FALLBACK_MINUTES", 120),
    )
    token = CheckInToken.objects.create(
        kind=kind,
        token=new_token_value(kind),
        session=session,
        attendance_date=attendance_date,
        expires_at=expires_at,
        created_by=created_by,
    )
    if not is_scheduled(session, attendance_date):
        logger.warning(
            "Token issued for session %s on unscheduled date %s", session.pk, attendance_date
        )
    logger.info(
        "Issued %s token %s for session %s on %s (expires %s)",
        kind, token.pk, session.pk, attendance_date, expires_at,
    )
    return token


def close_token(token: CheckInToken) -> CheckInToken:
    CheckInToken.objects.filter(pk=token.pk).update(is_valid=False)
    token.is_valid = False
    logger.info("Closed check-in token %s for session %s", token.pk, token.session_id)
    return token


def validate_token(value: str, session_id=None, attendance_date=None, now=None) -> CheckInToken:
    token = (
        CheckInToken.objects.select_related("session").filter(token=value).first()
        if value
        else None
    )
    return check_token(token, session_id, attendance_date, now)


def purge_expired_tokens(now=None) -> int:
    now = now or timezone.now()
    cutoff = now - timedelta(days=_setting("ATTENDANCE_TOKEN_RETENTION_DAYS", 7))
    deleted, _ = CheckInToken.objects.filter(expires_at__lt=cutoff).delete()
    logger.info("Purged %s check-in tokens expired before %s", deleted, cutoff)
    return deleted


# --- student check-in --------------------------------------------------------


def _host_for(session, day):
    return SessionDateHost.objects.filter(session=session, date=day).first()


def _check_proximity(session, host, latitude, longitude):
    """Return the distance to the host in meters, or None when not checked."""
    if not session.proximity_radius or host is None or not host.has_coordinates:
        return None
    if latitude is None or longitude is None:
        raise LocationRequired()
    ok, meters = geo.within_radius(
        latitude, longitude, host.latitude, host.longitude, session.proximity_radius
    )
    if not ok:
        logger.info(
            "Check-in rejected for session %s: %.0fm from host (radius %sm)",
            session.pk, meters, session.proximity_radius,
        )
        raise OutOfProximityRange(
            f"You are {meters:.0f}m from the session location "
            f"(allowed {session.proximity_radius}m)",
            distance_m=round(meters, 1),
            radius_m=session.proximity_radius,
        )
    return meters


def _classify_check_in(session, day, now) -> Classification:
    today = timezone.localdate(now)
    if day > today:
        raise CheckInNotOpen("You cannot check in before the session date")
    start, end = session_window(session, day)
    if start is None:
        # no schedule to compare against
        return classify(now, now, 0, now)
    if day == today and now < start:
        raise CheckInNotOpen(
            f"Check-in opens when the session starts at {session.start_time:%H:%M}"
        )
    return classify(start, end, session.grace_period_minutes, now)


def check_in(
    token_value: str,
    student,
    latitude=None,
    longitude=None,
    accuracy=None,
    session_id=None,
    attendance_date=None,
    now=None,
) -> AttendanceRecord:
    """
    Record a student's self check-in with a QR or photo token.

    The token is validated first, then the enrollment, the host date and
    GPS proximity. The record is written once; an earlier ``absent`` mark
    for the date is upgraded, anything else is ``DuplicateAttendance``.
    """
    now = now or timezone.now()
    token = validate_token(token_value, session_id, attendance_date, now)
    session = token.session
    day = token.attendance_date

    enrollment = (
        Enrollment.objects.select_related("student", "session")
        .filter(student=student, session=session, status=Enrollment.STATUS_ACTIVE)
        .first()
    )
    if enrollment is None or enrollment.enrollment_date > day:
        raise NotEnrolled()

    host = _host_for(session, day)
    if host is not None and host.is_cancelled:
        raise CheckInNotOpen("This session is not held on this date")
    meters = _check_proximity(session, host, latitude, longitude)
    result = _classify_check_in(session, day, now)

    values = {
        "status": result.status,
        "check_in_time": now,
        "late_minutes": result.late_minutes,
        "late_severity": result.severity or "",
        "gps_latitude": _coord(latitude),
        "gps_longitude": _coord(longitude),
        "gps_accuracy": accuracy,
        "distance_m": meters,
        "host_address": (host.host_address if host else "") or session.location,
        "token": token,
        "marked_by": getattr(student, "user", None),
        "marked_at": now,
        "excuse_reason": None,
    }
    with transaction.atomic():
        record = _write_check_in(enrollment, day, values)
        CheckInToken.objects.filter(pk=token.pk).update(
            used_count=F("used_count") + 1, last_used_at=now
        )
    logger.info(
        "Student %s checked in to session %s on %s: %s",
        student.pk, session.pk, day, result.message,
    )
    return record


def _existing_record(enrollment, day):
    return AttendanceRecord.objects.filter(enrollment=enrollment, date=day).first()


def _write_check_in(enrollment, day, values) -> AttendanceRecord:
    existing = _existing_record(enrollment, day)
    if existing is not None:
        if existing.status != ABSENT:
            raise DuplicateAttendance("You have already checked in for this session")
        # only the first upgrade of an absent mark wins
        updated = AttendanceRecord.objects.filter(pk=existing.pk, status=ABSENT).update(
            updated_at=timezone.now(), **values
        )
        if not updated:
            raise DuplicateAttendance("You have already checked in for this session")
        existing.refresh_from_db()
        return existing
    return create_record(enrollment, day, **values)


def create_record(enrollment, day, **values) -> AttendanceRecord:
    """Insert a record; losing a race on (enrollment, date) is ``DuplicateAttendance``."""
    try:
        with transaction.atomic():
            return AttendanceRecord.objects.create(enrollment=enrollment, date=day, **values)
    except IntegrityError as exc:
        if AttendanceRecord.objects.filter(enrollment=enrollment, date=day).exists():
            logger.info("Duplicate attendance for enrollment %s on %s", enrollment.pk, day)
            raise DuplicateAttendance() from exc
        raise


# --- staff marking -----------------------------------------------------------


def _clean_reason(status, excuse_reason):
    reason = (excuse_reason or "").strip()
    if status == EXCUSED and not reason:
        raise InvalidExcuseReason()
    return reason or None


def mark_attendance(
    enrollment: Enrollment,
    day: date,
    status: Optional[str] = None,
    actor=None,
    excuse_reason=None,
    check_in_time: Optional[datetime] = None,
    late_minutes=None,
    notes: str = "",
    reason: str = "",
) -> AttendanceRecord:
    """
    Create or re-mark a record on behalf of staff.

    When ``status`` is omitted it is derived from ``check_in_time``. Changes
    to an existing record are written to the audit log.
    """
    severity = ""
    result = None
    if check_in_time is not None and status in (None, LATE):
        start, end = session_window(enrollment.session, day)
        if start is not None:
            result = classify(start, end, enrollment.session.grace_period_minutes, check_in_time)
    if status is None:
        if result is None:
            raise AttendanceError("A status or check-in time is required")
        status = result.status
    if status not in VALID_STATUSES:
        raise AttendanceError(f"Unknown attendance status '{status}'")
    excuse = _clean_reason(status, excuse_reason)
    if status == LATE:
        if result is not None and result.is_late:
            late_minutes, severity = result.late_minutes, result.severity
        else:
            severity = MODERATE
    else:
        late_minutes = None

    now = timezone.now()
    values = {
        "status": status,
        "excuse_reason": excuse,
        "late_minutes": late_minutes,
        "late_severity": severity,
        "notes": notes or "",
        "marked_by": actor,
        "marked_at": now,
    }
    if check_in_time is not None:
        values["check_in_time"] = check_in_time

    with transaction.atomic():
        record = (
            AttendanceRecord.objects.select_for_update()
            .filter(enrollment=enrollment, date=day)
            .first()
        )
        if record is None:
            try:
                record = create_record(enrollment, day, **values)
            except DuplicateAttendance:
                record = AttendanceRecord.objects.select_for_update().get(
                    enrollment=enrollment, date=day
                )
            else:
                logger.info("Marked enrollment %s on %s as %s", enrollment.pk, day, status)
                return record
        old = _snapshot(record)
        for field, value in values.items():
            setattr(record, field, value)
        record.save()
        _audit(record, "UPDATE", actor=actor, old=old, new=_snapshot(record), reason=reason)
    logger.info("Re-marked enrollment %s on %s as %s", enrollment.pk, day, status)
    return record


def excuse(enrollment, day, excuse_reason, actor=None) -> AttendanceRecord:
    return mark_attendance(enrollment, day, EXCUSED, actor=actor, excuse_reason=excuse_reason)


def delete_record(record: AttendanceRecord, actor=None, reason: str = "") -> None:
    with transaction.atomic():
        _audit(record, "DELETE", actor=actor, old=_snapshot(record), reason=reason)
        record_id = record.pk
        record.delete()
    logger.warning("Deleted attendance record %s (%s)", record_id, reason or "no reason given")


def finalize_attendance(session: Session, day: date) -> Dict[str, int]:
    """
    Close out a session date: every enrollment without a record is marked
    ``absent``, or ``not enrolled`` when it was not active on that date.
    """
    host = _host_for(session, day)
    if host is not None and host.is_cancelled:
        logger.info("Session %s not held on %s; nothing to finalize", session.pk, day)
        return {"absent": 0, "not_enrolled": 0}
    counts = {"absent": 0, "not_enrolled": 0}
    for enrollment in session.enrollments.all():
        active = enrollment.is_active and enrollment.enrollment_date <= day
        status = ABSENT if active else NOT_ENROLLED
        _, created = AttendanceRecord.objects.get_or_create(
            enrollment=enrollment,
            date=day,
            defaults={"status": status, "marked_at": timezone.now()},
        )
        if created:
            counts["absent" if active else "not_enrolled"] += 1
    logger.info("Finalized session %s on %s: %s", session.pk, day, counts)
    return counts


def finalize_day(day: date) -> Dict[int, Dict[str, int]]:
    results = {}
    sessions = Session.objects.filter(start_date__lte=day, end_date__gte=day)
    for session in sessions:
        if is_scheduled(session, day):
            results[session.pk] = finalize_attendance(session, day)
    return results


# --- scoring -----------------------------------------------------------------


def scoring_params_for(teacher) -> ScoringParams:
    config = ScoringConfig.objects.filter(teacher=teacher, is_default=True).first()
    if config is None:
        return ScoringParams()
    return config.to_params()


def update_scoring_config(teacher, data: Dict[str, Any]) -> ScoringConfig:
    config = ScoringConfig.objects.filter(teacher=teacher, is_default=True).first()
    if config is None:
        config = ScoringConfig(teacher=teacher, is_default=True)
    for field in (
        "name",
        "weight_quality",
        "weight_attendance",
        "weight_punctuality",
        "late_decay_constant",
        "late_minimum_credit",
        "late_null_estimate",
        "coverage_enabled",
        "coverage_method",
        "coverage_minimum",
        "perfect_attendance_bonus",
        "streak_bonus_per_week",
        "absence_penalty_multiplier",
        "late_brackets",
    ):
        if field in data:
            setattr(config, field, data[field])
    # raises InvalidScoringConfig before anything is stored
    config.to_params()
    config.save()
    logger.info("Scoring config %s saved for teacher %s", config.pk, teacher.pk)
    return config


def score_enrollment(enrollment: Enrollment, params: Optional[ScoringParams] = None, as_of=None) -> ScoreResult:
    as_of = as_of or timezone.localdate()
    if params is None:
        params = scoring_params_for(enrollment.session.teacher)
    records = enrollment.attendance.filter(date__lte=as_of)
    possible = len(session_dates(enrollment.session, until=as_of))
    return score(records, params, total_possible_days=possible)
