import math
from datetime import date, timedelta

import pytest
from django.core.management import call_command
from django.db import IntegrityError, transaction

from academics.models import Enrollment, SessionDateHost
from attendance import services
from attendance.classifier import ABSENT, EXCUSED, LATE, MISSED, MODERATE, NOT_ENROLLED, ON_TIME
from attendance.errors import AttendanceError, InvalidExcuseReason, InvalidScoringConfig
from attendance.models import AttendanceRecord, AuditLog, ScoringConfig
from attendance.scoring import ScoringParams
from jobs.tasks import finalize_attendance_job
from students.models import Student

from .conftest import MONDAY, at

WEDNESDAY = MONDAY + timedelta(days=2)


@pytest.mark.parametrize("reason", [None, "", "   "])
def test_excused_requires_reason(enrollment, teacher, reason):
    with pytest.raises(InvalidExcuseReason):
        services.excuse(enrollment, MONDAY, reason, actor=teacher)
    assert not AttendanceRecord.objects.exists()


def test_excuse_with_reason(enrollment, teacher):
    record = services.excuse(enrollment, MONDAY, "  Medical appointment ", actor=teacher)
    assert record.status == EXCUSED
    assert record.excuse_reason == "Medical appointment"
    assert record.marked_by == teacher


def test_database_rejects_excused_without_reason(enrollment):
    with pytest.raises(IntegrityError), transaction.atomic():
        AttendanceRecord.objects.create(enrollment=enrollment, date=MONDAY, status=EXCUSED)


def test_remark_is_audited(enrollment, teacher):
    services.mark_attendance(enrollment, MONDAY, ABSENT, actor=teacher)
    assert not AuditLog.objects.exists()

    record = services.mark_attendance(
        enrollment, MONDAY, LATE, actor=teacher, late_minutes=12, reason="arrived with note"
    )
    assert record.status == LATE
    assert record.late_minutes == 12
    entry = AuditLog.objects.get()
    assert entry.operation == "UPDATE"
    assert entry.table_name == AttendanceRecord._meta.db_table
    assert entry.record_id == str(record.pk)
    assert entry.old_data["status"] == ABSENT
    assert entry.new_data["status"] == LATE
    assert entry.reason == "arrived with note"
    assert AttendanceRecord.objects.filter(enrollment=enrollment).count() == 1


def test_mark_derives_status_from_check_in_time(enrollment, teacher):
    record = services.mark_attendance(enrollment, MONDAY, actor=teacher, check_in_time=at(MONDAY, 12, 30))
    assert record.status == LATE
    assert record.late_severity == MISSED
    assert record.late_minutes == 195


def test_mark_rejects_unknown_status_and_missing_input(enrollment):
    with pytest.raises(AttendanceError):
        services.mark_attendance(enrollment, MONDAY, "present")
    with pytest.raises(AttendanceError):
        services.mark_attendance(enrollment, MONDAY)


def test_moving_away_from_late_clears_minutes(enrollment):
    services.mark_attendance(enrollment, MONDAY, LATE, late_minutes=9)
    record = services.mark_attendance(enrollment, MONDAY, ON_TIME)
    assert record.late_minutes is None
    assert record.late_severity == ""


def test_delete_is_audited(enrollment, teacher):
    record = services.mark_attendance(enrollment, MONDAY, ON_TIME, actor=teacher)
    record_id = record.pk
    services.delete_record(record, actor=teacher, reason="entered for wrong student")
    assert not AttendanceRecord.objects.filter(pk=record_id).exists()
    entry = AuditLog.objects.get(operation="DELETE")
    assert entry.record_id == str(record_id)
    assert entry.old_data["status"] == ON_TIME
    assert entry.actor == teacher


def test_finalize_marks_absent_and_not_enrolled(session, enrollment):
    late_joiner = Enrollment.objects.create(
        student=Student.objects.create(first_name="Lina", last_name="Nasser"),
        session=session,
        enrollment_date=WEDNESDAY,
    )
    already = Enrollment.objects.create(
        student=Student.objects.create(first_name="Sami", last_name="Aziz"),
        session=session,
        enrollment_date=MONDAY,
    )
    services.mark_attendance(already, MONDAY, ON_TIME)

    counts = services.finalize_attendance(session, MONDAY)

    assert counts == {"absent": 1, "not_enrolled": 1}
    assert AttendanceRecord.objects.get(enrollment=enrollment).status == ABSENT
    assert AttendanceRecord.objects.get(enrollment=late_joiner).status == NOT_ENROLLED
    assert AttendanceRecord.objects.get(enrollment=already).status == ON_TIME
    assert services.finalize_attendance(session, MONDAY) == {"absent": 0, "not_enrolled": 0}


def test_finalize_skips_cancelled_dates(session, enrollment):
    SessionDateHost.objects.create(session=session, date=MONDAY, is_cancelled=True)
    assert services.finalize_attendance(session, MONDAY) == {"absent": 0, "not_enrolled": 0}
    assert not AttendanceRecord.objects.exists()


def test_finalize_day_only_touches_scheduled_sessions(session, enrollment):
    tuesday = MONDAY + timedelta(days=1)
    assert services.finalize_day(tuesday) == {}
    assert services.finalize_day(MONDAY) == {session.pk: {"absent": 1, "not_enrolled": 0}}


def test_finalize_job_and_command(session, enrollment):
    assert finalize_attendance_job(session.pk, WEDNESDAY.isoformat()) == {"absent": 1, "not_enrolled": 0}
    call_command("finalize_attendance", "--date", MONDAY.isoformat(), "--session", str(session.pk))
    assert AttendanceRecord.objects.filter(enrollment=enrollment).count() == 2


def test_can_host_only_while_active(enrollment):
    enrollment.can_host = True
    enrollment.host_date = MONDAY
    enrollment.save()
    enrollment.status = "completed"
    enrollment.save()
    enrollment.refresh_from_db()
    assert enrollment.can_host is False
    assert enrollment.host_date is None

    with pytest.raises(IntegrityError), transaction.atomic():
        Enrollment.objects.filter(pk=enrollment.pk).update(can_host=True)


def test_scoring_params_default_and_configured(teacher):
    assert services.scoring_params_for(teacher) == ScoringParams()
    ScoringConfig.objects.create(teacher=teacher, weight_quality=60, weight_attendance=30, weight_punctuality=10)
    params = services.scoring_params_for(teacher)
    assert params.weight_quality == 60
    assert params.late_brackets[0] == ("Minor", 1, 5)


def test_update_scoring_config_validates_before_saving(teacher):
    with pytest.raises(InvalidScoringConfig):
        services.update_scoring_config(teacher, {"weight_quality": 90})
    assert not ScoringConfig.objects.exists()

    config = services.update_scoring_config(
        teacher, {"weight_quality": 50, "weight_attendance": 40, "coverage_method": "linear"}
    )
    assert config.is_default
    assert services.scoring_params_for(teacher).coverage_method == "linear"


def test_one_default_config_per_teacher(teacher):
    ScoringConfig.objects.create(teacher=teacher)
    ScoringConfig.objects.create(teacher=teacher, name="Experimental", is_default=False)
    with pytest.raises(IntegrityError), transaction.atomic():
        ScoringConfig.objects.create(teacher=teacher, name="Another default")


def test_score_enrollment_applies_coverage_over_session_dates(session, enrollment):
    # Monday and Wednesday meetings in January 2025: 8 dates up to the 29th
    for day in (MONDAY, WEDNESDAY):
        services.mark_attendance(enrollment, day, ON_TIME)
    result = services.score_enrollment(enrollment, as_of=date(2025, 1, 29))
    assert result.total_possible_days == 8
    assert result.effective_days == 2
    assert result.coverage_factor == pytest.approx(0.5)
    assert result.weighted_score == pytest.approx(0.5)


def test_score_enrollment_without_records_is_insufficient(enrollment):
    result = services.score_enrollment(enrollment, as_of=MONDAY)
    assert result.insufficient_data
    assert result.weighted_score is None


def test_explicit_late_with_check_in_time_derives_minutes_and_severity(enrollment, teacher):
    record = services.mark_attendance(enrollment, MONDAY, LATE, actor=teacher, check_in_time=at(MONDAY, 9, 30))
    assert record.late_minutes == 15
    assert record.late_severity == MODERATE

    result = services.score_enrollment(enrollment, as_of=MONDAY)
    assert result.late_credit == pytest.approx(math.exp(-15 / 43.3))


def test_explicit_late_with_minutes_only_is_moderate(enrollment):
    record = services.mark_attendance(enrollment, MONDAY, LATE, late_minutes=7)
    assert record.late_minutes == 7
    assert record.late_severity == MODERATE


def test_score_enrollment_applies_configured_modifiers(session, enrollment, teacher):
    ScoringConfig.objects.create(teacher=teacher, perfect_attendance_bonus=5)
    services.mark_attendance(enrollment, MONDAY, ON_TIME)
    result = services.score_enrollment(enrollment, as_of=date(2025, 1, 8))
    assert result.weighted_score == pytest.approx(math.sqrt(0.5))
    assert result.adjusted_score == pytest.approx(math.sqrt(0.5) + 0.05)
