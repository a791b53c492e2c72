from django.core.exceptions import ValidationError as DjangoValidationError
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from academics.hosting import assign_host
from academics.models import Enrollment
from students.decorators import require_session_staff
from students.models import Student
from students.permissions import can_manage_session, can_view_enrollment, student_for_user

from . import services
from .errors import AttendanceError, InsufficientData, NotEnrolled
from .geo import accuracy_label
from .models import AttendanceRecord, CheckInToken, ScoringConfig
from .reports import session_report
from .scoring import coverage_curve, decay_curve
from .serializers import (
    AttendanceRecordSerializer,
    CheckInSerializer,
    CheckInTokenSerializer,
    FinalizeSerializer,
    IssueTokenSerializer,
    MarkAttendanceSerializer,
    ScoringConfigSerializer,
    SessionHostSerializer,
)


def exception_handler(exc, context):
    """Render attendance rejections as ``{"error", "message"}`` bodies."""
    if isinstance(exc, AttendanceError):
        return Response(exc.as_dict(), status=exc.status_code)
    return drf_exception_handler(exc, context)


def _forbidden():
    return Response({"error": "forbidden", "message": "Not authorized"}, status=status.HTTP_403_FORBIDDEN)


def _as_of(request):
    raw = request.query_params.get("as_of")
    if not raw:
        return timezone.localdate()
    try:
        day = parse_date(raw)
    except ValueError:
        day = None
    if day is None:
        raise ValidationError({"as_of": "Use YYYY-MM-DD"})
    return day


@api_view(["POST"])
@permission_classes([IsAuthenticated])
@require_session_staff()
def issue_token(request, session):
    serializer = IssueTokenSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    token = services.issue_token(
        session,
        serializer.validated_data["date"],
        kind=serializer.validated_data["kind"],
        created_by=request.user,
    )
    return Response(CheckInTokenSerializer(token).data, status=status.HTTP_201_CREATED)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def close_token(request, token):
    obj = get_object_or_404(CheckInToken.objects.select_related("session"), token=token)
    if not can_manage_session(request.user, obj.session):
        return _forbidden()
    services.close_token(obj)
    return Response(CheckInTokenSerializer(obj).data)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def check_in(request):
    student = student_for_user(request.user)
    if student is None:
        raise NotEnrolled("Only students can check in")
    serializer = CheckInSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    record = services.check_in(
        data["token"],
        student,
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
        accuracy=data.get("accuracy"),
        session_id=data.get("session_id"),
        attendance_date=data.get("date"),
    )
    payload = AttendanceRecordSerializer(record).data
    payload["gps_quality"] = accuracy_label(data.get("accuracy"))
    return Response(payload, status=status.HTTP_201_CREATED)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
@require_session_staff()
def mark_attendance(request, session):
    serializer = MarkAttendanceSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    enrollment = get_object_or_404(Enrollment, pk=data["enrollment_id"], session=session)
    record = services.mark_attendance(
        enrollment,
        data["date"],
        data.get("status"),
        actor=request.user,
        excuse_reason=data.get("excuse_reason"),
        check_in_time=data.get("check_in_time"),
        late_minutes=data.get("late_minutes"),
        notes=data.get("notes", ""),
        reason=data.get("reason", ""),
    )
    return Response(AttendanceRecordSerializer(record).data)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
@require_session_staff()
def finalize(request, session):
    serializer = FinalizeSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    counts = services.finalize_attendance(session, serializer.validated_data["date"])
    return Response(counts)


@api_view(["DELETE"])
@permission_classes([IsAuthenticated])
def delete_record(request, record_id):
    record = get_object_or_404(
        AttendanceRecord.objects.select_related("enrollment__session"), pk=record_id
    )
    if not can_manage_session(request.user, record.enrollment.session):
        return _forbidden()
    services.delete_record(record, actor=request.user, reason=request.data.get("reason", ""))
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def enrollment_score(request, enrollment_id):
    enrollment = get_object_or_404(
        Enrollment.objects.select_related("student", "session"), pk=enrollment_id
    )
    if not can_view_enrollment(request.user, enrollment):
        return _forbidden()
    result = services.score_enrollment(enrollment, as_of=_as_of(request))
    if result.insufficient_data:
        raise InsufficientData(
            effective_days=result.effective_days,
            total_possible_days=result.total_possible_days,
        )
    return Response(result.as_dict())


@api_view(["GET"])
@permission_classes([IsAuthenticated])
@require_session_staff()
def report(request, session):
    params = services.scoring_params_for(session.teacher)
    return Response(session_report(session, params, as_of=_as_of(request)))


@api_view(["GET", "PUT"])
@permission_classes([IsAuthenticated])
def scoring_config(request):
    if not (request.user.is_teacher or request.user.is_admin):
        return _forbidden()
    if request.method == "PUT":
        instance = ScoringConfig.objects.filter(teacher=request.user, is_default=True).first()
        serializer = ScoringConfigSerializer(instance, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        config = services.update_scoring_config(request.user, serializer.validated_data)
        return Response(ScoringConfigSerializer(config).data)
    params = services.scoring_params_for(request.user)
    return Response(
        {
            "params": {
                "weight_quality": params.weight_quality,
                "weight_attendance": params.weight_attendance,
                "weight_punctuality": params.weight_punctuality,
                "late_decay_constant": params.late_decay_constant,
                "late_minimum_credit": params.late_minimum_credit,
                "late_null_estimate": params.late_null_estimate,
                "coverage_enabled": params.coverage_enabled,
                "coverage_method": params.coverage_method,
                "coverage_minimum": params.coverage_minimum,
                "perfect_attendance_bonus": params.perfect_attendance_bonus,
                "streak_bonus_per_week": params.streak_bonus_per_week,
                "absence_penalty_multiplier": params.absence_penalty_multiplier,
                "late_brackets": [
                    {"label": label, "min": lo, "max": hi}
                    for label, lo, hi in params.late_brackets
                ],
            },
            "decay_curve": decay_curve(params),
            "coverage_curve": coverage_curve(params),
        }
    )


@api_view(["POST"])
@permission_classes([IsAuthenticated])
@require_session_staff()
def set_host(request, session):
    serializer = SessionHostSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    student = None
    if data.get("student_id"):
        student = get_object_or_404(Student, pk=data["student_id"])
    try:
        host = assign_host(
            session,
            data["date"],
            student=student,
            address=data.get("address", ""),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            cancelled=data["cancelled"],
        )
    except DjangoValidationError as exc:
        raise ValidationError(exc.messages)
    return Response(
        {
            "date": host.date.isoformat(),
            "host_type": host.host_type,
            "host_address": host.host_address,
            "latitude": host.latitude,
            "longitude": host.longitude,
            "is_cancelled": host.is_cancelled,
        }
    )
