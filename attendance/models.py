from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from academics.models import Enrollment, Session

from .classifier import EXCUSED, LATE, SEVERITY_CHOICES, STATUS_CHOICES
from .errors import InvalidScoringConfig
from .scoring import DEFAULT_LATE_BRACKETS, ScoringParams


class CheckInToken(models.Model):
    KIND_QR = "qr"
    KIND_PHOTO = "photo"
    KIND_CHOICES = [(KIND_QR, "QR code"), (KIND_PHOTO, "Photo check-in")]
    kind = models.CharField(max_length=8, choices=KIND_CHOICES, default=KIND_QR)
    token = models.CharField(max_length=64, unique=True)
    session = models.ForeignKey(Session, on_delete=models.CASCADE, related_name="checkin_tokens")
    attendance_date = models.DateField()
    expires_at = models.DateTimeField()
    is_valid = models.BooleanField(default=True)
    used_count = models.PositiveIntegerField(default=0)
    last_used_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["session", "attendance_date"], name="checkin_token_session_date_idx"),
            models.Index(fields=["expires_at"], name="checkin_token_expires_idx"),
        ]

    def __str__(self):
        return f"{self.kind} {self.session_id} {self.attendance_date}"


class AttendanceRecord(models.Model):
    enrollment = models.ForeignKey(Enrollment, on_delete=models.PROTECT, related_name="attendance")
    date = models.DateField()
    status = models.CharField(max_length=16, choices=STATUS_CHOICES)
    check_in_time = models.DateTimeField(null=True, blank=True)
    late_minutes = models.PositiveIntegerField(null=True, blank=True)
    late_severity = models.CharField(max_length=16, choices=SEVERITY_CHOICES, blank=True)
    gps_latitude = models.DecimalField(max_digits=10, decimal_places=8, null=True, blank=True)
    gps_longitude = models.DecimalField(max_digits=11, decimal_places=8, null=True, blank=True)
    gps_accuracy = models.FloatField(null=True, blank=True)
    distance_m = models.FloatField(null=True, blank=True)
    excuse_reason = models.CharField(max_length=255, null=True, blank=True)
    host_address = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)
    token = models.ForeignKey(CheckInToken, on_delete=models.SET_NULL, null=True, blank=True)
    marked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True
    )
    marked_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["date"]
        constraints = [
            models.UniqueConstraint(fields=["enrollment", "date"], name="unique_enrollment_date"),
            models.CheckConstraint(
                condition=~Q(status=EXCUSED) | (Q(excuse_reason__isnull=False) & ~Q(excuse_reason="")),
                name="attendance_excused_requires_reason",
            ),
            models.CheckConstraint(
                condition=Q(status__in=[s for s, _ in STATUS_CHOICES]),
                name="attendance_status_valid",
            ),
        ]

    def __str__(self):
        return f"{self.enrollment_id} {self.date} {self.status}"

    @property
    def is_late(self):
        return self.status == LATE


class ScoringConfig(models.Model):
    COVERAGE_CHOICES = [
        ("sqrt", "Square root"),
        ("linear", "Linear"),
        ("log", "Logarithmic"),
        ("none", "None"),
    ]
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="scoring_configs"
    )
    name = models.CharField(max_length=128, default="Default Scoring")
    is_default = models.BooleanField(default=True)
    weight_quality = models.FloatField(default=55.0)
    weight_attendance = models.FloatField(default=35.0)
    weight_punctuality = models.FloatField(default=10.0)
    late_decay_constant = models.FloatField(default=43.3)
    late_minimum_credit = models.FloatField(default=0.05)
    late_null_estimate = models.FloatField(default=0.60)
    coverage_enabled = models.BooleanField(default=True)
    coverage_method = models.CharField(max_length=8, choices=COVERAGE_CHOICES, default="sqrt")
    coverage_minimum = models.FloatField(default=0.10)
    perfect_attendance_bonus = models.FloatField(default=0.0)
    streak_bonus_per_week = models.FloatField(default=0.0)
    absence_penalty_multiplier = models.FloatField(default=1.0)
    late_brackets = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["teacher"],
                condition=Q(is_default=True),
                name="one_default_scoring_config_per_teacher",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.teacher})"

    def to_params(self) -> ScoringParams:
        brackets = self.late_brackets or [
            {"label": label, "min": lo, "max": hi} for label, lo, hi in DEFAULT_LATE_BRACKETS
        ]
        return ScoringParams.from_mapping(
            {
                "weight_quality": self.weight_quality,
                "weight_attendance": self.weight_attendance,
                "weight_punctuality": self.weight_punctuality,
                "late_decay_constant": self.late_decay_constant,
                "late_minimum_credit": self.late_minimum_credit,
                "late_null_estimate": self.late_null_estimate,
                "coverage_enabled": self.coverage_enabled,
                "coverage_method": self.coverage_method,
                "coverage_minimum": self.coverage_minimum,
                "perfect_attendance_bonus": self.perfect_attendance_bonus,
                "streak_bonus_per_week": self.streak_bonus_per_week,
                "absence_penalty_multiplier": self.absence_penalty_multiplier,
                "late_brackets": brackets,
            }
        )

    def clean(self):
        try:
            self.to_params()
        except InvalidScoringConfig as exc:
            raise ValidationError(exc.message)


class AuditLog(models.Model):
    OPERATION_CHOICES = [("INSERT", "INSERT"), ("UPDATE", "UPDATE"), ("DELETE", "DELETE")]
    table_name = models.CharField(max_length=64)
    record_id = models.CharField(max_length=64)
    operation = models.CharField(max_length=8, choices=OPERATION_CHOICES)
    old_data = models.JSONField(null=True, blank=True)
    new_data = models.JSONField(null=True, blank=True)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True
    )
    reason = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["table_name", "record_id"], name="audit_log_record_idx")]
