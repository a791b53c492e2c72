from rest_framework import serializers

from .classifier import STATUS_CHOICES
from .errors import InvalidScoringConfig
from .models import AttendanceRecord, CheckInToken, ScoringConfig
from .scoring import ScoringParams


class CheckInTokenSerializer(serializers.ModelSerializer):
    class Meta:
        model = CheckInToken
        fields = [
            "id", "kind", "token", "session", "attendance_date",
            "expires_at", "is_valid", "used_count", "last_used_at",
        ]
        read_only_fields = fields


class IssueTokenSerializer(serializers.Serializer):
    date = serializers.DateField()
    kind = serializers.ChoiceField(choices=CheckInToken.KIND_CHOICES, default=CheckInToken.KIND_QR)


class CheckInSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=64)
    session_id = serializers.IntegerField(required=False)
    date = serializers.DateField(required=False)
    latitude = serializers.FloatField(min_value=-90, max_value=90, required=False, allow_null=True)
    longitude = serializers.FloatField(min_value=-180, max_value=180, required=False, allow_null=True)
    accuracy = serializers.FloatField(min_value=0, required=False, allow_null=True)

    def validate(self, attrs):
        if (attrs.get("latitude") is None) != (attrs.get("longitude") is None):
            raise serializers.ValidationError("latitude and longitude must be sent together")
        return attrs


class MarkAttendanceSerializer(serializers.Serializer):
    enrollment_id = serializers.IntegerField()
    date = serializers.DateField()
    status = serializers.ChoiceField(choices=STATUS_CHOICES, required=False)
    excuse_reason = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    check_in_time = serializers.DateTimeField(required=False)
    late_minutes = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    reason = serializers.CharField(required=False, allow_blank=True)


class FinalizeSerializer(serializers.Serializer):
    date = serializers.DateField()


class AttendanceRecordSerializer(serializers.ModelSerializer):
    class Meta:
        model = AttendanceRecord
        fields = [
            "id", "enrollment", "date", "status", "check_in_time", "late_minutes",
            "late_severity", "gps_latitude", "gps_longitude", "gps_accuracy",
            "distance_m", "excuse_reason", "host_address", "notes", "marked_at",
        ]
        read_only_fields = fields


class ScoringConfigSerializer(serializers.ModelSerializer):
    class Meta:
        model = ScoringConfig
        fields = [
            "id", "name", "is_default", "weight_quality", "weight_attendance",
            "weight_punctuality", "late_decay_constant", "late_minimum_credit",
            "late_null_estimate", "coverage_enabled", "coverage_method",
            "coverage_minimum", "perfect_attendance_bonus", "streak_bonus_per_week",
            "absence_penalty_multiplier", "late_brackets", "updated_at",
        ]
        read_only_fields = ["id", "is_default", "updated_at"]

    def validate(self, attrs):
        current = {}
        if self.instance is not None:
            current = {f: getattr(self.instance, f) for f in ScoringParams.__dataclass_fields__}
        current.update({k: v for k, v in attrs.items() if k in ScoringParams.__dataclass_fields__})
        if not current.get("late_brackets"):
            current.pop("late_brackets", None)
        try:
            ScoringParams.from_mapping(current)
        except InvalidScoringConfig as exc:
            raise serializers.ValidationError(exc.message)
        except (KeyError, TypeError, ValueError):
            raise serializers.ValidationError("late_brackets must be a list of {label, min, max}")
        return attrs


class SessionHostSerializer(serializers.Serializer):
    date = serializers.DateField()
    student_id = serializers.IntegerField(required=False, allow_null=True)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    latitude = serializers.DecimalField(max_digits=10, decimal_places=8, min_value=-90, max_value=90, required=False, allow_null=True)
    longitude = serializers.DecimalField(max_digits=11, decimal_places=8, min_value=-180, max_value=180, required=False, allow_null=True)
    cancelled = serializers.BooleanField(default=False)
