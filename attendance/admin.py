from django.contrib import admin
from .models import AttendanceRecord, AuditLog, CheckInToken, ScoringConfig

@admin.register(AttendanceRecord)
class AttendanceRecordAdmin(admin.ModelAdmin):
    list_display = ("enrollment", "date", "status", "late_minutes", "late_severity", "check_in_time")
    list_filter = ("status", "late_severity")
    date_hierarchy = "date"

@admin.register(CheckInToken)
class CheckInTokenAdmin(admin.ModelAdmin):
    list_display = ("session", "attendance_date", "kind", "expires_at", "is_valid", "used_count")
    list_filter = ("kind", "is_valid")

@admin.register(ScoringConfig)
class ScoringConfigAdmin(admin.ModelAdmin):
    list_display = ("name", "teacher", "is_default", "weight_quality", "weight_attendance", "weight_punctuality", "coverage_method")

@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("table_name", "record_id", "operation", "actor", "created_at")
    list_filter = ("operation", "table_name")
    readonly_fields = ("table_name", "record_id", "operation", "old_data", "new_data", "actor", "reason", "created_at")
