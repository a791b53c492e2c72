from django.contrib import admin
from .models import Course, Session, Enrollment, SessionDateHost

@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    search_fields = ("name", "category")
    list_display = ("name", "category", "teacher")

@admin.register(Session)
class SessionAdmin(admin.ModelAdmin):
    list_display = ("course", "teacher", "start_date", "end_date", "weekdays", "start_time", "grace_period_minutes", "proximity_radius")
    list_filter = ("teacher",)

@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ("student", "session", "status", "enrollment_date", "can_host", "host_date")
    list_filter = ("status", "can_host")
    search_fields = ("student__first_name", "student__last_name")

admin.site.register(SessionDateHost)
