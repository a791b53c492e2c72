from django.conf import settings
from django.db import models
from django.db.models import Q
from students.models import Student


def default_grace_minutes():
    return getattr(settings, "ATTENDANCE_DEFAULT_GRACE_MINUTES", 15)


def default_proximity_radius():
    return getattr(settings, "ATTENDANCE_DEFAULT_PROXIMITY_RADIUS", 50)


class Course(models.Model):
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="courses"
    )
    name = models.CharField(max_length=200)
    category = models.CharField(max_length=64, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


class Session(models.Model):
    course = models.ForeignKey(Course, on_delete=models.PROTECT, related_name="sessions")
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="sessions"
    )
    start_date = models.DateField()
    end_date = models.DateField()
    # comma separated day names, e.g. "Monday,Wednesday"; blank means every day
    weekdays = models.CharField(max_length=128, blank=True)
    start_time = models.TimeField(null=True, blank=True)
    end_time = models.TimeField(null=True, blank=True)
    location = models.CharField(max_length=255, blank=True)
    grace_period_minutes = models.PositiveSmallIntegerField(default=default_grace_minutes)
    proximity_radius = models.PositiveIntegerField(
        null=True, blank=True, default=default_proximity_radius, help_text="Meters; empty disables the GPS check"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(grace_period_minutes__gte=0) & Q(grace_period_minutes__lte=60),
                name="session_grace_period_range",
            ),
            models.CheckConstraint(
                condition=Q(end_date__gte=models.F("start_date")),
                name="session_end_after_start",
            ),
        ]

    def __str__(self):
        return f"{self.course} ({self.start_date} - {self.end_date})"

    @property
    def weekday_names(self):
        return [d.strip().lower() for d in self.weekdays.split(",") if d.strip()]


class Enrollment(models.Model):
    STATUS_ACTIVE = "active"
    STATUS_CHOICES = [
        ("active", "Active"),
        ("completed", "Completed"),
        ("dropped", "Dropped"),
        ("pending", "Pending"),
    ]
    student = models.ForeignKey(Student, on_delete=models.PROTECT, related_name="enrollments")
    session = models.ForeignKey(Session, on_delete=models.PROTECT, related_name="enrollments")
    enrollment_date = models.DateField()
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    can_host = models.BooleanField(default=False)
    host_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["student", "session"], name="unique_student_session"
            ),
            models.CheckConstraint(
                condition=Q(status="active") | Q(can_host=False),
                name="enrollment_can_host_requires_active",
            ),
        ]

    def __str__(self):
        return f"{self.student} in {self.session}"

    @property
    def is_active(self):
        return self.status == self.STATUS_ACTIVE

    def save(self, *args, **kwargs):
        # hosting is only possible while the enrollment is active
        if not self.is_active:
            self.can_host = False
            self.host_date = None
        super().save(*args, **kwargs)


class SessionDateHost(models.Model):
    HOST_STUDENT = "student"
    HOST_TEACHER = "teacher"
    HOST_TYPE_CHOICES = [(HOST_STUDENT, "Student"), (HOST_TEACHER, "Teacher")]
    session = models.ForeignKey(Session, on_delete=models.CASCADE, related_name="hosts")
    date = models.DateField()
    host_type = models.CharField(max_length=16, choices=HOST_TYPE_CHOICES, default=HOST_TEACHER)
    host_student = models.ForeignKey(Student, on_delete=models.SET_NULL, null=True, blank=True)
    host_address = models.CharField(max_length=255, blank=True)
    latitude = models.DecimalField(max_digits=10, decimal_places=8, null=True, blank=True)
    longitude = models.DecimalField(max_digits=11, decimal_places=8, null=True, blank=True)
    is_cancelled = models.BooleanField(default=False)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["session", "date"], name="unique_session_date_host"),
            models.CheckConstraint(
                condition=Q(latitude__isnull=True) | (Q(latitude__gte=-90) & Q(latitude__lte=90)),
                name="host_latitude_range",
            ),
            models.CheckConstraint(
                condition=Q(longitude__isnull=True) | (Q(longitude__gte=-180) & Q(longitude__lte=180)),
                name="host_longitude_range",
            ),
        ]

    @property
    def has_coordinates(self):
        return self.latitude is not None and self.longitude is not None
