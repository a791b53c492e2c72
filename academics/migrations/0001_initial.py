import academics.models
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("students", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Course",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("category", models.CharField(blank=True, max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("teacher", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="courses", to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name="Session",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("weekdays", models.CharField(blank=True, max_length=128)),
                ("start_time", models.TimeField(blank=True, null=True)),
                ("end_time", models.TimeField(blank=True, null=True)),
                ("location", models.CharField(blank=True, max_length=255)),
                ("grace_period_minutes", models.PositiveSmallIntegerField(default=academics.models.default_grace_minutes)),
                ("proximity_radius", models.PositiveIntegerField(blank=True, default=academics.models.default_proximity_radius, help_text="Meters; empty disables the GPS check", null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("course", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="sessions", to="academics.course")),
                ("teacher", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="sessions", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("grace_period_minutes__gte", 0), ("grace_period_minutes__lte", 60)), name="session_grace_period_range"),
                    models.CheckConstraint(condition=models.Q(("end_date__gte", models.F("start_date"))), name="session_end_after_start"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Enrollment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("enrollment_date", models.DateField()),
                ("status", models.CharField(choices=[("active", "Active"), ("completed", "Completed"), ("dropped", "Dropped"), ("pending", "Pending")], default="active", max_length=16)),
                ("can_host", models.BooleanField(default=False)),
                ("host_date", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("session", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="enrollments", to="academics.session")),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="enrollments", to="students.student")),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("student", "session"), name="unique_student_session"),
                    models.CheckConstraint(condition=models.Q(("status", "active"), ("can_host", False), _connector="OR"), name="enrollment_can_host_requires_active"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SessionDateHost",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("host_type", models.CharField(choices=[("student", "Student"), ("teacher", "Teacher")], default="teacher", max_length=16)),
                ("host_address", models.CharField(blank=True, max_length=255)),
                ("latitude", models.DecimalField(blank=True, decimal_places=8, max_digits=10, null=True)),
                ("longitude", models.DecimalField(blank=True, decimal_places=8, max_digits=11, null=True)),
                ("is_cancelled", models.BooleanField(default=False)),
                ("host_student", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to="students.student")),
                ("session", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="hosts", to="academics.session")),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("session", "date"), name="unique_session_date_host"),
                    models.CheckConstraint(condition=models.Q(("latitude__isnull", True), models.Q(("latitude__gte", -90), ("latitude__lte", 90)), _connector="OR"), name="host_latitude_range"),
                    models.CheckConstraint(condition=models.Q(("longitude__isnull", True), models.Q(("longitude__gte", -180), ("longitude__lte", 180)), _connector="OR"), name="host_longitude_range"),
                ],
            },
        ),
    ]
