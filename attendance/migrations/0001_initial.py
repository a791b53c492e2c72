import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("academics", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="CheckInToken",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("kind", models.CharField(choices=[("qr", "QR code"), ("photo", "Photo check-in")], default="qr", max_length=8)),
                ("token", models.CharField(max_length=64, unique=True)),
                ("attendance_date", models.DateField()),
                ("expires_at", models.DateTimeField()),
                ("is_valid", models.BooleanField(default=True)),
                ("used_count", models.PositiveIntegerField(default=0)),
                ("last_used_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
                ("session", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="checkin_tokens", to="academics.session")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["session", "attendance_date"], name="checkin_token_session_date_idx"),
                    models.Index(fields=["expires_at"], name="checkin_token_expires_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AttendanceRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("status", models.CharField(choices=[("on time", "On time"), ("late", "Late"), ("absent", "Absent"), ("excused", "Excused"), ("not enrolled", "Not enrolled")], max_length=16)),
                ("check_in_time", models.DateTimeField(blank=True, null=True)),
                ("late_minutes", models.PositiveIntegerField(blank=True, null=True)),
                ("late_severity", models.CharField(blank=True, choices=[("moderate", "Late"), ("missed", "Checked in after session ended")], max_length=16)),
                ("gps_latitude", models.DecimalField(blank=True, decimal_places=8, max_digits=10, null=True)),
                ("gps_longitude", models.DecimalField(blank=True, decimal_places=8, max_digits=11, null=True)),
                ("gps_accuracy", models.FloatField(blank=True, null=True)),
                ("distance_m", models.FloatField(blank=True, null=True)),
                ("excuse_reason", models.CharField(blank=True, max_length=255, null=True)),
                ("host_address", models.CharField(blank=True, max_length=255)),
                ("notes", models.TextField(blank=True)),
                ("marked_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("enrollment", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="attendance", to="academics.enrollment")),
                ("marked_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
                ("token", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to="attendance.checkintoken")),
            ],
            options={
                "ordering": ["date"],
                "constraints": [
                    models.UniqueConstraint(fields=("enrollment", "date"), name="unique_enrollment_date"),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("status", "excused"), _negated=True),
                            models.Q(("excuse_reason__isnull", False), models.Q(("excuse_reason", ""), _negated=True)),
                            _connector="OR",
                        ),
                        name="attendance_excused_requires_reason",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("status__in", ["on time", "late", "absent", "excused", "not enrolled"])),
                        name="attendance_status_valid",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ScoringConfig",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(default="Default Scoring", max_length=128)),
                ("is_default", models.BooleanField(default=True)),
                ("weight_quality", models.FloatField(default=55.0)),
                ("weight_attendance", models.FloatField(default=35.0)),
                ("weight_punctuality", models.FloatField(default=10.0)),
                ("late_decay_constant", models.FloatField(default=43.3)),
                ("late_minimum_credit", models.FloatField(default=0.05)),
                ("late_null_estimate", models.FloatField(default=0.6)),
                ("coverage_enabled", models.BooleanField(default=True)),
                ("coverage_method", models.CharField(choices=[("sqrt", "Square root"), ("linear", "Linear"), ("log", "Logarithmic"), ("none", "None")], default="sqrt", max_length=8)),
                ("coverage_minimum", models.FloatField(default=0.1)),
                ("late_brackets", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("teacher", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="scoring_configs", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("is_default", True)), fields=("teacher",), name="one_default_scoring_config_per_teacher"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("table_name", models.CharField(max_length=64)),
                ("record_id", models.CharField(max_length=64)),
                ("operation", models.CharField(choices=[("INSERT", "INSERT"), ("UPDATE", "UPDATE"), ("DELETE", "DELETE")], max_length=8)),
                ("old_data", models.JSONField(blank=True, null=True)),
                ("new_data", models.JSONField(blank=True, null=True)),
                ("reason", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("actor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["table_name", "record_id"], name="audit_log_record_idx")],
            },
        ),
    ]
