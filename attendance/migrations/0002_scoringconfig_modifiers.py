from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("attendance", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="scoringconfig",
            name="perfect_attendance_bonus",
            field=models.FloatField(default=0.0),
        ),
        migrations.AddField(
            model_name="scoringconfig",
            name="streak_bonus_per_week",
            field=models.FloatField(default=0.0),
        ),
        migrations.AddField(
            model_name="scoringconfig",
            name="absence_penalty_multiplier",
            field=models.FloatField(default=1.0),
        ),
    ]
