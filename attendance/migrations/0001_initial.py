import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True
    dependencies = [("clients", "0001_initial")]
    operations = [
        migrations.CreateModel(
            name="AttendanceLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("client_name", models.CharField(max_length=255)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("success", models.BooleanField(default=False)),
                ("message", models.CharField(max_length=255)),
                ("is_warning", models.BooleanField(default=False)),
                ("client", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="attendance_logs", to="clients.client")),
            ],
            options={"ordering": ("-created_at", "-id")},
        ),
    ]
