import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [("clients", "0001_initial")]
    operations = [
        migrations.CreateModel(
            name="Measurement",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("measured_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("weight", models.DecimalField(decimal_places=2, max_digits=6)),
                ("height", models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True)),
                ("chest", models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True)),
                ("waist", models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True)),
                ("arm", models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True)),
                ("notes", models.CharField(blank=True, default="", max_length=255)),
                ("client", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="measurements", to="clients.client")),
            ],
            options={"ordering": ("-measured_at", "-id")},
        ),
    ]
