import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True
    dependencies = [("memberships", "0001_initial")]
    operations = [
        migrations.CreateModel(
            name="Client",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("human_code", models.CharField(max_length=16, unique=True, verbose_name="Code")),
                ("first_name", models.CharField(max_length=80)),
                ("last_name", models.CharField(blank=True, default="", max_length=80)),
                ("phone", models.CharField(blank=True, default="", max_length=32)),
                ("dni", models.CharField(blank=True, default="", max_length=20, verbose_name="DNI")),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("address", models.CharField(blank=True, default="", max_length=255)),
                ("membership_start_date", models.DateField(blank=True, null=True)),
                ("membership_expiry_date", models.DateField(blank=True, null=True)),
                ("status", models.CharField(choices=[("active", "Active"), ("expired", "Expired"), ("inactive", "Inactive")], default="inactive", editable=False, max_length=16)),
                ("registered_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("active_membership", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="clients", to="memberships.membershipplan")),
            ],
            options={
                "ordering": ("-registered_at", "-id"),
                "indexes": [models.Index(fields=["status", "membership_expiry_date"], name="client_status_exp_idx")],
            },
        ),
    ]
