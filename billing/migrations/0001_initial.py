import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True
    dependencies = [
        ("clients", "0001_initial"),
        ("memberships", "0001_initial"),
    ]
    operations = [
        migrations.CreateModel(
            name="InstallmentPlan",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("installment_count", models.PositiveSmallIntegerField()),
                ("installment_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("interest_rate", models.DecimalField(decimal_places=4, default=0, max_digits=6)),
                ("status", models.CharField(choices=[("active", "Active"), ("completed", "Completed")], default="active", max_length=16)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("client", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="installment_plans", to="clients.client")),
                ("membership", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="installment_plans", to="memberships.membershipplan")),
            ],
            options={"ordering": ("-created_at", "-id")},
        ),
        migrations.CreateModel(
            name="Installment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("sequence", models.PositiveSmallIntegerField()),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("due_date", models.DateField()),
                ("status", models.CharField(choices=[("pending", "Pending"), ("paid", "Paid")], default="pending", max_length=16)),
                ("paid_date", models.DateField(blank=True, null=True)),
                ("payment_method", models.CharField(blank=True, choices=[("cash", "Cash"), ("card", "Card"), ("transfer", "Bank transfer"), ("mobile", "Mobile wallet")], default="", max_length=16)),
                ("note", models.CharField(blank=True, default="", max_length=255)),
                ("plan", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="installments", to="billing.installmentplan")),
            ],
            options={
                "ordering": ("plan_id", "sequence"),
                "indexes": [models.Index(fields=["status", "due_date"], name="installment_status_due_idx")],
                "constraints": [models.UniqueConstraint(fields=("plan", "sequence"), name="uniq_installment_sequence")],
            },
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("client_name", models.CharField(blank=True, default="", max_length=255)),
                ("item_description", models.CharField(max_length=255)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("type", models.CharField(choices=[("membership_new", "New membership"), ("membership_renewal", "Membership renewal"), ("product_sale", "Product sale"), ("installment_payment", "Installment payment")], max_length=32)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("client", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="transactions", to="clients.client")),
                ("installment", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="transactions", to="billing.installment")),
            ],
            options={"ordering": ("-created_at", "-id")},
        ),
    ]
