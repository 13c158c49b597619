from django.db import models
from django.utils import timezone

from core.exceptions import InvalidState


class Transaction(models.Model):
    class Type(models.TextChoices):
        MEMBERSHIP_NEW = "membership_new", "New membership"
        MEMBERSHIP_RENEWAL = "membership_renewal", "Membership renewal"
        PRODUCT_SALE = "product_sale", "Product sale"
        INSTALLMENT_PAYMENT = "installment_payment", "Installment payment"

    MEMBERSHIP_TYPES = (
        Type.MEMBERSHIP_NEW,
        Type.MEMBERSHIP_RENEWAL,
        Type.INSTALLMENT_PAYMENT,
    )

    # Walk-in sales have no client.
    client = models.ForeignKey(
        "clients.Client",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )
    client_name = models.CharField(max_length=255, blank=True, default="")
    item_description = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=12, decimal_places=2)  # always positive, meaning comes from type
    type = models.CharField(max_length=32, choices=Type.choices)
    installment = models.ForeignKey(
        "billing.Installment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self):
        return f"{self.type} {self.amount} ({self.client_name or '—'})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise InvalidState("Transactions are immutable")
        super().save(*args, **kwargs)

    @property
    def is_membership_related(self) -> bool:
        return self.type in self.MEMBERSHIP_TYPES


class InstallmentPlan(models.Model):
    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        COMPLETED = "completed", "Completed"

    client = models.ForeignKey(
        "clients.Client",
        on_delete=models.CASCADE,
        related_name="installment_plans",
    )
    membership = models.ForeignKey(
        "memberships.MembershipPlan",
        on_delete=models.CASCADE,
        related_name="installment_plans",
    )

    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    installment_count = models.PositiveSmallIntegerField()
    installment_amount = models.DecimalField(max_digits=12, decimal_places=2)
    interest_rate = models.DecimalField(max_digits=6, decimal_places=4, default=0)  # 0.05 = 5%

    status = models.CharField(max_length=16, choices=Status.choices, default=Status.ACTIVE)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self):
        return f"InstallmentPlan({self.client_id}) {self.installment_count}x{self.installment_amount}"


class Installment(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        PAID = "paid", "Paid"

    class PaymentMethod(models.TextChoices):
        CASH = "cash", "Cash"
        CARD = "card", "Card"
        TRANSFER = "transfer", "Bank transfer"
        MOBILE = "mobile", "Mobile wallet"

    plan = models.ForeignKey(InstallmentPlan, on_delete=models.CASCADE, related_name="installments")
    sequence = models.PositiveSmallIntegerField()  # 1-based
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    due_date = models.DateField()

    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    paid_date = models.DateField(null=True, blank=True)
    payment_method = models.CharField(max_length=16, choices=PaymentMethod.choices, blank=True, default="")
    note = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ("plan_id", "sequence")
        constraints = [
            models.UniqueConstraint(fields=["plan", "sequence"], name="uniq_installment_sequence"),
        ]
        indexes = [
            models.Index(fields=["status", "due_date"], name="installment_status_due_idx"),
        ]

    def __str__(self):
        return f"Installment {self.sequence} of plan {self.plan_id}: {self.amount} ({self.status})"

    def is_overdue(self, today) -> bool:
        """Derived only; ``status`` itself is never set to overdue."""
        return self.status == self.Status.PENDING and self.due_date < today
