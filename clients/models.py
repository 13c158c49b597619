from django.db import models
from django.utils import timezone

from core.dates import as_date, today as local_today

from .status import ClientStatus, derive_status


class Client(models.Model):
    Status = ClientStatus

    human_code = models.CharField("Code", max_length=16, unique=True)

    first_name = models.CharField(max_length=80)
    last_name = models.CharField(max_length=80, blank=True, default="")
    phone = models.CharField(max_length=32, blank=True, default="")
    dni = models.CharField("DNI", max_length=20, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.CharField(max_length=255, blank=True, default="")

    active_membership = models.ForeignKey(
        "memberships.MembershipPlan",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="clients",
    )
    membership_start_date = models.DateField(null=True, blank=True)
    membership_expiry_date = models.DateField(null=True, blank=True)

    # Always derived from the window above, see set_membership_window / refresh_status.
    status = models.CharField(
        max_length=16,
        choices=ClientStatus.choices,
        default=ClientStatus.INACTIVE,
        editable=False,
    )

    registered_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ("-registered_at", "-id")
        indexes = [
            models.Index(fields=["status", "membership_expiry_date"], name="client_status_exp_idx"),
        ]

    def __str__(self):
        return self.full_name or f"Client #{self.human_code}"

    @property
    def full_name(self) -> str:
        return " ".join(
            part.strip() for part in [self.first_name, self.last_name] if part and part.strip()
        ).strip()

    def derived_status(self, now=None) -> str:
        return derive_status(self.active_membership_id, self.membership_expiry_date, now or local_today())

    def refresh_status(self, now=None) -> bool:
        """Recompute status in memory. True if it changed."""
        status = self.derived_status(now)
        if status == self.status:
            return False
        self.status = status
        return True

    def set_membership_window(self, plan, start_date, expiry_date, now=None) -> None:
        """The only place the membership fields are written."""
        self.active_membership = plan
        self.membership_start_date = start_date
        self.membership_expiry_date = expiry_date
        self.refresh_status(now)

    def clear_membership(self, now=None) -> None:
        self.active_membership = None
        self.refresh_status(now)

    def days_remaining(self, now=None) -> int | None:
        if not self.membership_expiry_date:
            return None
        return (self.membership_expiry_date - as_date(now or local_today())).days


class Measurement(models.Model):
    """Body measurements taken at the desk; weight in kg, the rest in cm."""

    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name="measurements")
    measured_at = models.DateTimeField(default=timezone.now)

    weight = models.DecimalField(max_digits=6, decimal_places=2)
    height = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    chest = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    waist = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    arm = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    notes = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ("-measured_at", "-id")

    def __str__(self):
        return f"{self.client_id} @ {self.measured_at:%d.%m.%Y}: {self.weight} kg"
