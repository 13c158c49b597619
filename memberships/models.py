from django.core.validators import MinValueValidator
from django.db import models


class MembershipPlan(models.Model):
    name = models.CharField(max_length=120)
    description = models.TextField(blank=True, default="")
    cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(0)],
    )
    duration_days = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    # Promotional bundles (2x1, 3x1...). Only recorded, access is granted to the buyer alone.
    is_promotion = models.BooleanField(default=False)
    beneficiaries_count = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1)])

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("created_at", "id")

    def __str__(self):
        return f"{self.name} ({self.duration_days} d.)"

    @property
    def extra_beneficiaries(self) -> int:
        if not self.is_promotion:
            return 0
        return max(0, int(self.beneficiaries_count or 1) - 1)
