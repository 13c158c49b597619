from django.db import models

from core.dates import as_date


class ClientStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    EXPIRED = "expired", "Expired"
    INACTIVE = "inactive", "Inactive"


def derive_status(active_membership_id, membership_expiry_date, now) -> str:
    """
    Admission status from the stored membership window.

    The expiry day itself still counts as active; time of day is ignored.
    """
    if not active_membership_id or not membership_expiry_date:
        return ClientStatus.INACTIVE
    if as_date(membership_expiry_date) >= as_date(now):
        return ClientStatus.ACTIVE
    return ClientStatus.EXPIRED
