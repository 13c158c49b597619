from django.db.models.signals import pre_delete
from django.dispatch import receiver

from memberships.models import MembershipPlan

from .services import detach_plan


@receiver(pre_delete, sender=MembershipPlan)
def detach_plan_before_delete(sender, instance: MembershipPlan, **kwargs):
    """Clients must never point at a deleted plan; their status is re-derived."""
    detach_plan(instance)
