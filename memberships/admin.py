from django.contrib import admin
from .models import MembershipPlan


@admin.register(MembershipPlan)
class MembershipPlanAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "name",
        "cost",
        "duration_days",
        "is_promotion",
        "beneficiaries_count",
        "created_at",
    )
    list_filter = ("is_promotion",)
    search_fields = ("name", "description")
    ordering = ("created_at",)
