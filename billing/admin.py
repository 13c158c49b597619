from django.contrib import admin

from .models import Installment, InstallmentPlan, Transaction


class InstallmentInline(admin.TabularInline):
    model = Installment
    extra = 0
    fields = ("sequence", "amount", "due_date", "status", "paid_date", "payment_method", "note")
    readonly_fields = fields
    can_delete = False


@admin.register(InstallmentPlan)
class InstallmentPlanAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "client",
        "membership",
        "total_amount",
        "installment_count",
        "installment_amount",
        "interest_rate",
        "status",
        "created_at",
    )
    list_filter = ("status",)
    search_fields = ("client__human_code", "client__first_name", "client__last_name")
    readonly_fields = ("created_at",)
    ordering = ("-created_at",)
    inlines = [InstallmentInline]


@admin.register(Installment)
class InstallmentAdmin(admin.ModelAdmin):
    list_display = ("id", "plan", "sequence", "amount", "due_date", "status", "paid_date", "payment_method")
    list_filter = ("status", "payment_method", "due_date")
    search_fields = ("plan__client__human_code", "plan__client__first_name", "plan__client__last_name", "note")
    ordering = ("due_date",)


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("id", "client_name", "item_description", "amount", "type", "created_at")
    list_filter = ("type", "created_at")
    search_fields = ("client_name", "item_description", "client__human_code")
    ordering = ("-created_at",)

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
