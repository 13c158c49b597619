from django.contrib import admin

from .models import Client, Measurement


class MeasurementInline(admin.TabularInline):
    model = Measurement
    extra = 0
    fields = ("measured_at", "weight", "height", "chest", "waist", "arm", "notes")


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "human_code",
        "first_name",
        "last_name",
        "phone",
        "active_membership",
        "membership_start_date",
        "membership_expiry_date",
        "status",
        "registered_at",
    )
    list_filter = ("status", "active_membership")
    search_fields = ("human_code", "first_name", "last_name", "phone", "dni", "email")
    readonly_fields = ("status", "registered_at")
    ordering = ("-registered_at",)
    inlines = [MeasurementInline]

    def save_model(self, request, obj, form, change):
        obj.refresh_status()
        super().save_model(request, obj, form, change)


@admin.register(Measurement)
class MeasurementAdmin(admin.ModelAdmin):
    list_display = ("id", "client", "measured_at", "weight", "height", "waist")
    search_fields = ("client__human_code", "client__first_name", "client__last_name")
    ordering = ("-measured_at",)
