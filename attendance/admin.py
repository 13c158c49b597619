from django.contrib import admin

from .models import AttendanceLog


@admin.register(AttendanceLog)
class AttendanceLogAdmin(admin.ModelAdmin):
    list_display = ("id", "created_at", "client_name", "success", "is_warning", "message")
    list_filter = ("success", "is_warning", "created_at")
    search_fields = ("client_name", "client__human_code", "message")
    ordering = ("-created_at",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
