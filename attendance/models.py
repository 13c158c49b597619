from django.db import models
from django.utils import timezone


class AttendanceLog(models.Model):
    # Null when the presented code matched nobody.
    client = models.ForeignKey(
        "clients.Client",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="attendance_logs",
    )
    client_name = models.CharField(max_length=255)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    success = models.BooleanField(default=False)
    message = models.CharField(max_length=255)
    is_warning = models.BooleanField(default=False)

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self):
        mark = "+" if self.success else "-"
        return f"[{mark}] {self.client_name}: {self.message}"
