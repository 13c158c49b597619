from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "GymDesk admin"
admin.site.site_title = "GymDesk"
admin.site.index_title = "Management"

urlpatterns = [
    path("admin/", admin.site.urls),
    path("clients/", include("clients.urls")),
    path("billing/", include("billing.urls")),
    path("attendance/", include("attendance.urls")),
]
