from django.urls import path

from . import views

app_name = "clients"

urlpatterns = [
    path("register/", views.register, name="register"),
    path("<int:client_id>/renew/", views.renew, name="renew"),
    path("<int:client_id>/measurements/", views.measurements, name="measurements"),
]
