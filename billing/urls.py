from django.urls import path

from . import views

app_name = "billing"

urlpatterns = [
    path("installment-plans/", views.create_plan, name="create_plan"),
    path("installments/<int:installment_id>/pay/", views.pay_installment, name="pay_installment"),
    path("installments/overdue/", views.overdue, name="overdue"),
    path("transactions/", views.transactions, name="transactions"),
]
