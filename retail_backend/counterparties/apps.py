# counterparties/apps.py

from django.apps import AppConfig


class CounterpartiesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "counterparties"
    verbose_name = "Customers, Suppliers & Money Boxes"
