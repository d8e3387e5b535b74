# stocks/apps.py

from django.apps import AppConfig


class StocksConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "stocks"
    verbose_name = "Stock Locations"
