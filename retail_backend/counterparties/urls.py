# counterparties/urls.py

"""
Mounted at /api/counterparties/:
- customers/, suppliers/, money-boxes/ (+ transactions/, deposit/, withdraw/)
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from counterparties.views import CustomerViewSet, MoneyBoxViewSet, SupplierViewSet

router = SimpleRouter()

router.register(r"customers", CustomerViewSet, basename="customers")
router.register(r"suppliers", SupplierViewSet, basename="suppliers")
router.register(r"money-boxes", MoneyBoxViewSet, basename="money-boxes")

urlpatterns = [
    path("", include(router.urls)),
]
