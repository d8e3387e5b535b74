# products/urls.py

"""
PRODUCTS + LEDGER URLS

Mounted at /api/:
- /api/products/
- /api/products/<id>/stock/
- /api/stock-movements/
- /api/stock-movements/<id>/reverse/
- /api/stock-movements/stats/
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from products.views import ProductViewSet, StockMovementViewSet

router = SimpleRouter()

router.register(r"products", ProductViewSet, basename="products")
router.register(r"stock-movements", StockMovementViewSet, basename="stock-movements")

urlpatterns = [
    path("", include(router.urls)),
]
