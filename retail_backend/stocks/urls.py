# stocks/urls.py

"""
STOCK LOCATION URLS (mounted at /api/stocks/)

- /api/stocks/
- /api/stocks/<id>/
- /api/stocks/<id>/products/
- /api/stocks/<id>/stats/
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from stocks.views import StockViewSet

router = SimpleRouter()
router.register(r"", StockViewSet, basename="stocks")

urlpatterns = [
    path("", include(router.urls)),
]
