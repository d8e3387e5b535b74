# caching/urls.py

from django.urls import path

from caching.views import CacheFlushView, CacheInvalidateView, CacheStatsView

urlpatterns = [
    path("stats/", CacheStatsView.as_view(), name="cache-stats"),
    path("invalidate/", CacheInvalidateView.as_view(), name="cache-invalidate"),
    path("flush/", CacheFlushView.as_view(), name="cache-flush"),
]
