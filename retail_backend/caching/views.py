# caching/views.py

"""
CACHE ADMIN ENDPOINTS

- GET  /api/cache/stats/        hit/miss counters + live key count
- POST /api/cache/invalidate/   {"types": ["bills", "inventory"], "related": false}
- POST /api/cache/flush/        drop every ledger cache entry

Staff-only (is_staff) because a flush makes the next reads hit the DB.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import serializers
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAdminUser, IsAuthenticated

from caching.router import DataType, get_invalidation_router
from common.responses import success_response


class CacheInvalidateSerializer(serializers.Serializer):
    types = serializers.ListField(
        child=serializers.ChoiceField(choices=[dt.value for dt in DataType]),
        allow_empty=False,
    )
    related = serializers.BooleanField(required=False, default=False)


class CacheStatsView(GenericAPIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Cache"], responses={200: OpenApiResponse(description="Cache statistics")})
    def get(self, request):
        router = get_invalidation_router()
        return success_response(router.cache.stats())


class CacheInvalidateView(GenericAPIView):
    permission_classes = [IsAuthenticated, IsAdminUser]
    serializer_class = CacheInvalidateSerializer

    @extend_schema(tags=["Cache"], request=CacheInvalidateSerializer)
    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        removed = get_invalidation_router().invalidate(
            serializer.validated_data["types"],
            related=serializer.validated_data["related"],
        )
        return success_response({"keys_removed": removed}, message="Cache invalidated")


class CacheFlushView(GenericAPIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    @extend_schema(tags=["Cache"], request=None)
    def post(self, request):
        removed = get_invalidation_router().invalidate_all()
        return success_response({"keys_removed": removed}, message="Cache flushed")
