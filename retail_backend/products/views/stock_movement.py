# products/views/stock_movement.py

"""
STOCK MOVEMENT VIEWSET

Endpoints (all under /api/stock-movements/):
- GET    /                 paginated ledger listing (django-filter params)
- POST   /                 record one movement through StockLedger
- GET    /<id>/            single movement (read-through cached)
- POST   /<id>/reverse/    append the equal-and-opposite movement
- GET    /stats/           per-type aggregates over ?period=<days>

Rules:
- Movements are never updated or deleted over the API.
- allow_negative is honored for staff users only.
"""

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from caching import keys
from caching.router import get_invalidation_router
from common.exceptions import NotFoundError
from common.responses import created_response, success_response
from products.filters import StockMovementFilter
from products.models import Product, StockMovement
from products.serializers import (
    ProductSerializer,
    StockMovementCreateSerializer,
    StockMovementReverseSerializer,
    StockMovementSerializer,
)
from products.services.movement_queries import movement_stats
from products.services.stock_ledger import StockLedger
from stocks.models import Stock

UUID_REGEX = "[0-9a-fA-F-]{32,36}"


def _updated_stocks(ledger: StockLedger, movement: StockMovement) -> list[dict]:
    out = []
    ids = [sid for sid in (movement.from_stock_id, movement.to_stock_id) if sid]
    for stock in Stock.objects.filter(id__in=ids).order_by("-is_main", "name"):
        out.append(
            {
                "id": str(stock.id),
                "name": stock.name,
                "quantity": ledger.current_stock(movement.product_id, stock),
                "current_capacity_used": stock.current_capacity_used,
            }
        )
    return out


class StockMovementViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    queryset = StockMovement.objects.select_related(
        "product", "from_stock", "to_stock", "created_by"
    ).order_by("-movement_date", "-created_at")
    serializer_class = StockMovementSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = StockMovementFilter
    lookup_value_regex = UUID_REGEX

    def _router(self):
        return get_invalidation_router()

    @extend_schema(
        tags=["Stock Movements"],
        request=StockMovementCreateSerializer,
        responses={
            201: OpenApiResponse(description="Movement recorded; returns id, updatedStocks, updatedProduct"),
            400: OpenApiResponse(description="Validation failure"),
            404: OpenApiResponse(description="Product or stock not found"),
            409: OpenApiResponse(description="Insufficient stock or capacity exceeded"),
        },
    )
    def create(self, request):
        serializer = StockMovementCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        allow_negative = bool(data.get("allow_negative")) and bool(request.user.is_staff)
        ledger = StockLedger(router=self._router())

        movement = ledger.record_movement(
            movement_type=data["movement_type"],
            product=data["product_id"],
            quantity=data["quantity"],
            from_stock=data.get("from_stock_id"),
            to_stock=data.get("to_stock_id"),
            unit_cost=data.get("unit_cost"),
            total_value=data.get("total_value"),
            reference_type=data.get("reference_type"),
            reference_id=data.get("reference_id"),
            reference_number=data.get("reference_number"),
            movement_date=data.get("movement_date"),
            notes=data.get("notes") or "",
            user=request.user,
            allow_negative=allow_negative or None,
        )

        product = Product.objects.select_related("stock").get(id=movement.product_id)
        return created_response(
            {
                "id": str(movement.id),
                "movement": StockMovementSerializer(movement).data,
                "updatedStocks": _updated_stocks(ledger, movement),
                "updatedProduct": ProductSerializer(product).data,
            },
            message="Stock movement created successfully",
        )

    @extend_schema(tags=["Stock Movements"])
    def retrieve(self, request, pk=None):
        router = self._router()
        cache = router.cache

        def load():
            movement = self.get_queryset().filter(id=pk).first()
            if movement is None:
                raise NotFoundError("Stock movement not found", errors={"id": str(pk)})
            return dict(StockMovementSerializer(movement).data)

        data = cache.get_or_set(keys.movement_detail(pk), load, cache.ttl_for("stock_movements"))
        return success_response(data)

    @extend_schema(
        tags=["Stock Movements"],
        request=StockMovementReverseSerializer,
        responses={
            201: OpenApiResponse(description="Reversal recorded"),
            200: OpenApiResponse(description="Movement was already reversed; existing reversal returned"),
            409: OpenApiResponse(description="Insufficient stock to reverse"),
        },
    )
    @action(detail=True, methods=["post"], url_path="reverse")
    def reverse(self, request, pk=None):
        serializer = StockMovementReverseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        ledger = StockLedger(router=self._router())
        reversal, created = ledger.reverse(
            pk, notes=serializer.validated_data.get("notes") or "", user=request.user
        )

        payload = {"id": str(reversal.id), "movement": StockMovementSerializer(reversal).data}
        if created:
            return created_response(payload, message="Stock movement reversed successfully")
        return success_response(payload, message="Stock movement was already reversed", status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Stock Movements"],
        parameters=[
            OpenApiParameter(name="period", type=int, location=OpenApiParameter.QUERY, required=False,
                             description="Look-back window in days (default 30)."),
            OpenApiParameter(name="movement_type", type=str, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        params = {
            "period": request.query_params.get("period") or 30,
            "movement_type": (request.query_params.get("movement_type") or "").strip() or None,
        }
        cache = self._router().cache
        data = cache.get_or_set(
            keys.movement_stats(params),
            lambda: movement_stats(period_days=params["period"], movement_type=params["movement_type"]),
            cache.ttl_for("stock_movements"),
        )
        return success_response(data)
