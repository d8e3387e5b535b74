# stocks/views/stock.py

"""
STOCK LOCATION VIEWSET

Purpose:
- Location CRUD (main-location rule + delete constraints live in the service)
- Products held at a location, with the ledger quantity at that location
- Per-location summary stats

Caching:
- list / detail / products / stats are read-through cached under stocks:*
  and dropped by any ledger or location write (DataType.STOCKS).
"""

from django.db.models import Q
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from caching import keys
from caching.router import get_invalidation_router
from common.exceptions import NotFoundError
from common.pagination import paginate_values
from common.responses import created_response, success_response
from products.models import Product, StockBalance
from products.services.movement_queries import stock_location_stats
from stocks.models import Stock
from stocks.serializers import StockSerializer, StockWriteSerializer
from stocks.services.stock_service import create_stock, delete_stock, update_stock

UUID_REGEX = "[0-9a-fA-F-]{32,36}"


def _stock_products_rows(stock: Stock, search: str) -> list[dict]:
    quantities = dict(
        StockBalance.objects.filter(stock=stock).values_list("product_id", "quantity")
    )
    held_ids = [pid for pid, qty in quantities.items() if qty != 0]

    qs = Product.objects.filter(Q(stock=stock) | Q(id__in=held_ids)).order_by("name")
    if search:
        qs = qs.filter(Q(name__icontains=search) | Q(sku__icontains=search) | Q(barcode__icontains=search))

    return [
        {
            "id": str(p.id),
            "name": p.name,
            "sku": p.sku,
            "barcode": p.barcode,
            "unit": p.unit,
            "selling_price": str(p.selling_price),
            "purchase_price": str(p.purchase_price),
            "quantity": int(quantities.get(p.id, 0)),
            "is_assigned_here": p.stock_id == stock.id,
            "min_stock": p.min_stock,
        }
        for p in qs
    ]


class StockViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]
    lookup_value_regex = UUID_REGEX

    def _cache(self):
        return get_invalidation_router().cache

    def _get_stock(self, pk) -> Stock:
        stock = Stock.objects.filter(id=pk).first()
        if stock is None:
            raise NotFoundError("Stock not found", errors={"id": str(pk)})
        return stock

    @extend_schema(
        tags=["Stocks"],
        parameters=[
            OpenApiParameter(name="is_active", type=bool, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="q", type=str, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: StockSerializer(many=True)},
    )
    def list(self, request):
        params = {
            "is_active": (request.query_params.get("is_active") or "").strip().lower() or None,
            "q": (request.query_params.get("q") or "").strip() or None,
        }

        def load():
            qs = Stock.objects.all().order_by("-is_main", "name")
            if params["is_active"] in ("true", "1"):
                qs = qs.filter(is_active=True)
            elif params["is_active"] in ("false", "0"):
                qs = qs.filter(is_active=False)
            if params["q"]:
                qs = qs.filter(Q(name__icontains=params["q"]) | Q(code__icontains=params["q"]))
            return [dict(row) for row in StockSerializer(qs, many=True).data]

        cache = self._cache()
        data = cache.get_or_set(keys.stocks_list(params), load, cache.ttl_for("stocks"))
        return success_response(data)

    @extend_schema(tags=["Stocks"], responses={200: StockSerializer})
    def retrieve(self, request, pk=None):
        cache = self._cache()
        data = cache.get_or_set(
            keys.stock_detail(pk),
            lambda: dict(StockSerializer(self._get_stock(pk)).data),
            cache.ttl_for("stocks"),
        )
        return success_response(data)

    @extend_schema(
        tags=["Stocks"],
        request=StockWriteSerializer,
        responses={201: StockSerializer, 409: OpenApiResponse(description="Duplicate code")},
    )
    def create(self, request):
        serializer = StockWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        stock = create_stock(data=serializer.validated_data, user=request.user)
        return created_response(StockSerializer(stock).data, message="Stock created successfully")

    @extend_schema(tags=["Stocks"], request=StockWriteSerializer, responses={200: StockSerializer})
    def partial_update(self, request, pk=None):
        stock = self._get_stock(pk)
        serializer = StockWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        stock = update_stock(stock=stock, data=serializer.validated_data)
        return success_response(StockSerializer(stock).data, message="Stock updated successfully")

    @extend_schema(
        tags=["Stocks"],
        responses={
            200: OpenApiResponse(description="Deleted"),
            400: OpenApiResponse(description="Main stock, products assigned, or inventory held"),
        },
    )
    def destroy(self, request, pk=None):
        stock = self._get_stock(pk)
        delete_stock(stock=stock)
        return success_response(None, message="Stock deleted successfully")

    @extend_schema(
        tags=["Stocks"],
        parameters=[
            OpenApiParameter(name="q", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="page", type=int, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="limit", type=int, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    @action(detail=True, methods=["get"], url_path="products")
    def products(self, request, pk=None):
        """
        Products assigned to / holding inventory at this location.
        """
        search = (request.query_params.get("q") or "").strip()
        cache = self._cache()

        rows = cache.get_or_set(
            keys.stock_products(pk, {"q": search}),
            lambda: _stock_products_rows(self._get_stock(pk), search),
            cache.ttl_for("stock_products"),
        )
        page_rows, meta = paginate_values(
            rows,
            page=request.query_params.get("page") or 1,
            limit=request.query_params.get("limit") or 50,
        )
        return success_response(page_rows, pagination=meta)

    @extend_schema(tags=["Stocks"])
    @action(detail=True, methods=["get"], url_path="stats")
    def stats(self, request, pk=None):
        cache = self._cache()
        data = cache.get_or_set(
            keys.stock_stats(pk),
            lambda: stock_location_stats(self._get_stock(pk)),
            cache.ttl_for("stocks"),
        )
        return success_response(data)
