# products/views/product.py

"""
PRODUCT VIEWSET

Purpose:
- Product master data (list / create / update). Products are deactivated,
  never deleted: movements reference them.
- Ledger quantities per location: GET /api/products/<id>/stock/

Caching:
- Detail reads are cached under inventory:product:<id> and dropped by any
  ledger write (DataType.INVENTORY).
"""

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from caching import keys
from caching.router import get_invalidation_router
from common.exceptions import NotFoundError
from common.responses import created_response, success_response
from products.filters import ProductFilter
from products.models import Product
from products.serializers import ProductSerializer, ProductWriteSerializer
from products.services.product_service import create_product, update_product
from products.services.stock_ledger import StockLedger

UUID_REGEX = "[0-9a-fA-F-]{32,36}"


class ProductViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    queryset = Product.objects.select_related("stock").order_by("name")
    serializer_class = ProductSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = ProductFilter
    lookup_value_regex = UUID_REGEX

    def _get_product(self, pk) -> Product:
        product = self.get_queryset().filter(id=pk).first()
        if product is None:
            raise NotFoundError("Product not found", errors={"id": str(pk)})
        return product

    @extend_schema(tags=["Products"])
    def retrieve(self, request, pk=None):
        cache = get_invalidation_router().cache
        data = cache.get_or_set(
            keys.product_detail(pk),
            lambda: dict(ProductSerializer(self._get_product(pk)).data),
            cache.ttl_for("inventory"),
        )
        return success_response(data)

    @extend_schema(
        tags=["Products"],
        request=ProductWriteSerializer,
        responses={201: ProductSerializer, 409: OpenApiResponse(description="Duplicate sku / barcode")},
        description="Create a product. initial_quantity (optional) is booked as an `initial` movement.",
    )
    def create(self, request):
        serializer = ProductWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        product = create_product(data=serializer.validated_data, user=request.user)
        product = self.get_queryset().get(id=product.id)
        return created_response(ProductSerializer(product).data, message="Product created successfully")

    @extend_schema(tags=["Products"], request=ProductWriteSerializer, responses={200: ProductSerializer})
    def partial_update(self, request, pk=None):
        product = self._get_product(pk)
        serializer = ProductWriteSerializer(product, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        product = update_product(product=product, data=serializer.validated_data)
        product = self.get_queryset().get(id=product.id)
        return success_response(ProductSerializer(product).data, message="Product updated successfully")

    @extend_schema(
        tags=["Products"],
        parameters=[
            OpenApiParameter(name="stock_id", type=str, location=OpenApiParameter.QUERY, required=False,
                             description="Restrict to one location."),
        ],
    )
    @action(detail=True, methods=["get"], url_path="stock")
    def stock(self, request, pk=None):
        """
        Ledger quantities for this product: per-location balances plus the
        cached aggregate on the product row.
        """
        product = self._get_product(pk)
        ledger = StockLedger()

        stock_id = (request.query_params.get("stock_id") or "").strip()
        if stock_id:
            return success_response(
                {
                    "product_id": str(product.id),
                    "stock_id": stock_id,
                    "quantity": ledger.current_stock(product, stock_id),
                }
            )

        balances = [
            {
                "stock_id": str(row["stock_id"]),
                "stock_name": row["stock__name"],
                "stock_code": row["stock__code"],
                "quantity": row["quantity"],
            }
            for row in ledger.balances_for_product(product)
        ]
        return success_response(
            {
                "product_id": str(product.id),
                "current_stock": product.current_stock,
                "unlocated_stock": product.unlocated_stock,
                "assigned_stock_id": str(product.stock_id) if product.stock_id else None,
                "balances": balances,
                "total": sum(b["quantity"] for b in balances) + int(product.unlocated_stock or 0),
            }
        )
