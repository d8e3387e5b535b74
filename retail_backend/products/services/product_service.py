# products/services/product_service.py

"""
======================================================
PATH: products/services/product_service.py
======================================================
PRODUCT MASTER DATA SERVICE

Purpose:
- Create products, optionally with an opening quantity.
- Update master fields (never quantities or the assigned location).

Rules:
- Opening quantity goes through the ledger as an `initial` movement into
  the requested location, else the main location.
- With no location at all the opening quantity is kept as unlocated stock
  (a later transfer with no from_stock places it).
- sku / barcode are unique when present.
"""

from __future__ import annotations

import logging

from django.db import transaction

from caching.router import DataType, InvalidationRouter, get_invalidation_router
from common.exceptions import ConflictError, ValidationError
from common.numbers import to_decimal, to_int
from products.models import Product, StockMovement
from products.services.stock_ledger import StockLedger
from stocks.services.stock_service import get_main_stock, get_stock

logger = logging.getLogger("ledger")

MASTER_FIELDS = (
    "name",
    "sku",
    "barcode",
    "unit",
    "units_per_box",
    "purchase_price",
    "selling_price",
    "min_stock",
    "is_active",
)


def _clean_identifier(value):
    value = (value or "").strip()
    return value or None


def _check_unique(field: str, value, *, exclude_id=None) -> None:
    if not value:
        return
    qs = Product.objects.filter(**{field: value})
    if exclude_id is not None:
        qs = qs.exclude(id=exclude_id)
    if qs.exists():
        raise ConflictError(f"Product {field} already exists", errors={field: ["duplicate"]})


def _apply_master_fields(product: Product, data: dict) -> None:
    for field in MASTER_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field in ("sku", "barcode"):
            value = _clean_identifier(value)
        elif field in ("purchase_price", "selling_price"):
            value = to_decimal(value, field_name=field, default="0")
        setattr(product, field, value)


@transaction.atomic
def create_product(*, data: dict, user=None, router: InvalidationRouter | None = None) -> Product:
    router = router or get_invalidation_router()

    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Product name is required", errors={"name": ["required"]})

    sku = _clean_identifier(data.get("sku"))
    barcode = _clean_identifier(data.get("barcode"))
    _check_unique("sku", sku)
    _check_unique("barcode", barcode)

    opening = data.get("initial_quantity")
    opening_qty = to_int(opening, field_name="initial_quantity") if opening not in (None, "") else 0
    if opening_qty < 0:
        raise ValidationError("initial_quantity cannot be negative", errors={"initial_quantity": ["invalid"]})

    location = None
    if data.get("stock_id"):
        location = get_stock(data["stock_id"])
    elif opening_qty > 0:
        location = get_main_stock()

    product = Product()
    _apply_master_fields(product, {**data, "name": name, "sku": sku, "barcode": barcode})
    product.full_clean(exclude=["stock"])
    product.save()

    if opening_qty > 0 and location is not None:
        StockLedger(router=router).record_movement(
            movement_type=StockMovement.MovementType.INITIAL,
            product=product,
            quantity=opening_qty,
            to_stock=location,
            unit_cost=product.purchase_price,
            reference_type=StockMovement.ReferenceType.INITIAL,
            reference_id=product.id,
            notes="Opening stock",
            user=user,
        )
        product.refresh_from_db()
    elif opening_qty > 0:
        product.unlocated_stock = opening_qty
        product.current_stock = opening_qty
        product.save(update_fields=["unlocated_stock", "current_stock", "updated_at"])
    elif location is not None:
        product.stock = location
        product.save(update_fields=["stock", "updated_at"])

    logger.info(
        "Product created",
        extra={"product_id": str(product.id), "opening_quantity": opening_qty, "stock_id": str(location.id) if location else None},
    )

    transaction.on_commit(lambda: router.invalidate([DataType.INVENTORY, DataType.STOCKS]))
    return product


@transaction.atomic
def update_product(*, product: Product, data: dict, router: InvalidationRouter | None = None) -> Product:
    router = router or get_invalidation_router()
    product = Product.objects.select_for_update().get(id=product.id)

    if "sku" in data:
        _check_unique("sku", _clean_identifier(data.get("sku")), exclude_id=product.id)
    if "barcode" in data:
        _check_unique("barcode", _clean_identifier(data.get("barcode")), exclude_id=product.id)
    if "name" in data and not (data.get("name") or "").strip():
        raise ValidationError("Product name is required", errors={"name": ["required"]})

    _apply_master_fields(product, data)
    product.full_clean(exclude=["stock"])
    product.save()

    transaction.on_commit(lambda: router.invalidate([DataType.INVENTORY, DataType.STOCKS]))
    return product
