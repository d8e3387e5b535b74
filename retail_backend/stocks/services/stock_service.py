# stocks/services/stock_service.py

"""
======================================================
PATH: stocks/services/stock_service.py
======================================================
STOCK LOCATION SERVICE

Purpose:
- Create / update / delete locations with the "one main location" rule.
- Read helpers used by the ledger and the billing orchestrator.

Rules:
- Setting is_main on a location demotes every other main location in the
  same transaction (rows locked first).
- The main location cannot be deleted or deactivated.
- A location with products assigned (Product.stock) or a non-zero ledger
  balance cannot be deleted.
- Cache entries for stocks are invalidated on commit.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Q

from caching.router import DataType, InvalidationRouter, get_invalidation_router
from common.exceptions import ConflictError, ConstraintError, NotFoundError, ValidationError
from stocks.models import Stock

logger = logging.getLogger("ledger")

EDITABLE_FIELDS = (
    "code",
    "name",
    "address",
    "manager_name",
    "phone",
    "email",
    "capacity",
    "is_main",
    "is_active",
    "notes",
)


def _invalidate_on_commit(router: InvalidationRouter | None, *types: DataType) -> None:
    router = router or get_invalidation_router()
    transaction.on_commit(lambda: router.invalidate(types))


def get_stock(stock_id, *, for_update: bool = False) -> Stock:
    qs = Stock.objects.select_for_update() if for_update else Stock.objects.all()
    try:
        return qs.get(id=stock_id)
    except (Stock.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Stock not found", errors={"stock_id": str(stock_id)})


def get_main_stock() -> Stock | None:
    return Stock.objects.filter(is_main=True, is_active=True).order_by("created_at").first()


def _demote_other_mains(keep: Stock) -> int:
    others = (
        Stock.objects.select_for_update()
        .filter(is_main=True)
        .exclude(id=keep.id)
    )
    ids = list(others.values_list("id", flat=True))
    if ids:
        Stock.objects.filter(id__in=ids).update(is_main=False)
        logger.info("Main location reassigned", extra={"stock_id": str(keep.id), "demoted": [str(i) for i in ids]})
    return len(ids)


def _check_code_unique(code: str, *, exclude_id=None) -> None:
    qs = Stock.objects.filter(code=code)
    if exclude_id is not None:
        qs = qs.exclude(id=exclude_id)
    if qs.exists():
        raise ConflictError("Stock code already exists", errors={"code": ["duplicate"]})


@transaction.atomic
def create_stock(*, data: dict, user=None, router: InvalidationRouter | None = None) -> Stock:
    code = (data.get("code") or "").strip()
    name = (data.get("name") or "").strip()
    address = (data.get("address") or "").strip()

    missing = [f for f, v in (("name", name), ("code", code), ("address", address)) if not v]
    if missing:
        raise ValidationError(
            "Name, code, and address are required",
            errors={f: ["required"] for f in missing},
        )

    _check_code_unique(code)

    stock = Stock(created_by=user if getattr(user, "is_authenticated", False) else None)
    for field in EDITABLE_FIELDS:
        if field in data:
            setattr(stock, field, data[field])
    stock.code, stock.name, stock.address = code, name, address

    # First location ever created becomes main.
    if not Stock.objects.filter(is_main=True, is_active=True).exists():
        stock.is_main = True
    if stock.is_main:
        stock.is_active = True

    stock.save()

    if stock.is_main:
        _demote_other_mains(stock)

    _invalidate_on_commit(router, DataType.STOCKS)
    return stock


@transaction.atomic
def update_stock(*, stock: Stock, data: dict, router: InvalidationRouter | None = None) -> Stock:
    stock = get_stock(stock.id, for_update=True)

    if "code" in data:
        code = (data.get("code") or "").strip()
        if not code:
            raise ValidationError("code cannot be blank", errors={"code": ["required"]})
        _check_code_unique(code, exclude_id=stock.id)
        data = {**data, "code": code}

    if stock.is_main and data.get("is_main") is False:
        raise ConstraintError("Cannot unset the main stock; mark another stock as main instead")

    if stock.is_main and data.get("is_active") is False:
        raise ConstraintError("Cannot deactivate the main stock")

    for field in EDITABLE_FIELDS:
        if field in data:
            setattr(stock, field, data[field])

    if stock.is_main and not stock.is_active:
        raise ConstraintError("Main stock must be active")

    stock.save()

    if stock.is_main:
        _demote_other_mains(stock)

    _invalidate_on_commit(router, DataType.STOCKS, DataType.INVENTORY)
    return stock


@transaction.atomic
def delete_stock(*, stock: Stock, router: InvalidationRouter | None = None) -> None:
    from products.models import Product, StockBalance

    stock = get_stock(stock.id, for_update=True)

    if stock.is_main:
        raise ConstraintError("Cannot delete the main stock")

    assigned = Product.objects.filter(stock=stock).count()
    if assigned:
        raise ConstraintError(
            "Cannot delete stock with assigned products",
            errors={"products_assigned": assigned},
        )

    holding = StockBalance.objects.filter(stock=stock).filter(~Q(quantity=0)).count()
    if holding:
        raise ConstraintError(
            "Cannot delete stock that still holds inventory",
            errors={"products_with_balance": holding},
        )

    if stock.outgoing_movements.exists() or stock.incoming_movements.exists():
        raise ConstraintError("Cannot delete stock referenced by stock movements")

    stock_id = stock.id
    stock.delete()
    logger.info("Stock deleted", extra={"stock_id": str(stock_id)})

    _invalidate_on_commit(router, DataType.STOCKS, DataType.INVENTORY)
