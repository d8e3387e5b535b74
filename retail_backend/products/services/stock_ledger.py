# products/services/stock_ledger.py

"""
======================================================
PATH: products/services/stock_ledger.py
======================================================
STOCK LEDGER (single write path for inventory quantities)

Purpose:
- record_movement(): validate + append one StockMovement, update the
  materialized StockBalance rows and Product.current_stock in the SAME
  transaction.
- reverse(): append the equal-and-opposite movement (idempotent).
- current_stock() / folded_stock(): materialized vs recomputed-from-log reads.
- reconcile(): re-fold the log and report (optionally repair) drift.

Rules:
- quantity is a positive integer
- at least one location; both locations exist and are active
- movement shape per type (sale: from, purchase/initial: to,
  adjustment/return: exactly one, transfer: any)
- every decrement checks balance >= quantity under row locks unless the
  negative-stock override is on
- purchase / adjustment / initial into a location with capacity > 0 must fit
- lock order: stocks (by id) -> product -> balances (by stock id)

Product policy (stock_id / current_stock side effects):
- purchase, initial, adjustment(to), return(to): assign to_stock if unassigned
- transfer from+to: follow the product to to_stock when it sat at from_stock
- transfer to only (no from): draw down unlocated_stock, assign to_stock
- sale, adjustment(from), return(from), transfer from only: balance only
- reversal of a from-only transfer: balance only (unlocated_stock untouched)
- current_stock = balance at the assigned location (or unlocated_stock)
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict, dataclass
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Case, F, IntegerField, Sum, When
from django.db.models.functions import Coalesce

from caching.router import DataType, InvalidationRouter
from common.exceptions import NotFoundError, ValidationError
from common.numbers import money, to_int
from products.models import Product, StockBalance, StockMovement
from products.services.exceptions import (
    CapacityExceeded,
    InsufficientStock,
    InvalidQuantity,
    LocationInactive,
    LocationNotFound,
    MovementShapeError,
    ProductNotFound,
)
from stocks.models import Stock

logger = logging.getLogger("ledger")

MT = StockMovement.MovementType

CAPACITY_CHECKED_TYPES = {MT.PURCHASE, MT.ADJUSTMENT, MT.INITIAL}
ASSIGN_ON_RECEIPT_TYPES = {MT.PURCHASE, MT.INITIAL, MT.ADJUSTMENT, MT.RETURN}


@dataclass(frozen=True)
class Drift:
    product_id: str
    stock_id: str
    expected: int
    recorded: int

    def as_dict(self) -> dict:
        return asdict(self)


def _pk(value):
    return getattr(value, "pk", value)


def _stock_key(value, *, label: str) -> str | None:
    value = _pk(value)
    if value in (None, ""):
        return None
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        raise LocationNotFound(errors={label: str(value)}) from None


class StockLedger:
    """
    Ledger service. Construct one per unit of work:

        ledger = StockLedger(router=router)   # direct movement API
        ledger = StockLedger()                # inside BillingOrchestrator

    When a router is given, cache invalidation for stocks / inventory /
    stock_movements is scheduled on commit for every movement written.
    Callers that batch several movements (bills) pass no router and
    invalidate once themselves.
    """

    def __init__(self, *, allow_negative: bool | None = None, router: InvalidationRouter | None = None):
        if allow_negative is None:
            allow_negative = bool(getattr(settings, "LEDGER_ALLOW_NEGATIVE_STOCK", False))
        self.allow_negative = allow_negative
        self.router = router

    # -----------------------------
    # Lookups / locking
    # -----------------------------
    def _lock_stocks(self, from_id, to_id) -> dict:
        ids = sorted({str(i) for i in (from_id, to_id) if i})
        locked = {
            str(s.id): s
            for s in Stock.objects.select_for_update().filter(id__in=ids).order_by("id")
        }
        for label, sid in (("From", from_id), ("To", to_id)):
            if not sid:
                continue
            stock = locked.get(str(sid))
            if stock is None:
                raise LocationNotFound(f"{label} stock not found", errors={f"{label.lower()}_stock_id": str(sid)})
            if not stock.is_active:
                raise LocationInactive(f"{label} stock is not active", errors={f"{label.lower()}_stock_id": str(sid)})
        return locked

    def _lock_product(self, product) -> Product:
        try:
            return Product.objects.select_for_update().get(id=_pk(product))
        except (Product.DoesNotExist, ValueError, TypeError, DjangoValidationError):
            raise ProductNotFound(errors={"product_id": str(_pk(product))})

    def _lock_balance(self, product: Product, stock: Stock) -> StockBalance:
        balance, _ = StockBalance.objects.select_for_update().get_or_create(
            product=product, stock=stock, defaults={"quantity": 0}
        )
        return balance

    # -----------------------------
    # Validation
    # -----------------------------
    def _validate_shape(self, movement_type: str, from_stock, to_stock, *, is_reversal: bool) -> None:
        if not from_stock and not to_stock:
            raise MovementShapeError("At least one stock (from or to) is required")

        if from_stock and to_stock and str(from_stock) == str(to_stock):
            raise MovementShapeError("from_stock_id and to_stock_id must differ")

        if is_reversal:
            return

        shape = StockMovement.REQUIRED_SHAPE[movement_type]
        if shape == "to" and not to_stock:
            raise MovementShapeError(f"{movement_type} movements require to_stock_id")
        if shape == "from" and not from_stock:
            raise MovementShapeError(f"{movement_type} movements require from_stock_id")
        if shape == "one" and bool(from_stock) == bool(to_stock):
            raise MovementShapeError(
                f"{movement_type} movements require exactly one of from_stock_id / to_stock_id"
            )

    def _check_available(self, *, movement_type, product: Product, available: int, qty: int, stock_id=None) -> None:
        if available >= qty:
            return
        if movement_type == MT.TRANSFER:
            message = f"Insufficient stock for transfer. Available: {available}, Requested: {qty}"
        else:
            message = f"Insufficient stock for {product.name}. Available: {available}, Requested: {qty}"
        raise InsufficientStock(
            message,
            available=available,
            requested=qty,
            product_id=product.id,
            stock_id=stock_id,
        )

    # -----------------------------
    # Write path
    # -----------------------------
    @transaction.atomic
    def record_movement(
        self,
        *,
        movement_type: str,
        product,
        quantity,
        from_stock=None,
        to_stock=None,
        unit_cost=None,
        total_value=None,
        reference_type: str | None = None,
        reference_id=None,
        reference_number: str | None = None,
        movement_date=None,
        notes: str = "",
        user=None,
        allow_negative: bool | None = None,
        reversal_of: StockMovement | None = None,
    ) -> StockMovement:
        if movement_type not in MT.values:
            raise ValidationError(
                f"Invalid movement_type: {movement_type}",
                errors={"movement_type": [f"must be one of {', '.join(MT.values)}"]},
            )
        movement_type = MT(movement_type)

        try:
            qty = to_int(quantity, field_name="quantity")
        except ValidationError as exc:
            raise InvalidQuantity(exc.message, errors=exc.errors) from exc
        if qty <= 0:
            raise InvalidQuantity("Quantity must be greater than 0", errors={"quantity": qty})

        from_id = _stock_key(from_stock, label="from_stock_id")
        to_id = _stock_key(to_stock, label="to_stock_id")
        self._validate_shape(movement_type, from_id, to_id, is_reversal=reversal_of is not None)

        stocks = self._lock_stocks(from_id, to_id)
        src = stocks.get(str(from_id)) if from_id else None
        dst = stocks.get(str(to_id)) if to_id else None

        product = self._lock_product(product)

        balances = {}
        for stock in sorted(filter(None, (src, dst)), key=lambda s: str(s.id)):
            balances[str(stock.id)] = self._lock_balance(product, stock)

        negative_ok = self.allow_negative if allow_negative is None else bool(allow_negative)

        restores_unlocated = (
            reversal_of is not None
            and movement_type == MT.TRANSFER
            and dst is None
            and reversal_of.from_stock_id is None
        )
        # Undoing a from-only transfer puts units back at `from`; unlocated stock is untouched.
        restores_from_only = (
            reversal_of is not None
            and movement_type == MT.TRANSFER
            and src is None
            and reversal_of.to_stock_id is None
        )

        if src is not None and not negative_ok:
            self._check_available(
                movement_type=movement_type,
                product=product,
                available=int(balances[str(src.id)].quantity),
                qty=qty,
                stock_id=src.id,
            )

        if src is None and movement_type == MT.TRANSFER and not restores_from_only and not negative_ok:
            self._check_available(
                movement_type=movement_type,
                product=product,
                available=int(product.unlocated_stock or 0),
                qty=qty,
            )

        if dst is not None and movement_type in CAPACITY_CHECKED_TYPES and not dst.can_accept(qty):
            raise CapacityExceeded(
                capacity=dst.capacity,
                used=dst.current_capacity_used,
                requested=qty,
                stock_id=dst.id,
            )

        cost = money(unit_cost if unit_cost not in (None, "") else product.purchase_price)
        movement = StockMovement(
            movement_type=movement_type,
            from_stock=src,
            to_stock=dst,
            product=product,
            quantity=qty,
            unit_cost=cost,
            total_value=money(total_value) if total_value not in (None, "") else Decimal("0.00"),
            reference_type=reference_type or None,
            reference_id=str(reference_id) if reference_id else None,
            reference_number=reference_number or None,
            reversal_of=reversal_of,
            notes=(notes or "").strip(),
            created_by=user if getattr(user, "is_authenticated", False) else None,
        )
        if movement_date is not None:
            movement.movement_date = movement_date
        movement.save()

        # Materialized balances + capacity usage
        if src is not None:
            bal = balances[str(src.id)]
            bal.quantity = int(bal.quantity) - qty
            bal.save(update_fields=["quantity", "updated_at"])
            Stock.objects.filter(id=src.id).update(current_capacity_used=F("current_capacity_used") - qty)
        if dst is not None:
            bal = balances[str(dst.id)]
            bal.quantity = int(bal.quantity) + qty
            bal.save(update_fields=["quantity", "updated_at"])
            Stock.objects.filter(id=dst.id).update(current_capacity_used=F("current_capacity_used") + qty)

        self._apply_product_policy(
            product,
            movement_type=movement_type,
            src=src,
            dst=dst,
            qty=qty,
            restores_unlocated=restores_unlocated,
            restores_from_only=restores_from_only,
        )

        logger.info(
            "Stock movement recorded",
            extra={
                "movement_id": str(movement.id),
                "movement_type": movement_type.value,
                "product_id": str(product.id),
                "from_stock_id": str(src.id) if src else None,
                "to_stock_id": str(dst.id) if dst else None,
                "quantity": qty,
                "reference_type": movement.reference_type,
                "reference_id": movement.reference_id,
            },
        )

        self._schedule_invalidation()
        return movement

    def _apply_product_policy(
        self,
        product: Product,
        *,
        movement_type,
        src,
        dst,
        qty: int,
        restores_unlocated: bool,
        restores_from_only: bool = False,
    ) -> None:
        fields = {"current_stock", "updated_at"}

        if movement_type == MT.TRANSFER and src is None and not restores_from_only:
            product.unlocated_stock = int(product.unlocated_stock or 0) - qty
            product.stock = dst
            fields |= {"unlocated_stock", "stock"}
        elif movement_type == MT.TRANSFER and src is not None and dst is not None:
            if product.stock_id is None or product.stock_id == src.id:
                product.stock = dst
                fields.add("stock")
        elif restores_unlocated:
            product.unlocated_stock = int(product.unlocated_stock or 0) + qty
            fields.add("unlocated_stock")
        elif dst is not None and movement_type in ASSIGN_ON_RECEIPT_TYPES and product.stock_id is None:
            product.stock = dst
            fields.add("stock")

        product.current_stock = self._assigned_quantity(product)
        product.save(update_fields=sorted(fields))

    def _assigned_quantity(self, product: Product) -> int:
        if product.stock_id is None:
            return int(product.unlocated_stock or 0)
        return int(
            StockBalance.objects.filter(product_id=product.id, stock_id=product.stock_id)
            .values_list("quantity", flat=True)
            .first()
            or 0
        )

    def _schedule_invalidation(self) -> None:
        if self.router is None:
            return
        router = self.router
        transaction.on_commit(
            lambda: router.invalidate(
                [DataType.STOCK_MOVEMENTS, DataType.STOCKS, DataType.INVENTORY]
            )
        )

    @transaction.atomic
    def reverse(self, movement, *, notes: str = "", user=None) -> tuple[StockMovement, bool]:
        """
        Append the equal-and-opposite movement for `movement`.

        Returns (reversal, created). A movement that was already reversed
        returns its existing reversal with created=False.
        """
        try:
            original = StockMovement.objects.select_for_update().get(id=_pk(movement))
        except (StockMovement.DoesNotExist, ValueError, TypeError, DjangoValidationError):
            raise NotFoundError("Stock movement not found", errors={"movement_id": str(_pk(movement))}) from None

        existing = StockMovement.objects.filter(reversal_of=original).first()
        if existing is not None:
            return existing, False

        reversal = self.record_movement(
            movement_type=original.movement_type,
            product=original.product_id,
            quantity=original.quantity,
            from_stock=original.to_stock_id,
            to_stock=original.from_stock_id,
            unit_cost=original.unit_cost,
            total_value=original.total_value,
            reference_type=StockMovement.ReferenceType.ADJUSTMENT,
            reference_id=original.id,
            reference_number=f"REVERSE-{original.id}",
            notes=notes or f"Reversal of movement {original.id}",
            user=user,
            reversal_of=original,
        )
        return reversal, True

    # -----------------------------
    # Reads
    # -----------------------------
    def current_stock(self, product, stock=None) -> int:
        """
        Materialized quantity. Without a location: the product's assigned
        location quantity (or its unlocated quantity when unassigned).
        """
        if stock is None:
            return int(
                Product.objects.filter(id=_pk(product)).values_list("current_stock", flat=True).first() or 0
            )
        return int(
            StockBalance.objects.filter(product_id=_pk(product), stock_id=_pk(stock))
            .values_list("quantity", flat=True)
            .first()
            or 0
        )

    def folded_stock(self, product, stock) -> int:
        """
        stock(product, loc) recomputed from the movement log alone.
        """
        sid = _pk(stock)
        agg = StockMovement.objects.filter(product_id=_pk(product)).aggregate(
            qty=Coalesce(
                Sum(
                    Case(
                        When(to_stock_id=sid, then=F("quantity")),
                        When(from_stock_id=sid, then=-F("quantity")),
                        default=0,
                        output_field=IntegerField(),
                    )
                ),
                0,
            )
        )
        return int(agg["qty"] or 0)

    def balances_for_product(self, product) -> list[dict]:
        return list(
            StockBalance.objects.filter(product_id=_pk(product))
            .select_related("stock")
            .order_by("-stock__is_main", "stock__name")
            .values("stock_id", "stock__name", "stock__code", "quantity")
        )

    # -----------------------------
    # Reconciliation
    # -----------------------------
    def _folded_map(self, product=None) -> dict[tuple[str, str], int]:
        qs = StockMovement.objects.all()
        if product is not None:
            qs = qs.filter(product_id=_pk(product))

        folded: dict[tuple[str, str], int] = {}
        for row in qs.filter(to_stock__isnull=False).values("product_id", "to_stock_id").annotate(q=Sum("quantity")):
            key = (str(row["product_id"]), str(row["to_stock_id"]))
            folded[key] = folded.get(key, 0) + int(row["q"] or 0)
        for row in qs.filter(from_stock__isnull=False).values("product_id", "from_stock_id").annotate(q=Sum("quantity")):
            key = (str(row["product_id"]), str(row["from_stock_id"]))
            folded[key] = folded.get(key, 0) - int(row["q"] or 0)
        return folded

    @transaction.atomic
    def reconcile(self, product=None, *, fix: bool = False) -> list[Drift]:
        """
        Compare StockBalance with the re-folded log.

        fix=True rewrites drifted balances from the log, then recomputes
        Product.current_stock and Stock.current_capacity_used.
        """
        folded = self._folded_map(product)

        balances_qs = StockBalance.objects.select_for_update()
        if product is not None:
            balances_qs = balances_qs.filter(product_id=_pk(product))
        recorded = {(str(b.product_id), str(b.stock_id)): b for b in balances_qs}

        drifts: list[Drift] = []
        for key in sorted(set(folded) | set(recorded)):
            expected = folded.get(key, 0)
            row = recorded.get(key)
            have = int(row.quantity) if row is not None else 0
            if expected != have:
                drifts.append(Drift(product_id=key[0], stock_id=key[1], expected=expected, recorded=have))

        if drifts:
            logger.warning(
                "Stock ledger drift detected",
                extra={"drift_count": len(drifts), "drifts": [d.as_dict() for d in drifts[:50]]},
            )

        if fix and drifts:
            touched_products, touched_stocks = set(), set()
            for d in drifts:
                StockBalance.objects.update_or_create(
                    product_id=d.product_id, stock_id=d.stock_id, defaults={"quantity": d.expected}
                )
                touched_products.add(d.product_id)
                touched_stocks.add(d.stock_id)

            for p in Product.objects.select_for_update().filter(id__in=touched_products):
                self.recompute_product_stock(p)
            for s in Stock.objects.select_for_update().filter(id__in=touched_stocks):
                self.recompute_capacity_used(s)

            logger.info("Stock ledger drift repaired", extra={"drift_count": len(drifts)})
            self._schedule_invalidation()

        return drifts

    def recompute_product_stock(self, product: Product) -> int:
        product.current_stock = self._assigned_quantity(product)
        product.save(update_fields=["current_stock", "updated_at"])
        return product.current_stock

    def recompute_capacity_used(self, stock: Stock) -> int:
        used = StockBalance.objects.filter(stock_id=stock.id).aggregate(q=Coalesce(Sum("quantity"), 0))["q"]
        stock.current_capacity_used = int(used or 0)
        stock.save(update_fields=["current_capacity_used", "updated_at"])
        return stock.current_capacity_used
