# products/services/movement_queries.py

"""
STOCK MOVEMENT READ MODELS

Aggregations behind /api/stock-movements/stats/ and the per-location stats.
Read-only; callers cache the results.
"""

from __future__ import annotations

from datetime import timedelta

from django.db.models import Count, Q, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from common.exceptions import ValidationError
from common.numbers import ZERO, to_int
from products.models import StockBalance, StockMovement


def movement_stats(*, period_days=30, movement_type: str | None = None) -> dict:
    days = to_int(period_days or 30, field_name="period")
    if days <= 0:
        raise ValidationError("period must be a positive number of days", errors={"period": ["invalid"]})

    since = timezone.now() - timedelta(days=days)
    qs = StockMovement.objects.filter(movement_date__gte=since)
    if movement_type:
        if movement_type not in StockMovement.MovementType.values:
            raise ValidationError(f"Invalid movement_type: {movement_type}", errors={"movement_type": ["invalid"]})
        qs = qs.filter(movement_type=movement_type)

    by_type = [
        {
            "movement_type": row["movement_type"],
            "count": row["count"],
            "total_quantity": int(row["total_quantity"] or 0),
            "total_value": str(row["total_value"] or ZERO),
        }
        for row in (
            qs.values("movement_type")
            .annotate(
                count=Count("id"),
                total_quantity=Coalesce(Sum("quantity"), 0),
                total_value=Sum("total_value"),
            )
            .order_by("movement_type")
        )
    ]

    totals = qs.aggregate(
        count=Count("id"),
        total_quantity=Coalesce(Sum("quantity"), 0),
        reversals=Count("id", filter=Q(reversal_of__isnull=False)),
    )

    return {
        "period_days": days,
        "since": since.isoformat(),
        "by_type": by_type,
        "total_movements": totals["count"],
        "total_quantity": int(totals["total_quantity"] or 0),
        "reversals": totals["reversals"],
    }


def stock_location_stats(stock) -> dict:
    """
    Per-location summary: products held, units on hand, movement counts.
    """
    balances = StockBalance.objects.filter(stock=stock)
    held = balances.filter(quantity__gt=0).aggregate(
        products=Count("id"),
        units=Coalesce(Sum("quantity"), 0),
    )
    movements = StockMovement.objects.filter(Q(from_stock=stock) | Q(to_stock=stock)).aggregate(
        incoming=Count("id", filter=Q(to_stock=stock)),
        outgoing=Count("id", filter=Q(from_stock=stock)),
    )

    return {
        "stock_id": str(stock.id),
        "products_held": held["products"],
        "products_assigned": stock.products.count(),
        "units_on_hand": int(held["units"] or 0),
        "capacity": int(stock.capacity or 0),
        "capacity_used": int(stock.current_capacity_used or 0),
        "available_capacity": stock.available_capacity,
        "incoming_movements": movements["incoming"],
        "outgoing_movements": movements["outgoing"],
    }
