# bills/services/bill_queries.py

"""
BILL READ MODELS

Per-kind statistics behind /api/bills/<kind>/stats/. Read-only; the view
caches the result under bills:stats:<kind>:<params>.
"""

from __future__ import annotations

from django.db.models import Count, Sum
from django.db.models.functions import Coalesce

from common.numbers import ZERO

from bills.models import Bill


def bill_stats(kind: str, *, date_from=None, date_to=None) -> dict:
    qs = Bill.objects.filter(kind=kind)
    if date_from:
        qs = qs.filter(invoice_date__gte=date_from)
    if date_to:
        qs = qs.filter(invoice_date__lte=date_to)

    totals = qs.aggregate(
        count=Count("id"),
        subtotal=Coalesce(Sum("subtotal"), ZERO),
        discount=Coalesce(Sum("discount_amount"), ZERO),
        tax=Coalesce(Sum("tax_amount"), ZERO),
        net=Coalesce(Sum("net_amount"), ZERO),
        paid=Coalesce(Sum("paid_amount"), ZERO),
        remaining=Coalesce(Sum("remaining_amount"), ZERO),
    )

    by_payment_status = {
        row["payment_status"]: row["count"]
        for row in qs.order_by().values("payment_status").annotate(count=Count("id"))
    }
    by_status = {
        row["status"]: row["count"]
        for row in qs.order_by().values("status").annotate(count=Count("id"))
    }

    return {
        "kind": kind,
        "date_from": str(date_from) if date_from else None,
        "date_to": str(date_to) if date_to else None,
        "count": totals["count"],
        "total_subtotal": str(totals["subtotal"]),
        "total_discount": str(totals["discount"]),
        "total_tax": str(totals["tax"]),
        "total_net": str(totals["net"]),
        "total_paid": str(totals["paid"]),
        "total_remaining": str(totals["remaining"]),
        "by_payment_status": {s: by_payment_status.get(s, 0) for s in Bill.PaymentStatus.values},
        "by_status": {s: by_status.get(s, 0) for s in Bill.Status.values},
    }
