# caching/router.py

"""
======================================================
PATH: caching/router.py
======================================================
INVALIDATION ROUTER

Purpose:
- Map a logical data type ("bills", "inventory", ...) to the cache key
  prefixes it owns, and delete every matching entry on demand.

Rules:
- The mapping is a static table; adding a cached read means adding its
  prefix here.
- invalidate() deletes regardless of remaining TTL.
- invalidate() never raises: failures are logged and reported as 0 removed.
- related=True also sweeps the whole namespace of each related type
  (coarse, used by manual/admin invalidation).
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable

from caching.cache import LedgerCache

logger = logging.getLogger("caching")


class DataType(str, Enum):
    BILLS = "bills"
    SALES = "sales"
    PURCHASES = "purchases"
    RETURNS = "returns"
    DEBTS = "debts"
    CUSTOMERS = "customers"
    SUPPLIERS = "suppliers"
    CASH_BOX = "cash_box"
    PAYMENT_VOUCHERS = "payment_vouchers"
    INVENTORY = "inventory"
    STOCKS = "stocks"
    STOCK_MOVEMENTS = "stock_movements"
    REPORTS = "reports"


DATA_TYPE_PREFIXES: dict[DataType, tuple[str, ...]] = {
    DataType.BILLS: ("bills:list:", "bills:bill:", "bills:stats:"),
    DataType.SALES: ("sales:list:", "sales:sale:", "sales:stats:"),
    DataType.PURCHASES: ("purchases:list:", "purchases:purchase:"),
    DataType.RETURNS: ("returns:list:", "returns:return:"),
    DataType.DEBTS: ("debts:list:", "debts:debt:", "debts:stats:"),
    DataType.CUSTOMERS: ("customers:list:", "customers:customer:", "customers:balance:"),
    DataType.SUPPLIERS: ("suppliers:list:", "suppliers:supplier:"),
    DataType.CASH_BOX: ("cash_box:list:", "cash_box:transaction:", "cash_box:balance:"),
    DataType.PAYMENT_VOUCHERS: ("payment_vouchers:list:", "payment_vouchers:voucher:"),
    DataType.INVENTORY: ("inventory:products:", "inventory:product:", "inventory:stock:"),
    DataType.STOCKS: ("stocks:list:", "stocks:stock:", "stocks:stock_products:", "stocks:stats:"),
    DataType.STOCK_MOVEMENTS: ("stock_movements:list:", "stock_movements:movement:", "stock_movements:stats:"),
    DataType.REPORTS: ("reports:sales:", "reports:purchases:", "reports:inventory:", "reports:financial:"),
}

RELATED_DATA_TYPES: dict[DataType, tuple[DataType, ...]] = {
    DataType.BILLS: (DataType.CUSTOMERS, DataType.CASH_BOX),
    DataType.SALES: (DataType.DEBTS, DataType.CUSTOMERS, DataType.CASH_BOX),
    DataType.PURCHASES: (DataType.SUPPLIERS, DataType.INVENTORY, DataType.CASH_BOX),
    DataType.RETURNS: (DataType.BILLS, DataType.INVENTORY),
    DataType.DEBTS: (DataType.SALES, DataType.CUSTOMERS, DataType.CASH_BOX),
    DataType.CUSTOMERS: (DataType.SALES, DataType.DEBTS),
    DataType.SUPPLIERS: (DataType.PURCHASES,),
    DataType.CASH_BOX: (DataType.SALES, DataType.PURCHASES),
    DataType.PAYMENT_VOUCHERS: (DataType.BILLS, DataType.CASH_BOX),
    DataType.INVENTORY: (DataType.SALES, DataType.PURCHASES),
    DataType.STOCKS: (DataType.INVENTORY, DataType.STOCK_MOVEMENTS),
    DataType.STOCK_MOVEMENTS: (DataType.INVENTORY, DataType.STOCKS),
    DataType.REPORTS: (DataType.SALES, DataType.PURCHASES, DataType.INVENTORY, DataType.CASH_BOX),
}


def coerce_data_types(values: Iterable) -> list[DataType]:
    """
    Accept DataType members or their string values; unknown names raise ValueError.
    """
    out: list[DataType] = []
    for value in values:
        dt = value if isinstance(value, DataType) else DataType(str(value).strip())
        if dt not in out:
            out.append(dt)
    return out


class InvalidationRouter:
    def __init__(self, cache: LedgerCache):
        self.cache = cache

    def prefixes_for(self, data_types: Iterable[DataType], *, related: bool = False) -> list[str]:
        prefixes: list[str] = []
        for dt in data_types:
            prefixes.extend(DATA_TYPE_PREFIXES[dt])
            if related:
                prefixes.extend(f"{rel.value}:" for rel in RELATED_DATA_TYPES.get(dt, ()))
        # de-dup while keeping order
        return list(dict.fromkeys(prefixes))

    def invalidate(self, data_types: Iterable, *, related: bool = False) -> int:
        data_types = list(data_types)
        try:
            types = coerce_data_types(data_types)
            removed = 0
            for prefix in self.prefixes_for(types, related=related):
                removed += self.cache.delete_by_prefix(prefix)
        except Exception:
            logger.exception("Cache invalidation failed", extra={"data_types": [str(t) for t in data_types]})
            return 0

        logger.info(
            "Cache invalidated",
            extra={"data_types": [t.value for t in types], "related": related, "keys_removed": removed},
        )
        return removed

    def invalidate_all(self) -> int:
        return self.cache.clear()


def get_invalidation_router() -> InvalidationRouter:
    """Router bound to the process default cache (views + management commands)."""
    from caching.cache import get_ledger_cache

    return InvalidationRouter(get_ledger_cache())
