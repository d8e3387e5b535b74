# caching/keys.py

"""
CACHE KEY BUILDERS

Every cached read builds its key here so the prefixes stay in sync with
caching.router.DATA_TYPE_PREFIXES.
"""

from __future__ import annotations

from urllib.parse import urlencode


def _params(params: dict | None) -> str:
    if not params:
        return "all"
    clean = {k: v for k, v in sorted(params.items()) if v not in (None, "")}
    return urlencode(clean) or "all"


def stocks_list(params: dict | None = None) -> str:
    return f"stocks:list:{_params(params)}"


def stock_detail(stock_id) -> str:
    return f"stocks:stock:{stock_id}"


def stock_products(stock_id, params: dict | None = None) -> str:
    return f"stocks:stock_products:{stock_id}:{_params(params)}"


def stock_stats(stock_id) -> str:
    return f"stocks:stats:{stock_id}"


def product_detail(product_id) -> str:
    return f"inventory:product:{product_id}"


def movement_detail(movement_id) -> str:
    return f"stock_movements:movement:{movement_id}"


def movement_stats(params: dict | None = None) -> str:
    return f"stock_movements:stats:{_params(params)}"


def bills_list(kind: str, params: dict | None = None) -> str:
    return f"bills:list:{kind}:{_params(params)}"


def bill_detail(bill_id) -> str:
    return f"bills:bill:{bill_id}"


def bill_stats(kind: str, params: dict | None = None) -> str:
    return f"bills:stats:{kind}:{_params(params)}"
