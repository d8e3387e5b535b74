# common/pagination.py

"""
LEDGER PAGINATION

Query params: ?page=<n>&limit=<n>  (limit defaults to 50, capped at 200)

Response shape:
    {"success": true, "data": [...], "pagination": {page, limit, total, pages}}
"""

from __future__ import annotations

import math

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class LedgerPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = "limit"
    max_page_size = 200

    def pagination_meta(self) -> dict:
        total = self.page.paginator.count
        limit = self.get_page_size(self.request) or self.page_size
        return {
            "page": self.page.number,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if limit else 0,
        }

    def get_paginated_response(self, data):
        return Response(
            {
                "success": True,
                "data": data,
                "pagination": self.pagination_meta(),
            }
        )

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "properties": {
                "success": {"type": "boolean"},
                "data": schema,
                "pagination": {
                    "type": "object",
                    "properties": {
                        "page": {"type": "integer"},
                        "limit": {"type": "integer"},
                        "total": {"type": "integer"},
                        "pages": {"type": "integer"},
                    },
                },
            },
        }


def _as_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def paginate_values(rows: list, *, page: int, limit: int) -> tuple[list, dict]:
    """
    Slice an already-materialized list (cached listings) with the same
    pagination metadata the DRF paginator emits.
    """
    limit = max(1, min(_as_int(limit, LedgerPagination.page_size), LedgerPagination.max_page_size))
    page = max(1, _as_int(page, 1))
    total = len(rows)
    start = (page - 1) * limit
    meta = {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit),
    }
    return rows[start:start + limit], meta
