# common/responses.py

"""
API RESPONSE ENVELOPE

Every endpoint answers with:
    {"success": true,  "message": "...", "data": ...}
    {"success": false, "message": "...", "errors": ...}

Errors are rendered by common.exception_handler; views only build the
success side with these helpers.
"""

from __future__ import annotations

from rest_framework import status as http_status
from rest_framework.response import Response


def success_response(data=None, *, message: str = "", status: int = http_status.HTTP_200_OK, **extra):
    body = {"success": True, "message": message, "data": data}
    body.update(extra)
    return Response(body, status=status)


def created_response(data=None, *, message: str = "Created successfully", **extra):
    return success_response(data, message=message, status=http_status.HTTP_201_CREATED, **extra)


def error_response(*, message: str, http_status_code: int, errors=None, code: str = "error"):
    """
    Canonical API error response (used where a view decides the failure itself).
    """
    body = {"success": False, "message": message, "code": code}
    if errors is not None:
        body["errors"] = errors
    return Response(body, status=http_status_code)
