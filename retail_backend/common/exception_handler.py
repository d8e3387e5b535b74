# common/exception_handler.py

"""
======================================================
PATH: common/exception_handler.py
======================================================
DRF EXCEPTION HANDLER (REST_FRAMEWORK["EXCEPTION_HANDLER"])

Purpose:
- Render every failure with the same envelope:
    {"success": false, "message": "...", "code": "...", "errors": ...}

Mapping:
- RetailError subclasses        -> their own status_code
- DRF APIException              -> DRF status; field errors under "errors"
- django ValidationError        -> 400
- ObjectDoesNotExist / Http404  -> 404
- IntegrityError                -> 409
- other DatabaseError           -> 500 (logged with traceback)

Anything else is left to Django (500 + traceback in logs).
"""

from __future__ import annotations

import logging

from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError
from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from common.exceptions import RetailError

logger = logging.getLogger(__name__)


def _django_validation_errors(exc: DjangoValidationError):
    if hasattr(exc, "message_dict"):
        return exc.message_dict
    return list(exc.messages)


def _first_message(errors, fallback: str) -> str:
    if isinstance(errors, dict):
        for key, value in errors.items():
            inner = _first_message(value, "")
            if inner:
                return inner if key in ("detail", "non_field_errors") else f"{key}: {inner}"
        return fallback
    if isinstance(errors, (list, tuple)):
        for value in errors:
            inner = _first_message(value, "")
            if inner:
                return inner
        return fallback
    return str(errors) if errors else fallback


def _envelope(*, message: str, http_status: int, code: str, errors=None) -> Response:
    body = {"success": False, "message": message, "code": code}
    if errors is not None:
        body["errors"] = errors
    return Response(body, status=http_status)


def api_exception_handler(exc, context):
    view = context.get("view")
    view_name = type(view).__name__ if view is not None else None

    if isinstance(exc, RetailError):
        if exc.status_code >= 500:
            logger.error(
                "Domain failure",
                extra={"view": view_name, "error_code": exc.code},
                exc_info=exc,
            )
        return Response(exc.as_payload(), status=exc.status_code)

    if isinstance(exc, DjangoValidationError):
        errors = _django_validation_errors(exc)
        return _envelope(
            message=_first_message(errors, "Invalid input"),
            http_status=status.HTTP_400_BAD_REQUEST,
            code="validation_error",
            errors=errors,
        )

    if isinstance(exc, ObjectDoesNotExist) and not isinstance(exc, Http404):
        return _envelope(
            message=str(exc) or "Not found",
            http_status=status.HTTP_404_NOT_FOUND,
            code="not_found",
        )

    if isinstance(exc, IntegrityError):
        logger.warning("Integrity conflict", extra={"view": view_name, "error": str(exc)})
        return _envelope(
            message="Request conflicts with existing data",
            http_status=status.HTTP_409_CONFLICT,
            code="conflict",
        )

    if isinstance(exc, DatabaseError):
        logger.exception("Storage failure", extra={"view": view_name})
        return _envelope(
            message="Internal server error",
            http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code="internal_error",
        )

    response = drf_exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, drf_exceptions.ValidationError):
        errors = response.data
        response.data = {
            "success": False,
            "message": _first_message(errors, "Invalid input"),
            "code": "validation_error",
            "errors": errors,
        }
        return response

    detail = response.data.get("detail") if isinstance(response.data, dict) else response.data
    code = getattr(detail, "code", None) or getattr(exc, "default_code", "error")
    response.data = {
        "success": False,
        "message": str(detail) if detail else "Request failed",
        "code": str(code),
    }
    return response
