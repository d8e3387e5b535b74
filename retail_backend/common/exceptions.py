# common/exceptions.py

"""
RETAIL DOMAIN ERRORS

Centralized error taxonomy shared by every service module.

Rules:
- Services raise these (or a module-specific subclass) and never build HTTP
  responses themselves.
- Each class carries the HTTP status the API layer renders it with
  (see common.exception_handler).
- Business-rule failures carry the numbers the caller needs to act on
  (available vs requested quantities) in `errors`.
"""

from __future__ import annotations

from typing import Any


class RetailError(Exception):
    """Base exception for all ledger / billing failures."""

    status_code = 500
    code = "error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None, *, errors: Any = None, code: str | None = None):
        self.message = message or self.default_message
        self.errors = errors
        if code:
            self.code = code
        super().__init__(self.message)

    def as_payload(self) -> dict:
        payload = {"success": False, "message": self.message, "code": self.code}
        if self.errors is not None:
            payload["errors"] = self.errors
        return payload


class ValidationError(RetailError):
    """Malformed input. Detected before any write."""

    status_code = 400
    code = "validation_error"
    default_message = "Invalid input"


class NotFoundError(RetailError):
    """Missing product, location, bill, counterparty or money box."""

    status_code = 404
    code = "not_found"
    default_message = "Not found"


class ConflictError(RetailError):
    """Duplicate identifiers and business-rule conflicts (stock, capacity, returns)."""

    status_code = 409
    code = "conflict"
    default_message = "Conflict"


class ConstraintError(RetailError):
    """Deleting a referenced or main entity."""

    status_code = 400
    code = "constraint_violation"
    default_message = "Operation violates a data constraint"


class InternalError(RetailError):
    """Storage failure."""

    status_code = 500
    code = "internal_error"
    default_message = "Internal server error"
