# inventory/api/exceptions.py

"""
ENGINE ERROR -> HTTP MAPPING

Registered as REST_FRAMEWORK["EXCEPTION_HANDLER"].

Body shape for engine errors:
    {"detail": "...", "code": "<stable error code>", ...context}

Anything that is not an InventoryError falls through to DRF's handler.
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from inventory.engine.errors import (
    ConcurrencyConflictError,
    InsufficientStockError,
    InventoryError,
    NegativeStockError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InsufficientStockError: status.HTTP_409_CONFLICT,
    NegativeStockError: status.HTTP_409_CONFLICT,
    ConcurrencyConflictError: status.HTTP_409_CONFLICT,
}


def _status_for(exc: InventoryError) -> int:
    for error_type, status_code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def _body_for(exc: InventoryError) -> dict:
    body = {"detail": str(exc), "code": exc.code}

    if isinstance(exc, ValidationError) and exc.field:
        body["field"] = exc.field
    elif isinstance(exc, InsufficientStockError):
        body["requested"] = str(exc.requested)
        body["available"] = str(exc.available)
    elif isinstance(exc, NegativeStockError):
        body["current"] = str(exc.current)
        body["delta"] = str(exc.delta)

    return body


def inventory_exception_handler(exc, context):
    if isinstance(exc, InventoryError):
        status_code = _status_for(exc)
        if status_code == status.HTTP_409_CONFLICT:
            view = context.get("view")
            logger.info(
                "Inventory request rejected: %s",
                exc.code,
                extra={"code": exc.code, "view": type(view).__name__ if view else None},
            )
        return Response(_body_for(exc), status=status_code)

    return exception_handler(exc, context)
