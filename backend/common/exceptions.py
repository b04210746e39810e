from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, Dict, Optional

from rest_framework import status
from rest_framework.exceptions import ValidationError, Throttled
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class IngestError(Exception):
    """Base class for ingestion pipeline failures."""


class TenantNotResolved(IngestError):
    """No active tenant matches the store hint. Terminal: nothing can be written."""

    def __init__(self, shop_domain: Optional[str]):
        self.shop_domain = shop_domain
        super().__init__(f"tenant not resolved for shop {shop_domain!r}")


class TransientIngestError(IngestError):
    """Infrastructure hiccup (lock contention, store unavailable). Retried by the queue."""


def error_body(status_code: int, message: str, details: Any = None) -> Dict[str, Any]:
    try:
        phrase = HTTPStatus(status_code).phrase
    except ValueError:
        phrase = "Error"
    body = {"statusCode": status_code, "message": message, "error": phrase}
    if details is not None:
        body["details"] = details
    return body


def structured_exception_handler(exc, context):
    """
    DRF EXCEPTION_HANDLER: every error leaves as {statusCode, message, error}.
    Unexpected exceptions become a 500 with the same shape instead of an HTML page.
    """
    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.exception("Unhandled error in %s", view.__class__.__name__ if view else "view")
        return Response(
            error_body(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, ValidationError):
        body = error_body(response.status_code, "Validation failed", details=response.data)
    elif isinstance(exc, Throttled):
        body = error_body(response.status_code, "Too many requests", details={"retryAfter": exc.wait})
    else:
        detail = response.data.get("detail") if isinstance(response.data, dict) else response.data
        body = error_body(response.status_code, str(detail or "Error"))

    response.data = body
    return response
