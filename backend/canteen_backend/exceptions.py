"""
Domain exceptions shared by the canteen apps and the DRF handler that turns
them into HTTP responses.
"""
import functools
import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class CanteenError(Exception):
    """Base class for business-rule violations raised by the services."""

    code = "canteen_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message=None, **details):
        self.message = message or self.__class__.__doc__ or self.code
        self.details = details
        super().__init__(self.message)


class NotFoundError(CanteenError):
    """The requested order, lookup token or catalog item does not exist."""

    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidStateError(CanteenError):
    """The order's current status does not permit this transition."""

    code = "invalid_state"
    status_code = status.HTTP_409_CONFLICT


class AlreadyTerminalError(CanteenError):
    """The order has already been delivered."""

    code = "already_terminal"
    status_code = status.HTTP_409_CONFLICT


class IncompleteDeliveryError(CanteenError):
    """Some items of the order have not been delivered yet."""

    code = "incomplete_delivery"
    status_code = status.HTTP_409_CONFLICT


class IndexOutOfRangeError(CanteenError):
    """The item index does not exist on this order."""

    code = "index_out_of_range"
    status_code = status.HTTP_400_BAD_REQUEST


class OrderValidationError(CanteenError):
    """The order payload is malformed."""

    code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class TransientStoreError(CanteenError):
    """The data store is temporarily unavailable; retry the request."""

    code = "store_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


def translate_store_errors(func):
    """
    Re-raise database failures as TransientStoreError so callers can tell a
    retryable outage apart from a business-rule violation.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DatabaseError as exc:
            logger.error(f"Store error in {func.__qualname__}: {exc}", exc_info=True)
            raise TransientStoreError() from exc

    return wrapper


def canteen_exception_handler(exc, context):
    """
    DRF exception handler: domain errors become {"error", "detail"} payloads
    with their own status code, everything else goes to DRF's default handler.
    """
    if isinstance(exc, CanteenError):
        request = context.get("request")
        level = logging.ERROR if isinstance(exc, TransientStoreError) else logging.INFO
        logger.log(
            level,
            f"{exc.__class__.__name__} on {getattr(request, 'method', '?')} "
            f"{getattr(request, 'path', '?')}: {exc.message}",
        )
        data = {"error": exc.code, "detail": exc.message}
        if exc.details:
            data.update(exc.details)
        return Response(data, status=exc.status_code)

    return exception_handler(exc, context)
