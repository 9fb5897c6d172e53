"""
Error taxonomy and translation to HTTP status codes.

Every failure a handler can produce is one of the ``ApiError`` subclasses
below. ``translate_error`` is the single mapping from a failure to the
``(status_code, message)`` pair that is sent to the caller. Server-side
failures are logged in full here and reported to the caller only as a
generic message.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

GENERIC_INTERNAL_MESSAGE = "Internal server error"
NOT_FOUND_MESSAGE = "Not Found"


class ApiError(Exception):
    """Base class for failures that map onto an HTTP status."""

    status_code: int = 500
    default_message: str = GENERIC_INTERNAL_MESSAGE

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class MalformedRequest(ApiError):
    """Request body or path could not be decoded into the expected input."""

    status_code = 400
    default_message = "Malformed request"


class DuplicateKey(ApiError):
    """A unique constraint was violated by an insert."""

    status_code = 409

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field.capitalize()} already exists")


class NotFound(ApiError):
    status_code = 404
    default_message = NOT_FOUND_MESSAGE


class StoreUnavailable(ApiError):
    """The store could not be reached or no connection was free in time."""

    status_code = 500


class InternalFailure(ApiError):
    status_code = 500


def translate_error(exc: BaseException) -> tuple[int, str]:
    """
    Map a failure to the status code and message exposed to the caller.

    Client errors carry their own message. Anything classified as a server
    error is logged with its traceback and replaced by a generic message.
    """
    if isinstance(exc, ApiError) and exc.status_code < 500:
        return exc.status_code, exc.message

    status_code = exc.status_code if isinstance(exc, ApiError) else 500
    logger.error(
        "Request failed with %s: %r",
        type(exc).__name__,
        exc,
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    return status_code, GENERIC_INTERNAL_MESSAGE
