"""Error handling utilities and custom exceptions."""

from __future__ import annotations

from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger


class InteractionError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class StoreUnavailableError(InteractionError):
    """The remote record store could not be reached or refused the request."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        self.store_status = status_code
        super().__init__(detail)


class NoActiveRecordError(InteractionError):
    """No record is known for the requested id or participant."""

    status_code = status.HTTP_404_NOT_FOUND


class MalformedTimestampError(InteractionError):
    """A message has no parseable ``sentAt`` and cannot be exported."""

    status_code = 422

    def __init__(self, message_id: str, raw_value: object) -> None:
        self.message_id = message_id
        self.raw_value = raw_value
        super().__init__(f"Message {message_id} has an invalid sentAt value: {raw_value!r}")


class PermissionDeniedError(InteractionError):
    """The active actor lacks the permission level required."""

    status_code = status.HTTP_403_FORBIDDEN


class UnknownExchangeError(InteractionError):
    """The referenced exchange is not part of the interaction."""

    status_code = status.HTTP_404_NOT_FOUND


class InteractionStateError(InteractionError):
    """The requested action is not allowed in the interaction's current state."""

    status_code = status.HTTP_409_CONFLICT


class AssistantError(InteractionError):
    """The language model failed to produce an assistant reply."""

    status_code = status.HTTP_502_BAD_GATEWAY


async def interaction_exception_handler(request: Request, exc: InteractionError) -> JSONResponse:
    """Convert an InteractionError into an HTTP response."""
    logger.error("{} on {} {}: {}", type(exc).__name__, request.method, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )
