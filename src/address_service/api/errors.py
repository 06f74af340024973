"""Error responses for the address service API.

Every error body has the same shape:

    {"messages": [{"code": "NotFound", "messageType": "Error",
                   "text": "Address not found with id: 42",
                   "timestamp": "2026-01-10T12:34:56+00:00"}]}

Domain exceptions raised below the API (AddressNotFound, StoreFailure)
are translated by dedicated handlers so the facade and repository stay
HTTP-agnostic.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import Enum

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from address_service.core.errors import AddressNotFound, StoreFailure

logger = logging.getLogger(__name__)


class MessageType(str, Enum):
    ERROR = "Error"
    EXCEPTION = "Exception"


class Message(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    code: str
    message_type: MessageType = Field(alias="messageType")
    text: str
    timestamp: str | None = None


class Result(BaseModel):
    """Error envelope returned for every non-2xx response."""

    model_config = ConfigDict(extra="forbid")

    messages: list[Message]


class ApiError(HTTPException):
    """An HTTP error rendered as a single-message Result."""

    message_type = MessageType.ERROR

    def __init__(self, status_code: int, code: str, text: str):
        self.code = code
        self.text = text
        super().__init__(status_code=status_code, detail=text)

    def to_result(self) -> Result:
        message = Message(
            code=self.code,
            message_type=self.message_type,
            text=self.text,
            timestamp=datetime.now(UTC).isoformat(),
        )
        return Result(messages=[message])


class NotFoundError(ApiError):
    """404 for an unknown address id."""

    def __init__(self, text: str):
        super().__init__(404, "NotFound", text)


class ServiceUnavailableError(ApiError):
    """503 when a backing service cannot serve the request."""

    message_type = MessageType.EXCEPTION

    def __init__(self, code: str, text: str):
        super().__init__(503, code, text)


class InternalServerError(ApiError):
    """500 for failures the client cannot act on."""

    message_type = MessageType.EXCEPTION

    def __init__(
        self,
        text: str = "An unexpected error occurred",
        code: str = "InternalServerError",
    ):
        super().__init__(500, code, text)


def error_response(error: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_result().model_dump(mode="json", by_alias=True),
    )


async def api_exception_handler(request: Request, exc: ApiError) -> JSONResponse:
    return error_response(exc)


async def address_not_found_handler(request: Request, exc: AddressNotFound) -> JSONResponse:
    return error_response(NotFoundError(str(exc)))


async def store_failure_handler(request: Request, exc: StoreFailure) -> JSONResponse:
    """Log the driver error; the client only learns the store is unavailable."""
    logger.error(f"Store failure on {request.method} {request.url.path}: {exc}")
    return error_response(
        ServiceUnavailableError("StoreFailure", "The address store is unavailable")
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(InternalServerError())
