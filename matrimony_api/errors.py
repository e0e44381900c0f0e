"""Error taxonomy shared by services and routers, and the JSON error renderer."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

LOGGER = logging.getLogger("uvicorn.error")


class ServiceError(Exception):
    """Base class for failures reported to clients as ``{error, details}``."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "internal error"

    def __init__(self, message: Optional[str] = None, *, details: Any = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class Unauthenticated(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "authentication required"


class Forbidden(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "forbidden"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "not found"


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "already exists"


class DuplicateFavourite(Conflict):
    # The site's client treats a repeated favourite as a bad request
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "biodata already in favourites"


class InvalidInput(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "invalid input"


class UpstreamFailure(ServiceError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "upstream service failed"


class Internal(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "internal error"


def error_body(message: str, details: Any = None) -> dict:
    body: dict = {"error": message}
    if details is not None:
        body["details"] = jsonable_encoder(details)
    return body


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.details),
        headers=headers,
    )


async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    message = detail if isinstance(detail, str) else "request failed"
    details = None if isinstance(detail, str) else detail
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message, details),
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("invalid request body", exc.errors()),
    )


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(Internal.default_message, exc.__class__.__name__),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _service_error_handler)
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)


__all__ = [
    "Conflict",
    "DuplicateFavourite",
    "Forbidden",
    "Internal",
    "InvalidInput",
    "NotFound",
    "ServiceError",
    "Unauthenticated",
    "UpstreamFailure",
    "error_body",
    "register_error_handlers",
]
