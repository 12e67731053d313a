"""Translate service errors into HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from structlog import get_logger

from ..domain.errors import MessageNotFound, MessageValidationError, OriginRejected, StoreIOError
from ..metrics import ERRORS

logger = get_logger()

SERVER_ERROR = {"error": "Server error"}


async def validation_error_handler(request: Request, exc: MessageValidationError) -> JSONResponse:
    status_code = 413 if exc.too_long else 400
    return JSONResponse(
        status_code=status_code,
        content={"error": str(exc), "details": exc.details()},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("request_body_invalid", path=request.url.path)
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "details": jsonable_encoder(exc.errors())},
    )


async def not_found_handler(request: Request, exc: MessageNotFound) -> JSONResponse:
    logger.warning("message_not_found", message_id=exc.message_id)
    return JSONResponse(status_code=404, content={"error": "Message not found"})


async def origin_rejected_handler(request: Request, exc: OriginRejected) -> JSONResponse:
    logger.warning("origin_rejected", origin=exc.origin, path=request.url.path)
    return JSONResponse(status_code=403, content={"error": "Origin not allowed"})


async def store_error_handler(request: Request, exc: StoreIOError) -> JSONResponse:
    ERRORS.inc()
    logger.error("store_io_error", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(status_code=500, content=SERVER_ERROR)


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    ERRORS.inc()
    logger.error("unhandled_error", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(status_code=500, content=SERVER_ERROR)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MessageValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(MessageNotFound, not_found_handler)
    app.add_exception_handler(OriginRejected, origin_rejected_handler)
    app.add_exception_handler(StoreIOError, store_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
