"""Exception handlers that map every failure onto the error envelope."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.responses import error_response
from app.core.errors import ErrorSeverity, IdentityError

logger = logging.getLogger(__name__)

MSG_ROUTE_NOT_FOUND = "Oops! Route not found. You might have hit a dead endpoint."
MSG_INTERNAL = "Internal server error."


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    message = str(first.get("msg") or "Invalid request.")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    if location and first.get("type") != "value_error":
        return f"{'.'.join(location)}: {message}"
    return message


async def handle_identity_error(request: Request, exc: IdentityError) -> JSONResponse:
    log_extra = {
        "path": request.url.path,
        "status_code": exc.status_code,
        "error_type": type(exc).__name__,
    }
    if exc.severity is ErrorSeverity.INTERNAL:
        logger.error("Request failed: %s", exc.message, exc_info=exc, extra=log_extra)
    elif exc.severity is ErrorSeverity.SECURITY:
        logger.warning("Request rejected: %s", exc.message, extra=log_extra)
    else:
        logger.info("Request refused: %s", exc.message, extra=log_extra)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return error_response(exc.status_code, exc.message, headers=headers)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(400, _first_validation_message(exc))


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = MSG_ROUTE_NOT_FOUND if exc.status_code == 404 else str(exc.detail)
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled application error", extra={"path": request.url.path})
    return error_response(500, MSG_INTERNAL)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(IdentityError, handle_identity_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected)
