"""Exception handlers: every failure leaves the API as {success: false, error: {message}}."""

import logging
import traceback
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import INTERNAL_ERROR, ROUTE_NOT_FOUND, VALIDATION_FAILED, ApiError
from app.core.rate_limit import get_client_ip
from app.schemas.common import FieldError

logger = logging.getLogger(__name__)

# pydantic prefixes messages raised from validators with this.
_VALUE_ERROR_PREFIX = "Value error, "


def error_response(
    status_code: int,
    message: str,
    *,
    headers: dict[str, str] | None = None,
    data: Any = None,
    stack: str | None = None,
) -> JSONResponse:
    """Build the error envelope response."""
    error: dict[str, Any] = {"message": message}
    if stack:
        error["stack"] = stack
    content: dict[str, Any] = {"success": False, "error": error}
    if data is not None:
        content["data"] = jsonable_encoder(data)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _debug(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(settings is not None and settings.DEBUG)


def _log_error(request: Request, status_code: int, message: str) -> None:
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "Error %s: %s",
        status_code,
        message,
        extra={
            "status_code": status_code,
            "path": request.url.path,
            "method": request.method,
            "ip": get_client_ip(request),
        },
    )


def _format_stack(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


def _field_errors(exc: RequestValidationError) -> list[FieldError]:
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        # Drop the leading source marker ("body", "query", "path").
        if loc and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        message = str(err.get("msg", "Invalid value"))
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        errors.append(FieldError(field=".".join(loc) or None, message=message))
    return errors


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    debug = _debug(request)
    status_code = exc.status_code
    if status_code >= 500 and not debug:
        message = INTERNAL_ERROR
    else:
        message = exc.message or INTERNAL_ERROR
    _log_error(request, status_code, exc.message)
    return error_response(
        status_code,
        message,
        headers=exc.headers,
        data=exc.data,
        stack=_format_stack(exc) if debug else None,
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = _field_errors(exc)
    _log_error(request, 400, VALIDATION_FAILED)
    return error_response(400, VALIDATION_FAILED, data={"errors": errors})


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = f"{ROUTE_NOT_FOUND}: {request.url.path}"
    else:
        message = str(exc.detail)
    _log_error(request, exc.status_code, message)
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error",
        extra={"path": request.url.path, "method": request.method},
    )
    debug = _debug(request)
    message = (str(exc) or INTERNAL_ERROR) if debug else INTERNAL_ERROR
    return error_response(500, message, stack=_format_stack(exc) if debug else None)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
