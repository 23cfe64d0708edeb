"""
Exception handlers producing the uniform error envelope.

Every error response has the shape:

    {
      "timestamp": "2026-10-19T12:00:00+00:00",
      "status": 409,
      "error": "Conflict",
      "message": "Asset 1 is already rented out",
      "path": "/api/rentals/book/1/customer/1"
    }

Request validation failures add a "details" mapping of field -> message.
"""

from datetime import datetime, timezone
from http import HTTPStatus
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rentalhub.core.exceptions import RentalError
from rentalhub.core.logging import get_logger

logger = get_logger(__name__)


def error_body(
    status_code: int,
    message: str,
    path: str,
    error: Optional[str] = None,
    details: Optional[dict] = None,
) -> dict:
    body = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status": status_code,
        "error": error or HTTPStatus(status_code).phrase,
        "message": message,
        "path": path,
    }
    if details:
        body["details"] = details
    return body


def error_response(request: Request, status_code: int, message: str, **kwargs) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_body(status_code, message, request.url.path, **kwargs),
    )


def _field_errors(exc: RequestValidationError) -> dict[str, str]:
    details = {}
    for err in exc.errors():
        # loc is e.g. ("body", "daily_rate"); drop the "body"/"path" prefix
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "path", "query")]
        field = ".".join(loc) or "body"
        details.setdefault(field, err.get("msg", "invalid value"))
    return details


async def rental_error_handler(request: Request, exc: RentalError) -> JSONResponse:
    return error_response(
        request,
        exc.status_code,
        exc.message,
        error=exc.error,
        details=exc.details,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = _field_errors(exc)
    logger.info("request_validation_failed", fields=sorted(details))
    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        "Invalid input",
        error="Validation failed",
        details=details,
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = error_response(request, exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", error=str(exc))
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        f"An unexpected error occurred: {exc}",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RentalError, rental_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
