"""Error envelopes and request logging."""

import logging
import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from carmarket.schemas.responses import ActionResult
from carmarket.utils.errors import CarMarketError, ValidationError, convert_exception

# Configure logger
logger = logging.getLogger(__name__)


def error_response(error: CarMarketError) -> JSONResponse:
    """Render an application error as a failed ActionResult."""
    body = ActionResult.fail(error.to_dict())
    return JSONResponse(status_code=error.status_code, content=body.model_dump(mode="json"))


async def handle_app_error(request: Request, exc: CarMarketError) -> JSONResponse:
    # Client errors are expected traffic
    exc.log(logging.WARNING if exc.status_code < 500 else logging.ERROR)
    return error_response(exc)


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = sorted({".".join(str(part) for part in error["loc"][1:]) or "body" for error in exc.errors()})
    error = ValidationError("Invalid request", invalid_fields=fields)
    error.log(logging.WARNING)
    return error_response(error)


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(convert_exception(exc))


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging request details."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Log request details and timing.

        Args:
            request: The incoming request
            call_next: The next middleware or route handler

        Returns:
            The response
        """
        start_time = time.time()
        path = request.url.path
        method = request.method
        client = request.client.host if request.client else "unknown"

        response = await call_next(request)

        log_dict = {
            "path": path,
            "method": method,
            "client": client,
            "status_code": response.status_code,
            "process_time_ms": round((time.time() - start_time) * 1000, 2),
        }

        # Log with appropriate level based on status code
        if response.status_code >= 500:
            logger.error(f"Request failed: {method} {path}", extra=log_dict)
        elif response.status_code >= 400:
            logger.warning(f"Request error: {method} {path}", extra=log_dict)
        else:
            logger.info(f"Request processed: {method} {path}", extra=log_dict)

        return response


def setup_middleware(app: FastAPI, request_logging: bool = False) -> None:
    """Register error handlers and optional request logging.

    Args:
        app: The FastAPI application
        request_logging: Whether to log every request
    """
    app.add_exception_handler(CarMarketError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)

    if request_logging:
        app.add_middleware(RequestLoggingMiddleware)
