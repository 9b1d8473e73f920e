"""Centralised FastAPI exception handlers.

Every response produced here uses the flat ``{"success": false, "error": ...}``
envelope. Server-side failures are logged in full and reported to clients as
a generic message.
"""

from __future__ import annotations

import logfire
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from insights_gateway.core.exceptions import GENERIC_ERROR_MESSAGE, InsightsGatewayError


def error_response(status_code: int, message: str, headers: dict[str, str] | None = None):
    """Build the error envelope, hiding the message for 5xx statuses."""
    error = GENERIC_ERROR_MESSAGE if status_code >= 500 else message
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
        headers=headers,
    )


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = "/".join(str(part) for part in first.get("loc", ()))
    return f"{location} {first.get('msg', 'is invalid')}".strip()


def install_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the given app."""

    @app.exception_handler(InsightsGatewayError)
    async def handle_domain_error(  # type: ignore[override]
        request: Request,
        exc: InsightsGatewayError,
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logfire.error(
                "Gateway error",
                path=request.url.path,
                error_code=exc.error_code,
                error=exc.message,
                details=exc.details,
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(  # type: ignore[override]
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        message = _validation_message(exc)
        logfire.info("Request validation failed", path=request.url.path, error=message)
        return error_response(400, message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(  # type: ignore[override]
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        return error_response(exc.status_code, str(exc.detail), headers=exc.headers)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(  # type: ignore[override]
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logfire.exception("Unhandled error", request=str(request.url))
        return error_response(500, GENERIC_ERROR_MESSAGE)


__all__ = ["error_response", "install_error_handlers"]
