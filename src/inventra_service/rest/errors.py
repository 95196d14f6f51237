"""Maps service exceptions onto JSON error responses."""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from inventra_service.errors import InventraError

log = structlog.get_logger(__name__)


def error_body(exc: InventraError) -> dict:
    return {"detail": exc.message, "code": exc.code, **exc.details}


async def handle_inventra_error(request: Request, exc: InventraError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("request_failed", path=request.url.path, code=exc.code)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    log.exception("unhandled_error", path=request.url.path, method=request.method)
    return JSONResponse(status_code=500, content={"detail": "Internal server error", "code": "internal_error"})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InventraError, handle_inventra_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
