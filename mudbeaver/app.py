"""
FastAPI application entry point for the site backend.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mudbeaver.config import get_settings
from mudbeaver.errors import (
    FieldError,
    NotFoundError,
    PersistenceError,
    UploadError,
    ValidationError,
)
from mudbeaver.routes import router

logger = logging.getLogger(__name__)


def _server_error(exc: Exception) -> JSONResponse:
    content = {"message": "Server error"}
    if not get_settings().is_production:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400, content={"errors": [e.as_dict() for e in exc.errors]}
    )


def _request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append(FieldError(field=".".join(loc) or "body", message=error["msg"]))
    return JSONResponse(
        status_code=400, content={"errors": [e.as_dict() for e in errors]}
    )


def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    content = {"message": exc.message}
    if exc.debug and not get_settings().is_production:
        content["debug"] = exc.debug
    return JSONResponse(status_code=404, content=content)


def _upload_failed(request: Request, exc: UploadError) -> JSONResponse:
    logger.error(
        "Upload failed on %s %s: %s (remote error: %r)",
        request.method,
        request.url.path,
        exc,
        exc.remote_error,
    )
    return _server_error(exc)


def _persistence_failed(request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return _server_error(exc)


def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _server_error(exc)


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    app = FastAPI(title="Mud Beaver Site Backend", version="0.1.0")
    app.include_router(router, prefix=settings.api_prefix)
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(UploadError, _upload_failed)
    app.add_exception_handler(PersistenceError, _persistence_failed)
    app.add_exception_handler(Exception, _unhandled)
    return app


app = create_app()
