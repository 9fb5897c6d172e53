"""
FastAPI application entry point for the hello API service.
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from hello_api.config import Settings, get_settings
from hello_api.db import DbClient
from hello_api.dependencies import build_db_client
from hello_api.errors import ApiError, MalformedRequest, translate_error
from hello_api.routes import router


_VALIDATION_REASONS = {
    "json_invalid": "invalid JSON",
    "uuid_parsing": "must be a UUID",
    "uuid_type": "must be a UUID",
    "missing": "missing or wrong type",
    "string_type": "missing or wrong type",
    "bool_type": "missing or wrong type",
    "model_attributes_type": "missing or wrong type",
    "dict_type": "missing or wrong type",
    "value_error": "contains a NUL character",
}


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return MalformedRequest.default_message
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    # pydantic's own msg can quote the input, so only fixed phrases are used.
    reason = _VALIDATION_REASONS.get(first.get("type", ""), "invalid value")
    return f"Invalid request at {location}: {reason}"


async def _handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    return _error_response(*translate_error(exc))


async def _handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return _error_response(
        *translate_error(MalformedRequest(_describe_validation_error(exc)))
    )


async def _handle_http_error(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _translate_unexpected_errors(request: Request, call_next):
    # Handled here rather than as an Exception handler, which Starlette re-raises after responding.
    try:
        return await call_next(request)
    except Exception as exc:
        return _error_response(*translate_error(exc))


def create_app(
    db: Optional[DbClient] = None, settings: Optional[Settings] = None
) -> FastAPI:
    """
    Build the application around an explicitly constructed store handle.

    When ``db`` is omitted the handle is built from ``settings``. The schema is
    not applied here; the process entry point does that before serving.
    """
    settings = settings or get_settings()
    app = FastAPI(title="Hello API", version="0.1.0")
    app.state.db = db if db is not None else build_db_client(settings)
    app.include_router(router, prefix=settings.api_prefix)

    app.add_exception_handler(ApiError, _handle_api_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)
    app.middleware("http")(_translate_unexpected_errors)
    return app
