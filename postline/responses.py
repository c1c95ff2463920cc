"""
Postline API Response Utilities
Standardized error envelope and exception handlers
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .exceptions import PostlineError, StoreFailure
from .logging_config import api_logger


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def error_body(message: str, error_code: str, details: Optional[Dict[str, Any]] = None) -> Dict:
    """Build the error envelope shared by every failure response"""
    body = {
        "ok": False,
        "error": message,
        "error_code": error_code,
        "timestamp": _timestamp(),
    }
    if details:
        body["details"] = details
    return body


# ============================================================
# EXCEPTION HANDLERS
# ============================================================

async def postline_error_handler(request: Request, exc: PostlineError) -> JSONResponse:
    """Render domain errors; store failures never leak their cause"""
    if isinstance(exc, StoreFailure):
        api_logger.error(
            f"Store failure: {exc.operation}",
            error=exc.__cause__ or exc,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body("Internal server error", exc.error_code),
        )

    api_logger.warning(
        f"API Error: {exc.message}",
        status_code=exc.status_code,
        error_code=exc.error_code,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.error_code, exc.details),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    api_logger.warning(
        f"HTTP Error: {exc.detail}",
        status_code=exc.status_code,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail), f"HTTP_{exc.status_code}"),
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and query strings are client errors (400)"""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query")),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    api_logger.warning(
        "Request validation failed",
        path=request.url.path,
        errors=errors,
    )
    return JSONResponse(
        status_code=400,
        content=error_body("Validation error", "VALIDATION_ERROR", {"errors": errors}),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    api_logger.error(
        f"Unexpected error: {exc}",
        error=exc,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=500,
        content=error_body("An unexpected error occurred", "INTERNAL_ERROR"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PostlineError, postline_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
