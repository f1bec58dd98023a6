"""FastAPI exception handlers rendering the shared error body.

Every failure is returned as ``{"error": <code>, "message": <text>, "detail": <obj|null>}``
so the UI can show the message in a toast.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...services.auth import AuthError
from ...services.export import ExportError
from ...services.llm_client import AIFlowError
from ...services.note_store import StoreError

logger = logging.getLogger(__name__)

DEFAULT_ERRORS: Dict[int, Tuple[str, str]] = {
    status.HTTP_400_BAD_REQUEST: ("validation_error", "Invalid request payload"),
    status.HTTP_401_UNAUTHORIZED: ("unauthorized", "Authorization required"),
    status.HTTP_403_FORBIDDEN: ("forbidden", "Forbidden"),
    status.HTTP_404_NOT_FOUND: ("not_found", "Resource not found"),
    status.HTTP_405_METHOD_NOT_ALLOWED: ("method_not_allowed", "Method not allowed"),
    status.HTTP_409_CONFLICT: ("conflict", "Resource already exists"),
    status.HTTP_429_TOO_MANY_REQUESTS: ("too_many_requests", "Too many requests"),
    status.HTTP_500_INTERNAL_SERVER_ERROR: ("internal_error", "Internal server error"),
    status.HTTP_501_NOT_IMPLEMENTED: ("not_configured", "Feature not configured"),
    status.HTTP_502_BAD_GATEWAY: ("upstream_error", "Upstream service failed"),
    status.HTTP_504_GATEWAY_TIMEOUT: ("upstream_timeout", "Upstream service timed out"),
}


def _normalize_error(
    status_code: int, detail: Any
) -> Tuple[str, str, Optional[Dict[str, Any]]]:
    default_error, default_message = DEFAULT_ERRORS.get(
        status_code, DEFAULT_ERRORS[status.HTTP_500_INTERNAL_SERVER_ERROR]
    )
    if isinstance(detail, dict):
        error = detail.get("error", default_error)
        message = detail.get("message", default_message)
        detail_payload = detail.get("detail")
        if detail_payload is None:
            remainder = {
                k: v for k, v in detail.items() if k not in {"error", "message", "detail"}
            }
            detail_payload = remainder or None
        return error, message, detail_payload
    if isinstance(detail, str) and detail:
        return default_error, detail, None
    return default_error, default_message, None


def _response(status_code: int, detail: Any) -> JSONResponse:
    error, message, extra = _normalize_error(status_code, detail)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"error": error, "message": message, "detail": extra}),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = DEFAULT_ERRORS[status.HTTP_400_BAD_REQUEST][1]
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    detail = {"message": message, "detail": {"errors": errors}}
    return _response(status.HTTP_400_BAD_REQUEST, detail)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return _response(exc.status_code, exc.detail)


async def auth_exception_handler(request: Request, exc: AuthError) -> JSONResponse:
    return _response(
        exc.status_code, {"error": exc.error, "message": exc.message, "detail": exc.detail or None}
    )


async def store_exception_handler(request: Request, exc: StoreError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("Store failure: %s", exc.message, extra={"error": exc.error})
    return _response(exc.status_code, {"error": exc.error, "message": exc.message})


async def ai_exception_handler(request: Request, exc: AIFlowError) -> JSONResponse:
    return _response(
        exc.status_code, {"error": exc.error, "message": exc.message, "detail": exc.details or None}
    )


async def export_exception_handler(request: Request, exc: ExportError) -> JSONResponse:
    return _response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, {"error": "export_failed", "message": str(exc)}
    )


async def internal_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return _response(status.HTTP_500_INTERNAL_SERVER_ERROR, None)


def register_error_handlers(app: FastAPI) -> None:
    """Attach shared exception handlers to the FastAPI application."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(AuthError, auth_exception_handler)
    app.add_exception_handler(StoreError, store_exception_handler)
    app.add_exception_handler(AIFlowError, ai_exception_handler)
    app.add_exception_handler(ExportError, export_exception_handler)
    app.add_exception_handler(Exception, internal_exception_handler)


__all__ = [
    "register_error_handlers",
    "validation_exception_handler",
    "http_exception_handler",
    "auth_exception_handler",
    "store_exception_handler",
    "ai_exception_handler",
    "export_exception_handler",
    "internal_exception_handler",
]
