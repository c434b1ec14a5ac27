"""Exception handlers: HTML for crawlers, plain text for render failures, JSON otherwise."""

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from havaasa.config import Environment
from havaasa.exceptions import HavaasaError, RenderError, StorageError, ValidationError
from havaasa.services.og_service import render_not_found_html

logger = structlog.get_logger(__name__)


def format_error(exc: Exception, environment: Environment) -> dict[str, Any]:
    """JSON error body. Internal details only when the environment allows it."""
    if isinstance(exc, HavaasaError):
        message = exc.message
        if exc.public_message and not environment.expose_internals:
            message = exc.public_message
        error: dict[str, Any] = {"code": exc.code, "message": message}
        if isinstance(exc, ValidationError) and exc.fields:
            error["fields"] = exc.fields
        if environment.expose_internals and exc.details:
            error["details"] = exc.details
    else:
        error = {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred"}
        if environment.expose_internals:
            error["details"] = f"{type(exc).__name__}: {exc}"
    return {"success": False, "error": error}


def _is_crawler(request: Request) -> bool:
    responder = getattr(request.app.state, "responder", None)
    return bool(responder and responder.classify(request.headers.get("user-agent")))


def _crawler_page(request: Request, status_code: int) -> Response:
    settings = request.app.state.settings
    heading = "Article not found" if status_code == 404 else "Something went wrong"
    try:
        body = render_not_found_html(settings.site_name, settings.base_url, heading=heading)
    except RenderError:
        body = f"<!DOCTYPE html><html><head><title>{status_code}</title></head><body></body></html>"
    return HTMLResponse(body, status_code=status_code)


def error_response(request: Request, exc: Exception, status_code: int) -> Response:
    # A failed render is reported as text even to crawlers
    if isinstance(exc, RenderError):
        return PlainTextResponse(
            exc.public_message or "Failed to render page", status_code=status_code
        )
    if _is_crawler(request):
        return _crawler_page(request, status_code)
    if isinstance(exc, StorageError):
        return JSONResponse({"error": exc.message}, status_code=status_code)
    environment = request.app.state.settings.runtime
    return JSONResponse(format_error(exc, environment), status_code=status_code)


def register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with the FastAPI app."""

    @app.exception_handler(HavaasaError)
    async def handle_havaasa_error(request: Request, exc: HavaasaError) -> Response:
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "request_failed",
            path=request.url.path,
            code=exc.code,
            message=exc.message,
            details=exc.details,
        )
        return error_response(request, exc, exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> Response:
        if _is_crawler(request):
            return _crawler_page(request, exc.status_code)
        return JSONResponse(
            {"error": exc.detail if exc.status_code != 404 else "Not Found"},
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> Response:
        if _is_crawler(request):
            return _crawler_page(request, 404)
        return JSONResponse(
            {
                "success": False,
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": "Invalid request",
                    "details": jsonable_encoder(exc.errors()),
                },
            },
            status_code=400,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> Response:
        logger.error("unhandled_exception", path=request.url.path, exc_info=exc)
        return error_response(request, exc, 500)
