"""
SnipBin Backend — Error Mapper
===============================

What:  Turns every failure into a response shaped for the output surface
       of the route that failed.
How:   Each router declares its surface with `Depends(use_surface(...))`,
       which stores it on `request.state`. The global exception handlers read
       it back and delegate to the matching sink. Code that raises never
       names a surface; a new surface only needs a new sink.

Surfaces:
    JSON  {"payload": {}, "error": "<message>"}; DEBUG log entry
    HTML  error.html with "<status> <phrase>" and the message. A broken
          error template propagates: there is no further fallback.
    TEXT  text/plain single line naming the document id (raw route only)

Status selection:
    SnipBinError        → its `status_code` (400 / 404 / 500)
    rate limited        → 429, emitted by RateLimitMiddleware through the mapper
    HTTPException       → its status (unknown route 404, wrong method 405)
    RequestValidation   → 400
    anything else       → 500 with a generic message, traceback logged
"""

import enum
import logging
from http import HTTPStatus
from typing import Callable, Dict, Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import HTMLResponse, JSONResponse, Response

from snipbin.exceptions import SnipBinError
from snipbin.middleware.request_id import request_id_var
from snipbin.schemas.document import envelope
from snipbin.services.templates import TemplateRenderer

logger = logging.getLogger(__name__)


class Surface(str, enum.Enum):
    JSON = "json"
    HTML = "html"
    TEXT = "text"


def use_surface(surface: Surface) -> Callable[[Request], None]:
    """Router dependency recording which surface answers this request's errors."""

    def _set_surface(request: Request) -> None:
        request.state.surface = surface

    return _set_surface


def surface_of(request: Request) -> Surface:
    return getattr(request.state, "surface", Surface.JSON)


def status_line(status: int) -> str:
    """`404` → `"404 Not Found"`."""
    try:
        return f"{status} {HTTPStatus(status).phrase}"
    except ValueError:
        return str(status)


# ══════════════════════════════════════════════════════════════════════════
# Sinks
# ══════════════════════════════════════════════════════════════════════════

class JSONErrorSink:
    def emit(self, request: Request, status: int, message: str, headers: Optional[Mapping[str, str]] = None) -> Response:
        logger.debug("Request error: %s", message, extra={"status": status, "path": request.url.path})
        return JSONResponse(status_code=status, content=envelope(error=message), headers=headers)


class HTMLErrorSink:
    def __init__(self, templates: TemplateRenderer):
        self.templates = templates

    def emit(self, request: Request, status: int, message: str, headers: Optional[Mapping[str, str]] = None) -> Response:
        page = self.templates.render("error.html", status=status_line(status), error=message)
        return HTMLResponse(content=page, status_code=status, headers=headers)


class TextErrorSink:
    def emit(self, request: Request, status: int, message: str, headers: Optional[Mapping[str, str]] = None) -> Response:
        document_id = request.path_params.get("document", "")
        if status == 404:
            line = f"Document with ID {document_id} not found: {message}"
        elif status == 400:
            line = f"Invalid document ID {document_id}: {message}"
        else:
            line = f"Error fetching document with ID {document_id}: {message}"
        return Response(content=line, status_code=status, media_type="text/plain", headers=headers)


class ErrorMapper:
    """One entry point for every error response, parameterized by surface."""

    def __init__(self, templates: TemplateRenderer):
        self.sinks: Dict[Surface, object] = {
            Surface.JSON: JSONErrorSink(),
            Surface.HTML: HTMLErrorSink(templates),
            Surface.TEXT: TextErrorSink(),
        }

    def emit(
        self,
        surface: Surface,
        request: Request,
        status: int,
        message: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Response:
        return self.sinks[surface].emit(request, status, message, headers)


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""

    def _emit(request: Request, status: int, message: str, headers=None) -> Response:
        mapper: ErrorMapper = request.app.state.error_mapper
        return mapper.emit(surface_of(request), request, status, message, headers)

    @app.exception_handler(SnipBinError)
    async def handle_snipbin_error(request: Request, exc: SnipBinError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        return _emit(request, exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return _emit(request, exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        message = "; ".join(
            f"{'.'.join(str(loc) for loc in e['loc'])}: {e['msg']}" for e in exc.errors()
        )
        logger.info("Request validation failed on %s: %s", request.url.path, message)
        return _emit(request, 400, message or "invalid request")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all; the traceback is logged server-side only."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, exc, exc_info=True)
        return _emit(request, 500, "An unexpected error occurred")
