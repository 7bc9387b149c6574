"""
SnipBin Backend — Response Renderer
====================================

What:  Produces the final response for a fetched document in one of four
       output modes.
Who:   Called by the API, raw and page routes after a successful lookup.

Modes:
    api     JSON envelope of the document, 200
    raw     the content alone as text/plain, 200, no envelope
    reader  content rendered as Markdown inside reader.html, 200
    code    content highlighted by Pygments inside document.html, 200
            (default HTML mode; `?reader=true` selects reader mode)

Any template, highlighter or Markdown failure surfaces as RenderFailedError
and is answered by the error handlers; nothing degrades silently.

Highlighting and Markdown conversion are CPU-bound and run in Starlette's
threadpool so a large paste does not stall the event loop.
"""

import logging
from typing import Callable

from markupsafe import Markup
from starlette.concurrency import run_in_threadpool
from starlette.responses import HTMLResponse, JSONResponse, Response

from snipbin.config import Settings
from snipbin.exceptions import RenderFailedError
from snipbin.models.document import Document
from snipbin.schemas.document import DocumentResponse, envelope
from snipbin.services.highlight import Highlighter
from snipbin.services.markdown_renderer import render_markdown
from snipbin.services.templates import TemplateRenderer

logger = logging.getLogger(__name__)


class ResponseRenderer:
    """
    Renders documents for every output surface.

    Args:
        settings:    application settings (analytics snippet, highlight style)
        templates:   page template renderer
        highlighter: syntax highlighter; defaults to one using the configured style
        markdown:    Markdown → HTML function
    """

    def __init__(
        self,
        settings: Settings,
        templates: TemplateRenderer,
        highlighter: Highlighter | None = None,
        markdown: Callable[[str], str] = render_markdown,
    ):
        self.analytics = Markup(settings.analytics)
        self.templates = templates
        self.highlighter = highlighter or Highlighter(settings.highlight_style)
        self.markdown = markdown

    def api(self, document: Document, status_code: int = 200) -> JSONResponse:
        try:
            body = envelope(DocumentResponse.from_document(document))
            return JSONResponse(status_code=status_code, content=body)
        except (TypeError, ValueError) as e:
            raise RenderFailedError(
                message="Could not serialize document",
                context={"document_id": document.id, "error_type": type(e).__name__},
            ) from e

    def raw(self, document: Document) -> Response:
        return Response(content=document.content, status_code=200, media_type="text/plain")

    async def html(self, document: Document, extension: str = "", reader: bool = False) -> HTMLResponse:
        """Reader view when `reader` is set, code view otherwise."""
        if reader:
            return await self.reader(document)
        return await self.code(document, extension)

    async def reader(self, document: Document) -> HTMLResponse:
        fragment = await run_in_threadpool(self.markdown, document.content)
        page = self.templates.render(
            "reader.html",
            id=document.id,
            content=Markup(fragment),
            analytics=self.analytics,
        )
        return HTMLResponse(content=page, status_code=200)

    async def code(self, document: Document, extension: str = "") -> HTMLResponse:
        highlighted, css = await run_in_threadpool(
            self.highlighter.highlight, document.content, extension
        )
        page = self.templates.render(
            "document.html",
            id=document.id,
            stylesheet=Markup(css),
            content=document.content,  # autoescaped; used by the copy button
            highlighted=Markup(highlighted),
            extension=extension,
            analytics=self.analytics,
        )
        return HTMLResponse(content=page, status_code=200)
