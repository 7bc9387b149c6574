"""
SnipBin Backend — HTML Page Route Handlers
===========================================

What:  The browser-facing pages.
    GET  /                 paste form
    POST /                 create from the form, 303 redirect to the new page
    GET  /{document}[.ext] code view (default) or Markdown reader view
                           (`?reader=true`); the extension is a highlighting hint
How:   Errors are answered on the HTML surface with the error.html page.

Routing Note:
    This router is mounted last. `/{document}` matches any single path
    segment, so /health, /docs and the /api and /raw routers must be
    registered before it.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from snipbin.api.dependencies import (
    get_app_settings,
    get_body_decoder,
    get_document_store,
    get_renderer,
)
from snipbin.api.error_handlers import Surface, use_surface
from snipbin.config import Settings
from snipbin.database import get_db_session
from snipbin.services.body_decoder import BodyDecoder
from snipbin.services.document_store import DocumentStore
from snipbin.services.identifiers import split_identifier, validate_identifier
from snipbin.services.renderer import ResponseRenderer
from snipbin.services.validation import validate_body

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Pages"],
    dependencies=[Depends(use_surface(Surface.HTML))],
)


@router.get("/", response_class=HTMLResponse, summary="Paste form")
async def index(renderer: ResponseRenderer = Depends(get_renderer)) -> HTMLResponse:
    page = renderer.templates.render("index.html", analytics=renderer.analytics)
    return HTMLResponse(content=page)


@router.post("/", summary="Create a document from the paste form")
async def create_from_form(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
    decoder: BodyDecoder = Depends(get_body_decoder),
    store: DocumentStore = Depends(get_document_store),
) -> RedirectResponse:
    body = await decoder.read(request)
    validate_body(body, settings.max_size)

    document = await store.create(db, body.content)
    return RedirectResponse(url=f"/{document.id}", status_code=303)


@router.get("/{document}", response_class=HTMLResponse, summary="View a document")
async def view_document(
    document: str,
    reader: str | None = Query(default=None, description="'true' selects the Markdown reader view"),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
    store: DocumentStore = Depends(get_document_store),
    renderer: ResponseRenderer = Depends(get_renderer),
) -> HTMLResponse:
    document_id, extension = split_identifier(document)
    validate_identifier(document_id, settings.id_length, settings.reserved_ids)
    found = await store.get(db, document_id)

    return await renderer.html(found, extension=extension, reader=reader == "true")
