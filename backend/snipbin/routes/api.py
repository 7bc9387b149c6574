"""
SnipBin Backend — JSON API Route Handlers
==========================================

What:  POST /api/ (create) and GET /api/{document} (fetch as JSON).
How:   Errors on these routes are answered on the JSON surface:
       {"payload": {}, "error": "<message>"}.

Create flow:
    body stream → BodyDecoder (json / multipart / empty) → validate_body
    → DocumentStore.create → 201 envelope of the new document
    Field validation runs before anything is written.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
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
from snipbin.services.identifiers import validate_identifier
from snipbin.services.renderer import ResponseRenderer
from snipbin.services.validation import validate_body

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Documents"],
    dependencies=[Depends(use_surface(Surface.JSON))],
)


@router.post("", status_code=201, include_in_schema=False)
@router.post(
    "/",
    status_code=201,
    summary="Create a document",
    description=(
        "Accepts `application/json` ({\"content\": \"...\"}) or `multipart/form-data` "
        "with a `content` field. Returns the stored document in the JSON envelope."
    ),
)
async def create_document(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
    decoder: BodyDecoder = Depends(get_body_decoder),
    store: DocumentStore = Depends(get_document_store),
    renderer: ResponseRenderer = Depends(get_renderer),
) -> JSONResponse:
    body = await decoder.read(request)
    validate_body(body, settings.max_size)

    document = await store.create(db, body.content)
    return renderer.api(document, status_code=201)


@router.get(
    "/{document}",
    summary="Fetch a document as JSON",
)
async def fetch_document(
    document: str,
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
    store: DocumentStore = Depends(get_document_store),
    renderer: ResponseRenderer = Depends(get_renderer),
) -> JSONResponse:
    validate_identifier(document, settings.id_length, settings.reserved_ids)
    found = await store.get(db, document)

    response = renderer.api(found)
    response.headers["Cache-Control"] = "private, max-age=3600"
    return response
