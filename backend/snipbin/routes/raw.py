"""
SnipBin Backend — Raw Route Handler
====================================

What:  GET /raw/{document}: the document content alone, as text/plain.
How:   Errors are answered on the plain-text surface with a single line
       naming the document id.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from snipbin.api.dependencies import get_app_settings, get_document_store, get_renderer
from snipbin.api.error_handlers import Surface, use_surface
from snipbin.config import Settings
from snipbin.database import get_db_session
from snipbin.services.document_store import DocumentStore
from snipbin.services.identifiers import validate_identifier
from snipbin.services.renderer import ResponseRenderer

router = APIRouter(
    prefix="/raw",
    tags=["Documents"],
    dependencies=[Depends(use_surface(Surface.TEXT))],
)


@router.get(
    "/{document}",
    response_class=Response,
    summary="Fetch a document as plain text",
)
async def fetch_raw_document(
    document: str,
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
    store: DocumentStore = Depends(get_document_store),
    renderer: ResponseRenderer = Depends(get_renderer),
) -> Response:
    validate_identifier(document, settings.id_length, settings.reserved_ids)
    found = await store.get(db, document)
    return renderer.raw(found)
