"""
SnipBin Backend — Document Store
=================================

What:  The only code that touches the `documents` table.
Who:   Called by the API, raw and page routes with the request's session.

Lookup contract:
    get(db, id) → Document
        no row                    → NotFoundError (404)
        timeout / any DB failure  → DatabaseError (500)
    One SELECT by primary key per call, never retried.

Insert contract:
    create(db, content) → Document
        A fresh identifier is generated for every attempt. A primary key
        collision (IntegrityError) is retried with Tenacity up to
        `id_retry_attempts` times; exhausted retries and every other failure
        become DatabaseError.

Each statement is bounded by `db_timeout` seconds so a stuck connection
ends the request with an internal error instead of hanging it.
"""

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
)

from snipbin.config import Settings
from snipbin.exceptions import DatabaseError, NotFoundError
from snipbin.models.document import Document
from snipbin.services.identifiers import generate_identifier

logger = logging.getLogger(__name__)


class DocumentStore:
    """
    Reads and inserts documents.

    Stateless apart from the settings it was built with; sessions are
    passed in per call.
    """

    def __init__(self, settings: Settings):
        self.id_length = settings.id_length
        self.timeout = settings.db_timeout
        self.retry_attempts = settings.id_retry_attempts

    async def get(self, db: AsyncSession, document_id: str) -> Document:
        """
        Fetch a document by identifier.

        Raises:
            NotFoundError: no document with this id
            DatabaseError: the query failed or timed out
        """
        try:
            result = await asyncio.wait_for(
                db.execute(select(Document).where(Document.id == document_id)),
                timeout=self.timeout,
            )
            document = result.scalar_one_or_none()
        except (SQLAlchemyError, asyncio.TimeoutError) as e:
            logger.error("Database error fetching document %s: %s", document_id, e)
            raise DatabaseError(
                message="Could not retrieve the document. Please try again.",
                context={"document_id": document_id, "error_type": type(e).__name__},
            ) from e

        if document is None:
            raise NotFoundError(resource="document", resource_id=document_id)
        return document

    async def create(self, db: AsyncSession, content: str) -> Document:
        """
        Insert `content` under a newly generated identifier.

        Raises:
            DatabaseError: every attempt collided, or the insert failed
        """
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(IntegrityError),
                stop=stop_after_attempt(self.retry_attempts),
                reraise=False,
            ):
                with attempt:
                    return await self._insert(db, content)
        except RetryError as e:
            logger.error("Identifier collisions exhausted %d attempts", self.retry_attempts)
            raise DatabaseError(
                message="Could not allocate a document ID. Please try again.",
                context={"attempts": self.retry_attempts},
            ) from e
        except (SQLAlchemyError, asyncio.TimeoutError) as e:
            logger.error("Database error creating document: %s", e, exc_info=True)
            raise DatabaseError(
                message="Could not save the document. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

    async def _insert(self, db: AsyncSession, content: str) -> Document:
        document = Document(id=generate_identifier(self.id_length), content=content)
        db.add(document)
        try:
            await asyncio.wait_for(db.flush(), timeout=self.timeout)
        except IntegrityError:
            # Nothing else is pending in a create request's session
            await db.rollback()
            logger.info("Identifier %s already taken, retrying", document.id)
            raise
        logger.info("Document %s created: %d chars", document.id, len(content))
        return document
