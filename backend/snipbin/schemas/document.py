"""
SnipBin Backend — Pydantic Response Schemas
============================================

What:  Pydantic models for everything the JSON surface returns.
How:   Route handlers build these models and wrap them with `envelope()`, so
       every JSON response has the shape `{"payload": <T>, "error": ""}`.

Envelope:
    Success: {"payload": {...}, "error": ""}
    Failure: {"payload": {},    "error": "<message>"}

Omitted fields:
    Document fields serialize with omit-empty semantics: an empty id or
    content, a zero timestamp and `exists=False` are dropped from the
    payload. `model_dump(exclude_defaults=True)` gives exactly that because
    every default is the zero value of its type.
"""

from typing import Any, Dict

from pydantic import BaseModel, Field

from snipbin.models.document import Document, to_unix


class DocumentResponse(BaseModel):
    """
    JSON projection of a stored document.

    Who:   Returned by GET /api/{document} and POST /api/.
    """
    id: str = Field(default="", description="The document ID")
    content: str = Field(default="", description="The document content")
    created_at: int = Field(default=0, description="Unix timestamp of when the document was inserted")
    updated_at: int = Field(default=0, description="Unix timestamp of when the document was last modified")
    exists: bool = Field(default=False, description="Whether the document does or does not exist")

    @classmethod
    def from_document(cls, document: Document) -> "DocumentResponse":
        return cls(
            id=document.id,
            content=document.content,
            created_at=to_unix(document.created_at),
            updated_at=to_unix(document.updated_at),
            exists=True,
        )

    def to_payload(self) -> Dict[str, Any]:
        """Serialize with zero values dropped."""
        return self.model_dump(exclude_defaults=True)


class HealthResponse(BaseModel):
    """
    What:  Health check payload showing service and dependency status.
    Who:   Returned (inside the envelope) by GET /health.
    """
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")


def envelope(payload: Any = None, error: str = "") -> Dict[str, Any]:
    """Wrap a payload (model, dict or None) in the `{payload, error}` envelope."""
    if isinstance(payload, DocumentResponse):
        payload = payload.to_payload()
    elif isinstance(payload, BaseModel):
        payload = payload.model_dump()
    elif payload is None:
        payload = {}
    return {"payload": payload, "error": error}
