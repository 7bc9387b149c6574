"""
SnipBin Backend — Document SQLAlchemy Model
============================================

What:  ORM model representing the `documents` table.
Who:   Read and inserted by DocumentStore; read by Alembic for migrations.

Table Design:
    - id: the public identifier itself (fixed length or reserved), primary key
    - content: full paste text, never truncated
    - created_at / updated_at: timezone-aware UTC timestamps; the API exposes
      them as Unix seconds
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from snipbin.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_unix(value: datetime | None) -> int:
    """Unix seconds for a stored timestamp; naive values are treated as UTC."""
    if value is None:
        return 0
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


class Document(Base):
    """
    A stored text blob addressable by its identifier.

    Documents are written once by the create endpoint and only read by the
    retrieval pipeline.
    """

    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment="Public document identifier",
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Document text as submitted",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Document(id='{self.id}', created_at='{self.created_at}')>"
