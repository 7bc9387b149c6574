"""
SnipBin Backend — Document Identifiers
=======================================

What:  Validation, parsing and generation of document identifiers.

Identifier rules:
    A lookup id is accepted when it is exactly `id_length` characters long
    or is one of the reserved ids from settings. Nothing else ever reaches
    the database.

    The HTML route accepts an optional extension suffix (`abc123.py`) used
    as a highlighting hint; it is split off before validation.
"""

import secrets
import string
from typing import AbstractSet, Tuple

from snipbin.exceptions import BadIdentifierError

ID_ALPHABET = string.ascii_letters + string.digits


def validate_identifier(document_id: str, length: int, reserved: AbstractSet[str]) -> None:
    """
    Raise BadIdentifierError unless `document_id` is well-formed.

    Pure function of its inputs; no I/O.
    """
    if len(document_id) != length and document_id not in reserved:
        raise BadIdentifierError(document_id, length)


def split_identifier(raw: str) -> Tuple[str, str]:
    """
    Split `"<id>.<ext>"` into `(id, ext)`.

    >>> split_identifier("abc123.py")
    ('abc123', 'py')
    >>> split_identifier("abc123")
    ('abc123', '')

    With more than one dot the first segment is the id and no extension is
    returned.
    """
    parts = raw.split(".")
    extension = parts[1] if len(parts) == 2 else ""
    return parts[0], extension


def generate_identifier(length: int) -> str:
    """Random alphanumeric identifier of exactly `length` characters."""
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))
