"""
SnipBin Backend — Create Request Body Decoding
===============================================

What:  Turns the body of a create request into a CreateRequest.
How:   A strategy table keyed by the normalized Content-Type token
       (parameters such as charset or boundary are dropped). Each strategy is
       a function of the raw body bytes, so decoding is testable without a
       live request.

Strategies:
    application/json     flat object of string values; `content` field
    multipart/form-data  form fields; `content` field (file parts ignored)
    anything else        empty CreateRequest, no error

The fallback for unknown content types is permissive: the empty request
then fails field validation ("content: cannot be blank") instead of being
rejected here.

Memory bound:
    `max_size` (settings) is read as megabytes here: the request stream is
    buffered up to `max_size * 1024**2` bytes and multipart parts are bounded
    by the same number. Larger bodies fail with DecodeFailedError before any
    content reaches the validator.
"""

import logging
from typing import AsyncIterator, Awaitable, Callable, Dict, Optional

from pydantic import TypeAdapter, ValidationError
from starlette.datastructures import Headers
from starlette.formparsers import MultiPartException, MultiPartParser
from starlette.requests import Request

from snipbin.exceptions import DecodeFailedError
from snipbin.schemas.requests import CreateRequest

logger = logging.getLogger(__name__)

MEGABYTE = 1024 ** 2

Decoder = Callable[[bytes, str, int], Awaitable[CreateRequest]]

# null values decode to "", anything that is not a string is rejected
_flat_json = TypeAdapter(Optional[Dict[str, Optional[str]]])


def content_type_token(content_type: str) -> str:
    """`"multipart/form-data; boundary=x"` → `"multipart/form-data"`."""
    return content_type.split(";", 1)[0].strip().lower()


async def decode_json(body: bytes, content_type: str, limit: int) -> CreateRequest:
    try:
        fields = _flat_json.validate_json(body)
    except ValidationError as e:
        first = e.errors()[0]
        raise DecodeFailedError(
            message=f"invalid JSON body: {first['msg']}",
            context={"errors": e.error_count()},
        ) from e

    return CreateRequest(content=(fields or {}).get("content") or "")


async def _single_chunk(body: bytes) -> AsyncIterator[bytes]:
    yield body


async def decode_multipart(body: bytes, content_type: str, limit: int) -> CreateRequest:
    parser = MultiPartParser(
        Headers({"content-type": content_type}),
        _single_chunk(body),
        max_part_size=limit,
    )
    try:
        form = await parser.parse()
    except (MultiPartException, KeyError, ValueError) as e:
        raise DecodeFailedError(
            message=f"invalid multipart body: {e}",
            context={"error_type": type(e).__name__},
        ) from e

    try:
        value = form.get("content")
        return CreateRequest(content=value if isinstance(value, str) else "")
    finally:
        await form.close()


DECODERS: Dict[str, Decoder] = {
    "application/json": decode_json,
    "multipart/form-data": decode_multipart,
}


class BodyDecoder:
    """
    Content-negotiated decoder for create requests.

    Args:
        max_size: configured size bound; multiplied by 1024² for the byte limit
    """

    def __init__(self, max_size: int):
        self.limit = max_size * MEGABYTE

    async def decode(self, content_type: str, body: bytes) -> CreateRequest:
        """
        Decode `body` according to `content_type`.

        Raises:
            DecodeFailedError: the body does not parse for its declared type
        """
        strategy = DECODERS.get(content_type_token(content_type))
        if strategy is None:
            logger.debug("Unsupported content type %r, using empty request", content_type)
            return CreateRequest()
        return await strategy(body, content_type, self.limit)

    async def read(self, request: Request) -> CreateRequest:
        """Consume the request stream once and decode it."""
        body = await read_body(request, self.limit)
        return await self.decode(request.headers.get("content-type", ""), body)


async def read_body(request: Request, limit: int) -> bytes:
    """
    Read the whole request stream, failing once more than `limit` bytes arrive.

    The stream can only be consumed once; a second call sees no data.
    """
    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise DecodeFailedError(
                message=f"request body exceeds {limit} bytes",
                context={"limit": limit},
            )
        chunks.append(chunk)
    return b"".join(chunks)
