"""
SnipBin Backend — Body Decoder Unit Tests
==========================================

What:  Tests for content-type negotiation and body decoding.
How:   Strategies are fed raw bytes directly; `read_body` gets a bare
       Starlette Request with a scripted receive channel.

What we test:
    ✅ JSON: content extracted, missing field → "", null → ""
    ✅ JSON: malformed bodies and non-string values fail
    ✅ multipart: content field extracted, broken payloads fail
    ✅ Unsupported content types give an empty request without error
    ✅ Content-Type parameters are ignored
    ✅ Body size limit enforced while reading
"""

import pytest
from starlette.requests import Request

from conftest import multipart_body
from snipbin.exceptions import DecodeFailedError
from snipbin.schemas.requests import CreateRequest
from snipbin.services.body_decoder import (
    MEGABYTE,
    BodyDecoder,
    content_type_token,
    decode_multipart,
    read_body,
)


def make_request(body: bytes, content_type: str) -> Request:
    messages = [{"type": "http.request", "body": body, "more_body": False}]

    async def receive():
        if messages:
            return messages.pop(0)
        return {"type": "http.disconnect"}

    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/",
        "query_string": b"",
        "headers": [(b"content-type", content_type.encode())],
    }
    return Request(scope, receive)


class TestContentTypeToken:

    @pytest.mark.parametrize("header, token", [
        ("application/json", "application/json"),
        ("application/json; charset=utf-8", "application/json"),
        ("multipart/form-data; boundary=abc", "multipart/form-data"),
        ("Application/JSON", "application/json"),
        ("", ""),
    ])
    def test_parameters_dropped(self, header, token):
        assert content_type_token(header) == token


class TestJSONDecoding:

    def setup_method(self):
        self.decoder = BodyDecoder(max_size=1)

    @pytest.mark.asyncio
    async def test_content_extracted(self):
        result = await self.decoder.decode("application/json", b'{"content":"hello"}')
        assert result == CreateRequest(content="hello")

    @pytest.mark.asyncio
    async def test_charset_parameter_ignored(self):
        result = await self.decoder.decode(
            "application/json; charset=utf-8", b'{"content":"hello"}'
        )
        assert result.content == "hello"

    @pytest.mark.asyncio
    async def test_missing_field_is_empty(self):
        result = await self.decoder.decode("application/json", b'{"title":"x"}')
        assert result == CreateRequest(content="")

    @pytest.mark.asyncio
    async def test_null_body_is_empty(self):
        result = await self.decoder.decode("application/json", b"null")
        assert result.content == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"", b"{", b"not json", b'["content"]'])
    async def test_malformed_body_fails(self, body):
        with pytest.raises(DecodeFailedError):
            await self.decoder.decode("application/json", body)

    @pytest.mark.asyncio
    async def test_non_string_values_fail(self):
        with pytest.raises(DecodeFailedError, match="invalid JSON body"):
            await self.decoder.decode("application/json", b'{"content": 42}')

    @pytest.mark.asyncio
    async def test_decode_failure_is_internal(self):
        with pytest.raises(DecodeFailedError) as exc_info:
            await self.decoder.decode("application/json", b"{")
        assert exc_info.value.status_code == 500


class TestMultipartDecoding:

    def setup_method(self):
        self.decoder = BodyDecoder(max_size=1)

    @pytest.mark.asyncio
    async def test_content_field_extracted(self):
        body, content_type = multipart_body({"content": "hello multipart"})
        result = await self.decoder.decode(content_type, body)
        assert result == CreateRequest(content="hello multipart")

    @pytest.mark.asyncio
    async def test_other_fields_ignored(self):
        body, content_type = multipart_body({"title": "x", "content": "body text"})
        result = await self.decoder.decode(content_type, body)
        assert result.content == "body text"

    @pytest.mark.asyncio
    async def test_missing_field_is_empty(self):
        body, content_type = multipart_body({"title": "x"})
        result = await self.decoder.decode(content_type, body)
        assert result.content == ""

    @pytest.mark.asyncio
    async def test_missing_boundary_fails(self):
        body, _ = multipart_body({"content": "hello"})
        with pytest.raises(DecodeFailedError):
            await self.decoder.decode("multipart/form-data", body)

    @pytest.mark.asyncio
    async def test_part_over_limit_fails(self):
        body, content_type = multipart_body({"content": "x" * 64})
        with pytest.raises(DecodeFailedError):
            await decode_multipart(body, content_type, limit=16)

    def test_limit_is_megabytes(self):
        assert BodyDecoder(max_size=3).limit == 3 * MEGABYTE


class TestUnsupportedContentType:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content_type", [
        "text/plain",
        "application/x-www-form-urlencoded",
        "",
    ])
    async def test_empty_request_without_error(self, content_type):
        decoder = BodyDecoder(max_size=1)
        result = await decoder.decode(content_type, b"content=hello")
        assert result == CreateRequest(content="")


class TestReadBody:

    @pytest.mark.asyncio
    async def test_reads_whole_body(self):
        request = make_request(b'{"content":"hello"}', "application/json")
        assert await read_body(request, limit=1024) == b'{"content":"hello"}'

    @pytest.mark.asyncio
    async def test_over_limit_fails(self):
        request = make_request(b"x" * 32, "application/json")
        with pytest.raises(DecodeFailedError, match="exceeds 16 bytes"):
            await read_body(request, limit=16)

    @pytest.mark.asyncio
    async def test_decoder_read_uses_request_content_type(self):
        request = make_request(b'{"content":"from stream"}', "application/json; charset=utf-8")
        result = await BodyDecoder(max_size=1).read(request)
        assert result.content == "from stream"
