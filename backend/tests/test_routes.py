"""
SnipBin Backend — HTTP Route Tests
===================================

What:  End-to-end tests through the full ASGI stack (middleware, error
       handlers, routers) against an in-memory SQLite database.
How:   HTTPX AsyncClient over ASGITransport; documents are seeded directly.

What we test:
    ✅ GET /api/{id}: 200 envelope, 404 and 400 envelopes, reserved ids
    ✅ GET /raw/{id}: exact bytes, plain-text error lines
    ✅ GET /{id}[.ext]: code view, reader view, HTML error pages
    ✅ POST /api/: JSON and multipart bodies, validation and decode failures
    ✅ GET / and POST /: paste form and redirect
    ✅ /health, unknown routes, request ids, rate limiting
    ✅ Storage failures answered on the route's own surface
    ✅ Raw HTML in reader view escaped
    ✅ Broken error template propagates; JSON errors logged at DEBUG
"""

import logging
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from conftest import ANALYTICS, multipart_body
from snipbin.api.error_handlers import Surface
from snipbin.config import Settings
from snipbin.database import create_tables
from snipbin.exceptions import DatabaseError, RenderFailedError
from snipbin.main import create_app
from snipbin.services.templates import TemplateRenderer


class TestFetchJSON:

    @pytest.mark.asyncio
    async def test_found(self, test_client, seed):
        await seed("abc123", "hello world")

        response = await test_client.get("/api/abc123")

        assert response.status_code == 200
        body = response.json()
        assert body["error"] == ""
        assert body["payload"]["id"] == "abc123"
        assert body["payload"]["content"] == "hello world"
        assert body["payload"]["exists"] is True
        assert body["payload"]["created_at"] > 0
        assert response.headers["cache-control"] == "private, max-age=3600"

    @pytest.mark.asyncio
    async def test_not_found(self, test_client):
        response = await test_client.get("/api/abc123")

        assert response.status_code == 404
        body = response.json()
        assert body["payload"] == {}
        assert "abc123" in body["error"]

    @pytest.mark.asyncio
    async def test_bad_identifier(self, test_client):
        response = await test_client.get("/api/abc")

        assert response.status_code == 400
        assert response.json() == {
            "payload": {},
            "error": "id is of length 3, should be 6",
        }

    @pytest.mark.asyncio
    async def test_reserved_identifier(self, test_client, seed):
        await seed("about", "About this service")

        response = await test_client.get("/api/about")

        assert response.status_code == 200
        assert response.json()["payload"]["content"] == "About this service"

    @pytest.mark.asyncio
    async def test_database_failure(self, app, test_client):
        failing = AsyncMock(side_effect=DatabaseError())
        with patch.object(app.state.document_store, "get", failing):
            response = await test_client.get("/api/abc123")

        assert response.status_code == 500
        assert response.json()["payload"] == {}
        assert response.json()["error"] == "A database error occurred. Please try again later."

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_generic(self, app):
        failing = AsyncMock(side_effect=RuntimeError("driver exploded"))
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            with patch.object(app.state.document_store, "get", failing):
                response = await client.get("/api/abc123")

        assert response.status_code == 500
        assert response.json() == {"payload": {}, "error": "An unexpected error occurred"}


class TestFetchRaw:

    @pytest.mark.asyncio
    async def test_exact_content(self, test_client, seed):
        content = "#!/bin/sh\necho 'hi' <&2\n"
        await seed("abc123", content)

        response = await test_client.get("/raw/abc123")

        assert response.status_code == 200
        assert response.content == content.encode("utf-8")
        assert response.headers["content-type"].startswith("text/plain")

    @pytest.mark.asyncio
    async def test_not_found(self, test_client):
        response = await test_client.get("/raw/abc123")

        assert response.status_code == 404
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text.startswith("Document with ID abc123 not found: ")

    @pytest.mark.asyncio
    async def test_bad_identifier(self, test_client):
        response = await test_client.get("/raw/abc")

        assert response.status_code == 400
        assert response.text == "Invalid document ID abc: id is of length 3, should be 6"

    @pytest.mark.asyncio
    async def test_database_failure(self, app, test_client):
        failing = AsyncMock(side_effect=DatabaseError())
        with patch.object(app.state.document_store, "get", failing):
            response = await test_client.get("/raw/abc123")

        assert response.status_code == 500
        assert response.text.startswith("Error fetching document with ID abc123: ")


class TestFetchHTML:

    @pytest.mark.asyncio
    async def test_code_view(self, test_client, seed):
        await seed("abc123", "def greet():\n    return 'hi'\n")

        response = await test_client.get("/abc123")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "highlight" in response.text
        assert ANALYTICS in response.text

    @pytest.mark.asyncio
    async def test_code_view_with_extension(self, test_client, seed):
        await seed("abc123", "def greet():\n    return 'hi'\n")

        response = await test_client.get("/abc123.py")

        assert response.status_code == 200
        assert "highlight" in response.text
        assert "abc123.py" in response.text

    @pytest.mark.asyncio
    async def test_reader_view(self, test_client, seed):
        await seed("abc123", "# Title\n\nBody paragraph.")

        response = await test_client.get("/abc123", params={"reader": "true"})

        assert response.status_code == 200
        assert "<h1" in response.text
        assert "Title" in response.text
        assert ANALYTICS in response.text

    @pytest.mark.asyncio
    async def test_reader_view_of_heading_only(self, test_client, seed):
        await seed("xyz999", "# Title")

        response = await test_client.get("/xyz999?reader=true")

        assert response.status_code == 200
        assert '<h1 id="title">Title</h1>' in response.text

    @pytest.mark.asyncio
    async def test_reader_flag_must_be_true(self, test_client, seed):
        await seed("abc123", "# Title")

        response = await test_client.get("/abc123", params={"reader": "yes"})

        assert response.status_code == 200
        assert "<h1" not in response.text

    @pytest.mark.asyncio
    async def test_not_found_page(self, test_client):
        response = await test_client.get("/xyz999")

        assert response.status_code == 404
        assert response.headers["content-type"].startswith("text/html")
        assert "404" in response.text

    @pytest.mark.asyncio
    async def test_bad_identifier_page(self, test_client):
        response = await test_client.get("/xyz.py")

        assert response.status_code == 400
        assert "400 Bad Request" in response.text
        assert "id is of length 3, should be 6" in response.text

    @pytest.mark.asyncio
    async def test_database_failure_page(self, app, test_client):
        failing = AsyncMock(side_effect=DatabaseError())
        with patch.object(app.state.document_store, "get", failing):
            response = await test_client.get("/abc123")

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("text/html")
        assert "500 Internal Server Error" in response.text

    @pytest.mark.asyncio
    async def test_reader_view_escapes_raw_html(self, test_client, seed):
        await seed(
            "xss001",
            "# Hi\n\n<script>alert(document.cookie)</script>\n\n<img src=x onerror=alert(1)>",
        )

        response = await test_client.get("/xss001?reader=true")

        assert response.status_code == 200
        assert "<script>alert(document.cookie)</script>" not in response.text
        assert "<img src=x onerror=alert(1)>" not in response.text
        assert "&lt;script&gt;alert(document.cookie)&lt;/script&gt;" in response.text
        assert '<h1 id="hi">Hi</h1>' in response.text


class TestErrorSurfaces:

    @pytest.mark.asyncio
    async def test_broken_error_template_propagates(self, app, test_client, tmp_path):
        html_sink = app.state.error_mapper.sinks[Surface.HTML]
        html_sink.templates = TemplateRenderer(tmp_path)

        with pytest.raises(RenderFailedError, match="error.html"):
            await test_client.get("/xyz999")

    @pytest.mark.asyncio
    async def test_json_error_logged_at_debug(self, test_client, caplog):
        caplog.set_level(logging.DEBUG, logger="snipbin.api.error_handlers")

        response = await test_client.get("/api/abc123")

        assert response.status_code == 404
        diagnostics = [
            record for record in caplog.records
            if record.name == "snipbin.api.error_handlers" and record.levelno == logging.DEBUG
        ]
        assert len(diagnostics) == 1
        assert "abc123" in diagnostics[0].getMessage()
        assert diagnostics[0].status == 404
        assert diagnostics[0].path == "/api/abc123"


class TestCreateAPI:

    @pytest.mark.asyncio
    async def test_json_body(self, test_client):
        response = await test_client.post("/api/", json={"content": "hello world"})

        assert response.status_code == 201
        payload = response.json()["payload"]
        assert len(payload["id"]) == 6
        assert payload["content"] == "hello world"
        assert payload["exists"] is True

        fetched = await test_client.get(f"/raw/{payload['id']}")
        assert fetched.text == "hello world"

    @pytest.mark.asyncio
    async def test_without_trailing_slash(self, test_client):
        response = await test_client.post("/api", json={"content": "hello world"})
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_multipart_body(self, test_client):
        body, content_type = multipart_body({"content": "from a form"})

        response = await test_client.post(
            "/api/", content=body, headers={"content-type": content_type}
        )

        assert response.status_code == 201
        assert response.json()["payload"]["content"] == "from a form"

    @pytest.mark.asyncio
    async def test_unsupported_content_type(self, test_client):
        response = await test_client.post(
            "/api/", content=b"hello world", headers={"content-type": "text/plain"}
        )

        assert response.status_code == 400
        assert response.json() == {"payload": {}, "error": "content: cannot be blank."}

    @pytest.mark.asyncio
    async def test_content_too_short(self, test_client):
        response = await test_client.post("/api/", json={"content": "a"})

        assert response.status_code == 400
        assert response.json()["error"] == "content: the length must be between 2 and 1000."

    @pytest.mark.asyncio
    async def test_content_too_long(self, test_client):
        response = await test_client.post("/api/", json={"content": "x" * 1001})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_malformed_json(self, test_client):
        response = await test_client.post(
            "/api/", content=b"{not json", headers={"content-type": "application/json"}
        )

        assert response.status_code == 500
        assert response.json()["payload"] == {}
        assert response.json()["error"].startswith("invalid JSON body")

    @pytest.mark.asyncio
    async def test_insert_failure(self, app, test_client):
        failing = AsyncMock(side_effect=DatabaseError(message="Could not save the document. Please try again."))
        with patch.object(app.state.document_store, "create", failing):
            response = await test_client.post("/api/", json={"content": "hello"})

        assert response.status_code == 500
        assert response.json()["error"] == "Could not save the document. Please try again."


class TestPages:

    @pytest.mark.asyncio
    async def test_index(self, test_client):
        response = await test_client.get("/")

        assert response.status_code == 200
        assert "<form" in response.text
        assert 'name="content"' in response.text

    @pytest.mark.asyncio
    async def test_form_post_redirects(self, test_client):
        body, content_type = multipart_body({"content": "pasted text"})

        response = await test_client.post("/", content=body, headers={"content-type": content_type})

        assert response.status_code == 303
        location = response.headers["location"]
        assert location.startswith("/") and len(location) == 7

        raw = await test_client.get(f"/raw{location}")
        assert raw.text == "pasted text"

    @pytest.mark.asyncio
    async def test_form_post_validation_page(self, test_client):
        body, content_type = multipart_body({"content": ""})

        response = await test_client.post("/", content=body, headers={"content-type": content_type})

        assert response.status_code == 400
        assert "content: cannot be blank." in response.text


class TestService:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        payload = response.json()["payload"]
        assert payload["status"] == "healthy"
        assert payload["database"] == "connected"

    @pytest.mark.asyncio
    async def test_unknown_route(self, test_client):
        response = await test_client.get("/api/abc123/extra")

        assert response.status_code == 404
        assert response.json()["payload"] == {}

    @pytest.mark.asyncio
    async def test_request_id_generated(self, test_client):
        response = await test_client.get("/health")
        assert response.headers.get("x-request-id")

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "trace-42"})
        assert response.headers["x-request-id"] == "trace-42"


class TestRateLimit:

    @pytest.mark.asyncio
    async def test_limit_enforced(self, settings):
        limited = create_app(settings.model_copy(update={"ratelimiter": "2x60"}))
        await create_tables(limited.state.engine)
        transport = ASGITransport(app=limited)

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            first = await client.get("/api/abc123")
            second = await client.get("/api/abc123")
            third = await client.get("/api/abc123")
            health = await client.get("/health")

        await limited.state.engine.dispose()

        assert first.status_code == 404
        assert second.status_code == 404
        assert third.status_code == 429
        assert int(third.headers["retry-after"]) > 0
        assert third.json()["payload"] == {}
        assert third.json()["error"].startswith("Rate limit exceeded")
        assert health.status_code == 200

    @pytest.mark.asyncio
    async def test_rejection_goes_through_error_mapper(self, settings):
        limited = create_app(settings.model_copy(update={"ratelimiter": "1x60"}))
        mapper = limited.state.error_mapper
        transport = ASGITransport(app=limited)

        with patch.object(mapper, "emit", wraps=mapper.emit) as emit:
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                await client.get("/")
                rejected = await client.get("/")

        await limited.state.engine.dispose()

        assert rejected.status_code == 429
        assert rejected.headers["retry-after"]
        emit.assert_called_once()
        surface, _, status, message = emit.call_args.args
        assert surface is Surface.JSON
        assert status == 429
        assert message.startswith("Rate limit exceeded")
        assert emit.call_args.kwargs["headers"] == {"Retry-After": rejected.headers["retry-after"]}

    def test_settings_accept_limit(self):
        assert Settings(ratelimiter="2x60").rate_limit == (2, 60)
