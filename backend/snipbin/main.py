"""
SnipBin Backend — FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   `create_app(settings)` builds every component from one frozen
       Settings value, stores them on `app.state`, registers middleware,
       error handlers and routers.
Who:   uvicorn (`uvicorn snipbin.main:app`), the `snipbin` console script,
       and the test suite (which passes its own settings).

Application Architecture:
    ┌──────────────────────────────────────────────────────┐
    │                    FastAPI App                       │
    │                                                      │
    │  Middleware Chain:                                   │
    │  Rate Limit → Request ID → Logging → GZip → CORS     │
    │                                                      │
    │  Routes:                                             │
    │  /health · /api/… (JSON) · /raw/… (text) · /… (HTML) │
    │                                                      │
    │  Components on app.state:                            │
    │  settings · engine · session_factory ·               │
    │  document_store · body_decoder · renderer ·          │
    │  error_mapper                                        │
    └──────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, create tables for SQLite databases
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from snipbin import __version__
from snipbin.api.error_handlers import ErrorMapper, register_error_handlers
from snipbin.config import Settings, get_settings
from snipbin.database import build_engine, build_session_factory, create_tables
from snipbin.middleware.logging import RequestLoggingMiddleware
from snipbin.middleware.rate_limit import RateLimitMiddleware
from snipbin.middleware.request_id import RequestIDMiddleware
from snipbin.routes import api, health, pages, raw
from snipbin.services.body_decoder import BodyDecoder
from snipbin.services.document_store import DocumentStore
from snipbin.services.highlight import Highlighter
from snipbin.services.renderer import ResponseRenderer
from snipbin.services.templates import TemplateRenderer

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(settings: Settings) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, on stdout
    (container runtimes collect stdout).
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-operation chatter from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("markdown").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings

    setup_logging(settings)
    logger.info("SnipBin %s starting up...", __version__)
    logger.info(
        "Identifier length %d, %d reserved ids, max size %d",
        settings.id_length,
        len(settings.reserved_ids),
        settings.max_size,
    )

    # Server databases are migrated with Alembic; SQLite is created in place
    if settings.database_url.startswith("sqlite"):
        await create_tables(app.state.engine)
        logger.info("SQLite tables ensured")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("SnipBin shutting down...")
    await app.state.engine.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: configuration to build the app from; read from the
                  environment when omitted

    Returns:
        Fully configured FastAPI instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="SnipBin API",
        description="Minimal paste storage: raw text, JSON and highlighted HTML views.",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Components ────────────────────────────────────────────────────────
    templates = TemplateRenderer()
    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.document_store = DocumentStore(settings)
    app.state.body_decoder = BodyDecoder(settings.max_size)
    app.state.renderer = ResponseRenderer(
        settings,
        templates,
        highlighter=Highlighter(settings.highlight_style),
    )
    app.state.error_mapper = ErrorMapper(templates)

    # ── Middleware ────────────────────────────────────────────────────────
    # Executes in REVERSE order of addition (last added = outermost)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware, settings=settings)

    # ── Error Handlers ────────────────────────────────────────────────────
    register_error_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    # pages.router last: /{document} matches any single segment
    app.include_router(health.router)
    app.include_router(api.router)
    app.include_router(raw.router)
    app.include_router(pages.router)

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "snipbin.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


# uvicorn expects `snipbin.main:app` to be importable
app = create_app()
