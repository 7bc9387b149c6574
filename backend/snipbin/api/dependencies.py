"""
SnipBin Backend — Request Dependencies
=======================================

What:  FastAPI dependencies handing route handlers the components that
       `create_app()` built and stored on `app.state`.
"""

from fastapi import Request

from snipbin.config import Settings
from snipbin.services.body_decoder import BodyDecoder
from snipbin.services.document_store import DocumentStore
from snipbin.services.renderer import ResponseRenderer


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_document_store(request: Request) -> DocumentStore:
    return request.app.state.document_store


def get_renderer(request: Request) -> ResponseRenderer:
    return request.app.state.renderer


def get_body_decoder(request: Request) -> BodyDecoder:
    return request.app.state.body_decoder
