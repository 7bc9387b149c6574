"""
SnipBin Backend — Application Package Initializer
==================================================

What: Marks the `snipbin` directory as a Python package.
Who:  Imported by uvicorn (`snipbin.main:app`), Alembic and pytest.

Architecture Note:
    The service keeps the same layered shape as any FastAPI backend:

    ┌─────────────────────────────────────┐
    │     Routes + Error Handlers (API)   │  ← HTTP concerns, output surfaces
    ├─────────────────────────────────────┤
    │   Services (identifiers, decoding,  │  ← Validation, rendering, storage
    │   validation, rendering, storage)   │
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
