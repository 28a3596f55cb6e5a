"""FastAPI application factory.

Lifespan
--------
On startup the app opens a single SQLite connection (shared across all
requests via ``request.app.state.db``), initialises the schema and creates
an empty :class:`~uniscope.nlp.ModelStore` (``request.app.state.models``)
that ``POST /nlp/train`` fills.  On shutdown it closes the connection.

Routers
-------
    /scrape  page fetch, domain scan, crawl discovery, extraction, search seeding
    /nlp     model training, classification, categories, statistics
    /data    stored pages with their classification
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from uniscope import __version__
from uniscope.api.routers import data as data_router
from uniscope.api.routers import nlp as nlp_router
from uniscope.api.routers import scrape as scrape_router
from uniscope.db import get_connection, init_db
from uniscope.db.migrations import migrate
from uniscope.nlp import ModelStore


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the DB and an empty model store on startup; close the DB on shutdown."""
    conn = get_connection()
    init_db(conn)
    migrate(conn)
    app.state.db = conn
    app.state.models = ModelStore()
    try:
        yield
    finally:
        conn.close()


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="uniscope API",
        description=(
            "Discovers pages on a university domain, extracts structured "
            "content and classifies it into news, announcements, events, "
            "research and student categories."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(scrape_router.router, prefix="/scrape", tags=["scrape"])
    app.include_router(nlp_router.router, prefix="/nlp", tags=["nlp"])
    app.include_router(data_router.router, prefix="/data", tags=["data"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn uniscope.api.app:app --reload
app = create_app()
