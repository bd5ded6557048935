"""FastAPI application factory and lifespan management."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docspace import __version__
from docspace.api.middleware.auth import AuthMiddleware
from docspace.api.middleware.trace_id import TraceIdMiddleware
from docspace.api.router import api_router
from docspace.config import settings
from docspace.db.engine import create_all_tables, create_db_engine, create_session_factory
from docspace.errors.handlers import register_exception_handlers
from docspace.logging_config import configure_logging
from docspace.services.indexing_client import IndexingClient
from docspace.services.locks import WorkspaceLocks
from docspace.services.storage import FileStorage

configure_logging(log_level=settings.log_level, json_output=not settings.local_mode)

logger = logging.getLogger(__name__)


def build_indexer() -> IndexingClient:
    return IndexingClient(
        base_url=settings.python_api_url,
        api_key=settings.api_key,
        index=settings.index,
        timeout=settings.indexing_timeout_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database and storage root; attach the shared services to app.state.

    SQLite databases get their tables created here. Server databases are
    migrated with ``docspace-admin migrate``.
    """
    db_url = settings.effective_database_url
    sqlite = db_url.startswith("sqlite")
    engine = create_db_engine(db_url)
    if sqlite:
        await create_all_tables(engine)

    storage = FileStorage(settings.storage_root)
    storage.initialize()

    app.state.db_engine = engine
    app.state.db_session_factory = create_session_factory(engine)
    app.state.storage = storage
    app.state.indexer = build_indexer()
    app.state.workspace_locks = WorkspaceLocks()

    logger.info(
        "docspace API %s started (db=%s, storage=%s, indexer=%s)",
        __version__, "sqlite" if sqlite else "postgresql", storage.root, settings.python_api_url,
    )
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("docspace API stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="docspace API",
        version=__version__,
        description="Multi-tenant workspace document management.",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Starlette runs the last-added middleware first: auth resolves the
    # caller before the trace middleware binds it into the log context.
    app.add_middleware(TraceIdMiddleware)
    app.add_middleware(AuthMiddleware)

    register_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
