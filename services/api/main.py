"""
Quiz Desk Sync - Backend API
FastAPI service keeping desk copies of library questions in step with the
canonical asset library.

Install dependencies:
pip install -e ".[test]"

Run server:
uvicorn main:app --host 0.0.0.0 --port 8000
"""

import contextvars
import logging
import os
import time
import uuid
from typing import Optional

from cachetools import TTLCache
from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from adapters.base import DocumentStore, LibraryStore
from adapters.memory import MemoryDeskStore, MemoryDocumentStore, MemoryLibraryStore
from core.remote_persist import RemotePersister
from core.sync import DeskSet
from models import RECORD_TYPES, DeskKind
from routers import admin as admin_router
from routers import desks as desks_router
from routers import library as library_router
from settings import Settings, get_settings

# ========== Request Context for Tracing ==========
request_id_var = contextvars.ContextVar('request_id', default=None)

logger = logging.getLogger(__name__)

ASSETS_COLLECTION = "assets"
SEARCH_CACHE_SIZE = 256


# ============================================================================
# BACKEND CONFIGURATION
# ============================================================================

def build_document_store(settings: Settings) -> DocumentStore:
    """Remote document store selected by STORAGE_BACKEND."""
    backend = settings.storage_backend.lower()

    if backend == "json":
        from adapters.json import JsonDocumentStore
        return JsonDocumentStore(settings.data_dir)

    if backend == "sqlite":
        from adapters.sqlite import SqliteDocumentStore
        return SqliteDocumentStore.from_url(settings.db_url)

    if backend == "memory":
        return MemoryDocumentStore()

    raise ValueError(f"Unsupported storage backend: {settings.storage_backend}")


def seed_library(store: DocumentStore) -> MemoryLibraryStore:
    library = MemoryLibraryStore.from_documents(store.list_documents(ASSETS_COLLECTION))
    logger.info(f"Library seeded with {len(library.get_canonical_assets())} asset(s)")
    logger.warning(
        f"'{ASSETS_COLLECTION}' is a read-only input: library edits stay in memory and are lost on restart"
    )
    return library


def seed_desks(store: DocumentStore) -> DeskSet:
    stores = {}
    for kind in DeskKind:
        record_type = RECORD_TYPES[kind]
        records = [record_type.from_storage(d) for d in store.list_documents(kind.collection)]
        stores[kind] = MemoryDeskStore(kind, records)
        logger.info(f"{kind.value} desk seeded with {len(records)} record(s)")
        if not kind.persists_remotely:
            logger.warning(
                f"'{kind.collection}' is a read-only input: {kind.value} desk changes "
                f"stay in memory and are lost on restart"
            )
    return DeskSet(
        personal=stores[DeskKind.PERSONAL],
        group=stores[DeskKind.GROUP],
        coaching=stores[DeskKind.COACHING],
    )


def empty_desks() -> DeskSet:
    return DeskSet(
        personal=MemoryDeskStore(DeskKind.PERSONAL),
        group=MemoryDeskStore(DeskKind.GROUP),
        coaching=MemoryDeskStore(DeskKind.COACHING),
    )


# ============================================================================
# FASTAPI APP
# ============================================================================

def create_app(
    settings: Optional[Settings] = None,
    library: Optional[LibraryStore] = None,
    desks: Optional[DeskSet] = None,
    document_store: Optional[DocumentStore] = None,
) -> FastAPI:
    """
    Build the API. Stores are created on startup unless passed in; tests pass
    their own so they can inspect state after each request.
    """
    settings = settings or get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    app = FastAPI(
        title="Quiz Desk Sync API",
        description="Two-way sync between the question library and personal, group and coaching desks",
        version="1.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # ========== Request Tracing Middleware ==========
    @app.middleware("http")
    async def request_tracing_middleware(request, call_next):
        """Add request_id and timing to all requests."""
        request_id = str(uuid.uuid4())[:8]
        request_id_var.set(request_id)
        started = time.time()

        response = await call_next(request)

        latency = time.time() - started
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "latency_ms": round(latency * 1000, 2),
            }
        )
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"}
        )

    # ========== Lifecycle ==========
    @app.on_event("startup")
    async def startup_event():
        logger.info("Quiz Desk Sync API starting up...")
        logger.info(f"Storage Backend: {settings.storage_backend.upper()}")

        store = document_store or build_document_store(settings)

        if library is not None:
            app.state.library = library
        elif settings.seed_library_from_store:
            app.state.library = seed_library(store)
        else:
            app.state.library = MemoryLibraryStore()

        if desks is not None:
            app.state.desks = desks
        elif settings.seed_library_from_store:
            app.state.desks = seed_desks(store)
        else:
            app.state.desks = empty_desks()

        app.state.settings = settings
        app.state.document_store = store
        app.state.persister = RemotePersister(
            store,
            max_workers=settings.remote_persist_workers,
            max_attempts=settings.remote_persist_max_attempts,
            retry_wait_max=settings.remote_persist_retry_wait_max,
            enabled=settings.remote_persist_enabled,
        )

        # Search results go stale on any library change
        app.state.search_cache = TTLCache(maxsize=SEARCH_CACHE_SIZE, ttl=settings.search_cache_ttl_seconds)
        app.state.unsubscribe_search_cache = app.state.library.subscribe(app.state.search_cache.clear)

        logger.info(f"Allowed origins: {settings.get_origins_list()}")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Quiz Desk Sync API shutting down...")
        app.state.unsubscribe_search_cache()
        app.state.persister.shutdown()
        pending = len(app.state.persister.pending())
        if pending:
            logger.warning(f"{pending} remote write(s) still parked in the outbox at shutdown")

    # ============================================================================
    # ENDPOINTS
    # ============================================================================
    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        persister = app.state.persister
        return {
            "status": "healthy",
            "backend": settings.storage_backend,
            "assets": len(app.state.library.get_canonical_assets()),
            "remote_persist": persister.status(),
            "version": "1.0"
        }

    app.include_router(library_router.router)
    app.include_router(desks_router.router)
    app.include_router(admin_router.router)

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")
