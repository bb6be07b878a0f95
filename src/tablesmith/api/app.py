"""FastAPI application factory."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import settings
from ..ops import SessionStore
from .routes import get_session_store, router

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_SECONDS = 60


async def _expire_sessions(store: SessionStore, interval: float):
    """Drop expired sessions until cancelled."""
    while True:
        await asyncio.sleep(interval)
        await store.cleanup_expired_async()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the session expiry sweep for the lifetime of the app."""
    store = get_session_store()
    logger.info(f"TableSmith API starting (session TTL {settings.session_ttl_minutes} min)")
    sweeper = asyncio.create_task(_expire_sessions(store, CLEANUP_INTERVAL_SECONDS))
    try:
        yield
    finally:
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass
        logger.info(f"Dropping {store.size()} open session(s)")
        store.clear()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="TableSmith",
        description="Markdown table editing with undo/redo and version diffs",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api")

    return app
