"""Pool handle lifecycle for the API: created once (eagerly or on first use), disposed on shutdown."""
import asyncio
import logging
from typing import Optional

from fastapi import FastAPI, Request

from config import settings
from core.db_connector import PoolHandle, open_pool
from core.errors import ConnectionFailure

logger = logging.getLogger(__name__)


def init_app_state(app: FastAPI) -> None:
    app.state.pool_handle = None
    app.state.pool_lock = asyncio.Lock()


async def ensure_pool_handle(app: FastAPI) -> PoolHandle:
    """Return the app's handle, creating and verifying it under a lock the first time."""
    handle: Optional[PoolHandle] = app.state.pool_handle
    if handle is not None:
        return handle

    async with app.state.pool_lock:
        if app.state.pool_handle is not None:
            return app.state.pool_handle
        logger.info("Initializing database connection pool…")
        try:
            handle = await open_pool(settings.connection_request())
        except ConnectionFailure as e:
            raise ConnectionFailure(f"Failed to initialize database connection: {e}") from e
        app.state.pool_handle = handle
        logger.info("Database connection verified.")
        return handle


async def close_pool_handle(app: FastAPI) -> None:
    handle: Optional[PoolHandle] = getattr(app.state, "pool_handle", None)
    if handle is None:
        logger.info("Pool was not initialized, nothing to close.")
        return
    app.state.pool_handle = None
    await handle.dispose()


async def get_pool_handle(request: Request) -> PoolHandle:
    return await ensure_pool_handle(request.app)
