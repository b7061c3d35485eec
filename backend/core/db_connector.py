"""
Database connector — bounded async connection pool plus the permission policy
it was created with. Every statement goes through a PoolHandle; there is no
module-level pool.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from core.errors import ConfigurationError, ConnectionFailure
from core.sql_classifier import PermissionPolicy
from models.connection import ConnectionRequest

logger = logging.getLogger(__name__)


class PoolHandle:
    """A live connection pool and the policy applied to every query run through it."""

    def __init__(self, engine: AsyncEngine, req: ConnectionRequest):
        self.engine = engine
        self.policy = PermissionPolicy(allow_dml=req.allow_dml, allow_ddl=req.allow_ddl)
        self.db_type = req.db_type
        self.host = req.host
        self.port = req.port
        self.default_database = req.database
        self.query_timeout = req.query_timeout_seconds
        self.row_limit = req.row_limit
        self.pool_size = req.pool_size
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[AsyncConnection]:
        """
        Check a connection out of the pool and return it on exit, whatever the exit path.
        Waits for a free slot when all pool_size connections are in use.
        """
        if self._disposed:
            raise ConnectionFailure("Connection pool has been disposed; create a new handle.")
        try:
            conn = await self.engine.connect()
        except (SQLAlchemyError, OSError) as e:
            raise ConnectionFailure(f"Could not obtain a database connection: {e}") from e
        logger.debug("Connection acquired")
        try:
            yield conn
        finally:
            try:
                await conn.close()
                logger.debug("Connection released")
            except (SQLAlchemyError, OSError):
                logger.exception("Failed to release connection")

    async def ping(self) -> None:
        """Round-trip a trivial statement; raises ConnectionFailure when the server is unreachable."""
        async with self.connection() as conn:
            try:
                await conn.execute(text("SELECT 1"))
            except SQLAlchemyError as e:
                raise ConnectionFailure(f"Could not connect to database: {e}") from e

    async def dispose(self) -> None:
        if self._disposed:
            logger.warning("Connection pool already disposed")
            return
        self._disposed = True
        await self.engine.dispose()
        logger.info("Connection pool disposed")

    def describe(self) -> dict:
        return {
            "db_type": self.db_type,
            "host": self.host,
            "port": self.port,
            "database": self.default_database,
            "allow_dml": self.policy.allow_dml,
            "allow_ddl": self.policy.allow_ddl,
        }


def create_pool(req: ConnectionRequest) -> PoolHandle:
    """
    Build a PoolHandle from a ConnectionRequest.
    Missing host or credentials is a configuration error raised here, not at query time.
    Connections are opened lazily; call ``ping()`` to verify the server is reachable.
    """
    missing = req.missing_settings()
    if missing:
        raise ConfigurationError(f"Missing required connection settings: {', '.join(missing)}")

    connect_args: dict = {}
    if req.db_type != "sqlite":
        connect_args["connect_timeout"] = req.connect_timeout_seconds

    engine = create_async_engine(
        req.get_sqlalchemy_url(),
        pool_size=req.pool_size,
        max_overflow=0,
        pool_timeout=req.connect_timeout_seconds,
        pool_pre_ping=True,
        connect_args=connect_args,
    )
    logger.info(
        "Created %s connection pool (host=%s, database=%s, pool_size=%d, allow_dml=%s, allow_ddl=%s)",
        req.db_type, req.host or req.file_path, req.database or "(default not set)",
        req.pool_size, req.allow_dml, req.allow_ddl,
    )
    return PoolHandle(engine, req)


async def open_pool(req: ConnectionRequest) -> PoolHandle:
    """create_pool + ping; disposes the partial pool if the server cannot be reached."""
    handle = create_pool(req)
    try:
        await handle.ping()
    except ConnectionFailure:
        await handle.dispose()
        raise
    return handle

