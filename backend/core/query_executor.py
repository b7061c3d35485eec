"""
Query executor — runs one statement through a PoolHandle.

Order per call: acquire connection, database switch (requested or handle default),
permission check, bind + execute under the statement timeout, release connection.
Hex encoding of binary values and the row cap run on the detached rows afterwards.
"""
import asyncio
import logging
import re
from collections.abc import Mapping
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from core.db_connector import PoolHandle
from core.errors import ConnectionFailure, ExecutionFailed, InvalidArgument, QueryTimeout
from core.sql_classifier import check_permission
from models.query import FieldInfo, QueryParams, QueryResult

logger = logging.getLogger(__name__)

IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9_]+$")

# Quoted literals/identifiers and comments are matched first so a '?' inside them is left alone.
_POSITIONAL_RE = re.compile(
    r"""('(?:[^'\\]|\\.|'')*'|"(?:[^"\\]|\\.)*"|`[^`]*`|--[^\n]*|#[^\n]*|/\*.*?\*/)|\?""",
    re.DOTALL,
)


def is_valid_identifier(name: Optional[str]) -> bool:
    return bool(name) and IDENTIFIER_RE.match(name) is not None


# ── Result transforms ─────────────────────────────────────────────────────────

def encode_binary_values(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Replace bytes-like column values with lowercase hex text."""
    encoded = []
    for row in rows:
        encoded.append({
            k: bytes(v).hex() if isinstance(v, (bytes, bytearray, memoryview)) else v
            for k, v in row.items()
        })
    return encoded


def cap_rows(rows: list[dict[str, Any]], limit: int) -> tuple[list[dict[str, Any]], bool]:
    """Return the first ``limit`` rows in order, and whether anything was cut."""
    if len(rows) <= limit:
        return rows, False
    return rows[:limit], True


# ── Parameter binding ─────────────────────────────────────────────────────────

def normalize_params(params: QueryParams) -> QueryParams:
    """``None``, ``[]`` and ``{}`` all mean "no parameters"."""
    if params is None or len(params) == 0:
        return None
    if isinstance(params, (str, bytes)):
        raise InvalidArgument("params must be a sequence or a mapping, not a string")
    return params


def bind_positional(sql: str, params: list[Any]) -> tuple[str, dict[str, Any]]:
    """Rewrite '?' placeholders as :p1..:pN so positional values bind on any driver."""
    counter = 0

    def _replace(m: re.Match) -> str:
        nonlocal counter
        if m.group(1):
            return m.group(1)
        counter += 1
        return f":p{counter}"

    rewritten = _POSITIONAL_RE.sub(_replace, sql)
    if counter != len(params):
        raise InvalidArgument(
            f"Statement has {counter} '?' placeholder(s) but {len(params)} parameter(s) were supplied"
        )
    return rewritten, {f"p{i}": v for i, v in enumerate(params, start=1)}


async def _run(conn: AsyncConnection, sql: str, params: QueryParams):
    if params is None:
        # no_parameters keeps the driver from %-formatting literal percent signs
        return await conn.exec_driver_sql(sql, execution_options={"no_parameters": True})
    if isinstance(params, Mapping):
        return await conn.execute(text(sql), params)
    stmt, bound = bind_positional(sql, list(params))
    return await conn.execute(text(stmt), bound)


# ── Execution ─────────────────────────────────────────────────────────────────

async def use_database(conn: AsyncConnection, database: str) -> None:
    """Switch the connection's active schema. The name is checked before it is interpolated."""
    if not is_valid_identifier(database):
        raise InvalidArgument("Invalid database name format.")
    if conn.dialect.name not in ("mysql", "mariadb"):
        raise InvalidArgument(f"Switching database is not supported for {conn.dialect.name}")
    logger.debug("Using database: %s", database)
    await conn.exec_driver_sql(f"USE `{database}`", execution_options={"no_parameters": True})


async def _execute(handle: PoolHandle, conn: AsyncConnection, sql: str, params: QueryParams):
    try:
        result = await asyncio.wait_for(_run(conn, sql, params), timeout=handle.query_timeout)
        if result.returns_rows:
            keys = list(result.keys())
            rows = [dict(r) for r in result.mappings().all()]
            affected = None
        else:
            keys, rows, affected = [], [], result.rowcount
        await conn.commit()
    except asyncio.TimeoutError as e:
        logger.warning("Query timed out after %.1fs: %s", handle.query_timeout, sql[:100])
        await conn.invalidate()
        raise QueryTimeout(f"Query exceeded the {handle.query_timeout:g}s time limit") from e
    except DBAPIError as e:
        logger.warning("Query failed: %s", e.orig)
        if e.connection_invalidated:
            raise ConnectionFailure(f"Database connection lost: {e.orig}") from e
        raise ExecutionFailed(str(e.orig)) from e
    except SQLAlchemyError as e:
        logger.warning("Query failed: %s", e)
        raise ExecutionFailed(str(e)) from e
    return rows, keys, affected


async def execute_query(
    handle: PoolHandle,
    sql: str,
    params: QueryParams = None,
    database: Optional[str] = None,
) -> QueryResult:
    """
    Execute one statement on a pooled connection and return normalized rows.

    Raises PermissionDenied, ExecutionFailed, QueryTimeout, ConnectionFailure or
    InvalidArgument. The connection goes back to the pool on every path.
    """
    logger.info("Executing: %s", sql[:100])
    params = normalize_params(params)

    async with handle.connection() as conn:
        # pooled connections keep the last USE, so every call selects its database explicitly
        target = database
        if not target and conn.dialect.name in ("mysql", "mariadb"):
            target = handle.default_database
        if target:
            try:
                await use_database(conn, target)
            except DBAPIError as e:
                raise ExecutionFailed(f"Could not switch to database '{target}': {e.orig}") from e

        try:
            check_permission(sql, handle.policy)
            rows, keys, affected = await _execute(handle, conn, sql, params)
        finally:
            if target and not handle.default_database:
                # no default to switch back to, so the connection is not reused
                logger.debug("Discarding connection switched to %s", target)
                await conn.invalidate()

    total = len(rows)
    rows, truncated = cap_rows(encode_binary_values(rows), handle.row_limit)
    if truncated:
        logger.info("Result truncated from %d to %d rows", total, handle.row_limit)
    logger.info("Success: %d rows returned", len(rows) if keys else (affected or 0))

    return QueryResult(
        rows=rows,
        fields=[FieldInfo(name=k) for k in keys],
        row_count=len(rows),
        truncated=truncated,
        affected_rows=affected,
    )
