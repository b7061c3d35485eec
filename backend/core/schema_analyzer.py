"""
Schema analyzer — per-table metadata facets at a caller-chosen detail level.
Every metadata statement goes through the query executor and the handle's policy.
"""
import logging
from typing import Any, Optional

from core.db_connector import PoolHandle
from core.errors import InvalidArgument, QueryGateError
from core.query_executor import execute_query, is_valid_identifier
from core.text_utils import snake_case_keys
from models.schema import DETAIL_LEVEL_FLAGS, DetailLevel, SchemaDetailFlag

logger = logging.getLogger(__name__)


# ── Facet queries ─────────────────────────────────────────────────────────────

TABLE_EXISTS_SQL = """
    SELECT COUNT(*) AS `count`
    FROM information_schema.TABLES
    WHERE TABLE_SCHEMA = :db_name AND TABLE_NAME = :table_name
"""

BASIC_COLUMNS_SQL = """
    SELECT
        COLUMN_NAME AS `name`,
        COLUMN_TYPE AS `type`
    FROM information_schema.COLUMNS
    WHERE TABLE_SCHEMA = :db_name AND TABLE_NAME = :table_name
    ORDER BY ORDINAL_POSITION
"""

FULL_COLUMNS_SQL = """
    SELECT
        COLUMN_NAME AS `name`,
        COLUMN_TYPE AS `type`,
        IS_NULLABLE AS `is_nullable`,
        COLUMN_KEY AS `key`,
        COLUMN_DEFAULT AS `default`,
        EXTRA AS `extra`,
        COLUMN_COMMENT AS `comment`,
        CHARACTER_SET_NAME AS `character_set`,
        COLLATION_NAME AS `collation`
    FROM information_schema.COLUMNS
    WHERE TABLE_SCHEMA = :db_name AND TABLE_NAME = :table_name
    ORDER BY ORDINAL_POSITION
"""

FOREIGN_KEYS_SQL = """
    SELECT
        kcu.CONSTRAINT_NAME AS `constraint_name`,
        kcu.COLUMN_NAME AS `column_name`,
        kcu.REFERENCED_TABLE_SCHEMA AS `referenced_database`,
        kcu.REFERENCED_TABLE_NAME AS `referenced_table`,
        kcu.REFERENCED_COLUMN_NAME AS `referenced_column`,
        rc.UPDATE_RULE AS `on_update`,
        rc.DELETE_RULE AS `on_delete`
    FROM information_schema.KEY_COLUMN_USAGE kcu
    JOIN information_schema.REFERENTIAL_CONSTRAINTS rc
        ON kcu.CONSTRAINT_NAME = rc.CONSTRAINT_NAME
        AND kcu.CONSTRAINT_SCHEMA = rc.CONSTRAINT_SCHEMA
    WHERE kcu.TABLE_SCHEMA = :db_name
        AND kcu.TABLE_NAME = :table_name
        AND kcu.REFERENCED_TABLE_NAME IS NOT NULL
    ORDER BY kcu.CONSTRAINT_NAME, kcu.ORDINAL_POSITION
"""

BASIC_INDEXES_SQL = """
    SELECT
        INDEX_NAME AS `index_name`,
        COLUMN_NAME AS `column_name`,
        SEQ_IN_INDEX AS `seq_in_index`
    FROM information_schema.STATISTICS
    WHERE TABLE_SCHEMA = :db_name AND TABLE_NAME = :table_name
    ORDER BY INDEX_NAME, SEQ_IN_INDEX
"""


async def fetch_basic_columns(handle: PoolHandle, db_name: str, table_name: str) -> list[dict]:
    result = await execute_query(handle, BASIC_COLUMNS_SQL, {"db_name": db_name, "table_name": table_name})
    return result.rows


async def fetch_full_columns(handle: PoolHandle, db_name: str, table_name: str) -> list[dict]:
    result = await execute_query(handle, FULL_COLUMNS_SQL, {"db_name": db_name, "table_name": table_name})
    return result.rows


async def fetch_foreign_keys(handle: PoolHandle, db_name: str, table_name: str) -> list[dict]:
    result = await execute_query(handle, FOREIGN_KEYS_SQL, {"db_name": db_name, "table_name": table_name})
    return result.rows


async def fetch_basic_indexes(handle: PoolHandle, db_name: str, table_name: str) -> list[dict]:
    """Group STATISTICS rows into [{index_name, columns}] keeping column order within each index."""
    result = await execute_query(handle, BASIC_INDEXES_SQL, {"db_name": db_name, "table_name": table_name})
    grouped: dict[str, list[str]] = {}
    for row in result.rows:
        grouped.setdefault(row["index_name"], []).append(row["column_name"])
    return [{"index_name": name, "columns": cols} for name, cols in grouped.items()]


async def fetch_full_indexes(handle: PoolHandle, db_name: str, table_name: str) -> list[dict]:
    # SHOW INDEX takes no bound parameters; table_name was validated by the caller
    if not is_valid_identifier(table_name):
        raise InvalidArgument("invalid table name format")
    result = await execute_query(handle, f"SHOW INDEX FROM `{table_name}`", None, db_name)
    return [snake_case_keys(row) for row in result.rows]


# ── Orchestration ─────────────────────────────────────────────────────────────

def resolve_detail_flags(detail_level: Optional[str]) -> frozenset[SchemaDetailFlag]:
    """Case-insensitive; anything unknown falls back to STANDARD."""
    try:
        level = DetailLevel((detail_level or "STANDARD").strip().upper())
    except ValueError:
        logger.warning("Unknown detail level %r, using STANDARD", detail_level)
        level = DetailLevel.STANDARD
    return DETAIL_LEVEL_FLAGS[level]


async def _table_exists(handle: PoolHandle, db_name: str, table_name: str) -> bool:
    result = await execute_query(handle, TABLE_EXISTS_SQL, {"db_name": db_name, "table_name": table_name})
    return bool(result.rows) and int(result.rows[0]["count"] or 0) > 0


async def _analyze_table(
    handle: PoolHandle,
    db_name: str,
    table_name: str,
    flags: frozenset[SchemaDetailFlag],
) -> dict[str, Any]:
    table_result: dict[str, Any] = {}

    # the FULL variant of a facet replaces the BASIC one
    if SchemaDetailFlag.COLUMNS_FULL in flags:
        table_result["columns"] = await fetch_full_columns(handle, db_name, table_name)
    elif SchemaDetailFlag.COLUMNS_BASIC in flags:
        table_result["columns"] = await fetch_basic_columns(handle, db_name, table_name)

    if SchemaDetailFlag.FOREIGN_KEYS in flags:
        table_result["foreign_keys"] = await fetch_foreign_keys(handle, db_name, table_name)

    if SchemaDetailFlag.INDEXES_FULL in flags:
        table_result["indexes"] = await fetch_full_indexes(handle, db_name, table_name)
    elif SchemaDetailFlag.INDEXES_BASIC in flags:
        table_result["indexes"] = await fetch_basic_indexes(handle, db_name, table_name)

    return table_result


async def analyze_tables(
    handle: PoolHandle,
    table_names: list[str],
    detail_level: Optional[str] = "STANDARD",
    database: Optional[str] = None,
) -> dict[str, dict[str, Any]]:
    """
    Analyze each table in order and return {table_name: facets | {"error": ...}}.

    Only whole-request problems raise (InvalidArgument): an empty table list, no
    database to analyze, or a malformed database name. Per-table failures are
    recorded in the result and never stop the remaining tables.
    Tables are analyzed one after another so a single request holds at most
    one pooled connection at a time.
    """
    if not table_names:
        raise InvalidArgument("table_names array cannot be empty")

    flags = resolve_detail_flags(detail_level)

    db_name = database or handle.default_database
    if not db_name:
        raise InvalidArgument("Database name is required (either in arguments or environment config)")
    if not is_valid_identifier(db_name):
        raise InvalidArgument("Invalid database name format.")

    results: dict[str, dict[str, Any]] = {}
    for table_name in table_names:
        if not is_valid_identifier(table_name):
            logger.warning("Invalid table name format skipped: %r", table_name)
            results[table_name] = {"error": "invalid table name format"}
            continue

        try:
            exists = await _table_exists(handle, db_name, table_name)
        except QueryGateError as e:
            logger.warning("Failed to check existence for table %s.%s: %s", db_name, table_name, e)
            results[table_name] = {"error": f"Failed to check existence for table '{table_name}': {e}"}
            continue
        if not exists:
            logger.warning("Table %s.%s does not exist, skipping", db_name, table_name)
            results[table_name] = {"error": f"Table '{table_name}' does not exist in database '{db_name}'."}
            continue

        logger.info(
            "Analyzing table %s.%s with flags: %s",
            db_name, table_name, ", ".join(sorted(f.value for f in flags)),
        )
        try:
            results[table_name] = await _analyze_table(handle, db_name, table_name, flags)
        except QueryGateError as e:
            logger.warning("Failed to analyze table %s.%s: %s", db_name, table_name, e)
            results[table_name] = {"error": f"Failed to analyze table: {e}"}

    return results
