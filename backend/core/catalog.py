"""Database and table listings, run through the executor like any other query."""
from typing import Any, Optional

from core.db_connector import PoolHandle
from core.query_executor import execute_query


async def list_databases(handle: PoolHandle) -> list[dict[str, Any]]:
    result = await execute_query(handle, "SHOW DATABASES")
    return result.rows


async def list_tables(handle: PoolHandle, database: Optional[str] = None) -> list[dict[str, Any]]:
    """Tables and views with their type; ``database`` overrides the connection default."""
    result = await execute_query(handle, "SHOW FULL TABLES", None, database)
    return result.rows
