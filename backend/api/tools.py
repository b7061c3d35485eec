"""
GET /api/tools and POST /api/tools/call — agent-facing tool interface.
Translates a tool name plus argument bag into a core call; errors surface as
structured JSON through the handlers registered in main.py.
"""
import logging
from typing import Any, Awaitable, Callable
from fastapi import APIRouter, Request
from pydantic import ValidationError

from api.dependencies import ensure_pool_handle
from core.catalog import list_databases, list_tables
from core.db_connector import PoolHandle
from core.errors import InvalidArgument, NotFound
from core.query_executor import execute_query
from core.schema_analyzer import analyze_tables
from models.tools import (
    AnalyzeTableSchemaArgs,
    ExecuteQueryArgs,
    ListTablesArgs,
    ToolCallRequest,
    ToolCallResponse,
    ToolDefinition,
)

router = APIRouter()
logger = logging.getLogger(__name__)

_DATABASE_PROPERTY = {
    "type": "string",
    "description": "Database name (optional, uses default if not specified)",
}

TOOL_DEFINITIONS: list[ToolDefinition] = [
    ToolDefinition(
        name="list_databases",
        description="List all accessible databases on the MariaDB server",
        input_schema={"type": "object", "properties": {}, "required": []},
    ),
    ToolDefinition(
        name="list_tables",
        description="List all tables in a specified database",
        input_schema={
            "type": "object",
            "properties": {"database": _DATABASE_PROPERTY},
            "required": [],
        },
    ),
    ToolDefinition(
        name="analyze_table_schema",
        description=(
            "Provides a comprehensive analysis of table schemas, including columns, "
            "foreign keys, and indexes, with varying levels of detail."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "database": _DATABASE_PROPERTY,
                "table_names": {
                    "type": "array",
                    "items": {"type": "string"},
                    "minItems": 1,
                    "description": "An array of table names to analyze.",
                },
                "detail_level": {
                    "type": "string",
                    "enum": ["BASIC", "STANDARD", "FULL"],
                    "default": "STANDARD",
                    "description": (
                        "Level of detail: BASIC (columns), STANDARD (+FKs, index columns), "
                        "FULL (all details). Default: STANDARD"
                    ),
                },
            },
            "required": ["table_names"],
        },
    ),
    ToolDefinition(
        name="execute_query",
        description="Execute a SQL query",
        input_schema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": (
                        "SQL query to execute. SELECT, SHOW, DESCRIBE, EXPLAIN are always allowed. "
                        "DML (INSERT, UPDATE, DELETE, REPLACE) requires MARIADB_ALLOW_DML=true. "
                        "DDL (CREATE, ALTER, DROP, TRUNCATE, RENAME) requires MARIADB_ALLOW_DDL=true. "
                        "Other commands (GRANT, SET, etc.) and multiple statements are disallowed."
                    ),
                },
                "database": _DATABASE_PROPERTY,
            },
            "required": ["query"],
        },
    ),
]


def _parse(model, arguments: dict[str, Any]):
    try:
        return model.model_validate(arguments)
    except ValidationError as e:
        raise InvalidArgument(f"Invalid arguments: {e.errors()[0]['msg']}") from e


# ── Tool handlers ─────────────────────────────────────────────────────────────

async def _list_databases(handle: PoolHandle, arguments: dict[str, Any]) -> Any:
    return await list_databases(handle)


async def _list_tables(handle: PoolHandle, arguments: dict[str, Any]) -> Any:
    args = _parse(ListTablesArgs, arguments)
    return await list_tables(handle, args.database)


async def _analyze_table_schema(handle: PoolHandle, arguments: dict[str, Any]) -> Any:
    args = _parse(AnalyzeTableSchemaArgs, arguments)
    if not args.table_names:
        raise InvalidArgument(
            "Missing or invalid 'table_names' argument: Must be a non-empty array of strings."
        )
    return await analyze_tables(handle, args.table_names, args.detail_level or "STANDARD", args.database)


async def _execute_query(handle: PoolHandle, arguments: dict[str, Any]) -> Any:
    args = _parse(ExecuteQueryArgs, arguments)
    if not args.query.strip():
        raise InvalidArgument("Query is required")
    result = await execute_query(handle, args.query, None, args.database)
    return result.rows


TOOL_HANDLERS: dict[str, Callable[[PoolHandle, dict[str, Any]], Awaitable[Any]]] = {
    "list_databases": _list_databases,
    "list_tables": _list_tables,
    "analyze_table_schema": _analyze_table_schema,
    "execute_query": _execute_query,
}


# ── Routes ────────────────────────────────────────────────────────────────────

@router.get("/tools")
def get_tools():
    return {"tools": [t.model_dump() for t in TOOL_DEFINITIONS]}


@router.post("/tools/call", response_model=ToolCallResponse)
async def call_tool(req: ToolCallRequest, request: Request):
    tool = TOOL_HANDLERS.get(req.name)
    if tool is None:
        raise NotFound(f"Unknown tool: {req.name}")
    logger.info("Tool call: %s", req.name)
    handle = await ensure_pool_handle(request.app)
    result = await tool(handle, req.arguments)
    return ToolCallResponse(tool=req.name, result=result)
