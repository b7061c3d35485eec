"""REST endpoints over the query pipeline: listings, schema analysis and ad-hoc queries."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends

from api.dependencies import get_pool_handle
from core.catalog import list_databases, list_tables
from core.db_connector import PoolHandle
from core.query_executor import execute_query
from core.schema_analyzer import analyze_tables
from models.query import QueryRequest, QueryResult
from models.schema import AnalyzeRequest

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/databases")
async def get_databases(handle: PoolHandle = Depends(get_pool_handle)):
    return {"databases": await list_databases(handle)}


@router.get("/tables")
async def get_tables(database: Optional[str] = None, handle: PoolHandle = Depends(get_pool_handle)):
    return {"database": database or handle.default_database, "tables": await list_tables(handle, database)}


@router.post("/schema/analyze")
async def analyze_schema(req: AnalyzeRequest, handle: PoolHandle = Depends(get_pool_handle)):
    return await analyze_tables(handle, req.table_names, req.detail_level, req.database)


@router.post("/query", response_model=QueryResult)
async def run_query(req: QueryRequest, handle: PoolHandle = Depends(get_pool_handle)):
    """The only route through which DML/DDL can reach the database, subject to the handle's policy."""
    return await execute_query(handle, req.query, req.params, req.database)
