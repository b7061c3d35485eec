"""Pydantic schemas for query execution."""
from typing import Any, Optional, Union
from pydantic import BaseModel, Field


QueryParams = Union[list[Any], dict[str, Any], None]


class QueryRequest(BaseModel):
    query: str = Field(..., min_length=1, description="SQL statement to execute")
    params: QueryParams = Field(None, description="List for '?' placeholders or mapping for ':name' placeholders")
    database: Optional[str] = Field(None, description="Database to switch to before executing")


class FieldInfo(BaseModel):
    name: str


class QueryResult(BaseModel):
    rows: list[dict[str, Any]] = []
    fields: list[FieldInfo] = []
    row_count: int = 0
    truncated: bool = False
    affected_rows: Optional[int] = None   # statements that return no rows
