"""Pydantic schemas for the agent-facing tool interface."""
from typing import Any, Optional
from pydantic import BaseModel, Field


class ToolDefinition(BaseModel):
    name: str
    description: str
    input_schema: dict[str, Any]


class ToolCallRequest(BaseModel):
    name: str
    arguments: dict[str, Any] = {}


class ToolCallResponse(BaseModel):
    tool: str
    result: Any


# Argument bags, validated per tool before dispatch

class ListTablesArgs(BaseModel):
    database: Optional[str] = None


class AnalyzeTableSchemaArgs(BaseModel):
    table_names: list[str] = Field(default_factory=list)
    detail_level: Optional[str] = None
    database: Optional[str] = None


class ExecuteQueryArgs(BaseModel):
    query: str = ""
    database: Optional[str] = None
