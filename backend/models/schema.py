"""Pydantic schemas and enums for table schema analysis."""
import enum
from typing import Optional
from pydantic import BaseModel, Field


class SchemaDetailFlag(str, enum.Enum):
    COLUMNS_BASIC = "COLUMNS_BASIC"   # column name, type
    COLUMNS_FULL = "COLUMNS_FULL"     # all column attributes
    FOREIGN_KEYS = "FOREIGN_KEYS"     # FK constraints + referential actions
    INDEXES_BASIC = "INDEXES_BASIC"   # index names and their ordered columns
    INDEXES_FULL = "INDEXES_FULL"     # every SHOW INDEX attribute


class DetailLevel(str, enum.Enum):
    BASIC = "BASIC"
    STANDARD = "STANDARD"
    FULL = "FULL"


DETAIL_LEVEL_FLAGS: dict[DetailLevel, frozenset[SchemaDetailFlag]] = {
    DetailLevel.BASIC: frozenset({SchemaDetailFlag.COLUMNS_BASIC}),
    DetailLevel.STANDARD: frozenset({
        SchemaDetailFlag.COLUMNS_BASIC,
        SchemaDetailFlag.FOREIGN_KEYS,
        SchemaDetailFlag.INDEXES_BASIC,
    }),
    DetailLevel.FULL: frozenset({
        SchemaDetailFlag.COLUMNS_FULL,
        SchemaDetailFlag.FOREIGN_KEYS,
        SchemaDetailFlag.INDEXES_FULL,
    }),
}


class AnalyzeRequest(BaseModel):
    table_names: list[str] = Field(..., description="Tables to analyze")
    detail_level: str = Field("STANDARD", description="BASIC, STANDARD or FULL (case-insensitive)")
    database: Optional[str] = Field(None, description="Database name; defaults to the configured one")
