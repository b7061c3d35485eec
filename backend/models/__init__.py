from models.connection import ConnectionRequest  # noqa: F401
from models.query import QueryRequest, QueryResult, FieldInfo  # noqa: F401
from models.schema import AnalyzeRequest, DetailLevel, SchemaDetailFlag, DETAIL_LEVEL_FLAGS  # noqa: F401
from models.tools import ToolDefinition, ToolCallRequest, ToolCallResponse  # noqa: F401
