from core.db_connector import PoolHandle, create_pool, open_pool  # noqa: F401
from core.sql_classifier import CommandCategory, PermissionPolicy, classify, is_permitted  # noqa: F401
from core.query_executor import execute_query  # noqa: F401
from core.schema_analyzer import analyze_tables  # noqa: F401
from core.catalog import list_databases, list_tables  # noqa: F401
