"""Pydantic schemas for database connection settings."""
from typing import Optional, Literal
from pydantic import BaseModel, Field
from sqlalchemy.engine import URL


class ConnectionRequest(BaseModel):
    db_type: Literal["mariadb", "mysql", "sqlite"] = Field("mariadb", description="Database engine type")

    # SQLite only (local development and tests)
    file_path: Optional[str] = Field(None, description="Absolute path to .db file (SQLite only)")

    # MariaDB / MySQL
    host: Optional[str] = Field(None, description="Database host")
    port: int = Field(3306, description="Database port")
    database: Optional[str] = Field(None, description="Default database name")
    username: Optional[str] = Field(None, description="Username")
    password: Optional[str] = Field(None, description="Password")

    # Policy and execution limits, fixed for the lifetime of the pool handle
    allow_dml: bool = Field(False, description="Permit INSERT/UPDATE/DELETE/REPLACE")
    allow_ddl: bool = Field(False, description="Permit CREATE/ALTER/DROP/TRUNCATE/RENAME")
    query_timeout_seconds: float = Field(10.0, gt=0)
    connect_timeout_seconds: int = Field(10, gt=0)
    row_limit: int = Field(1000, gt=0)
    pool_size: int = Field(2, gt=0)

    def missing_settings(self) -> list[str]:
        """Names of the settings a pool cannot be created without."""
        if self.db_type == "sqlite":
            return [] if self.file_path else ["file_path"]
        required = {"host": self.host, "username": self.username, "password": self.password}
        return [name for name, value in required.items() if not value]

    def get_sqlalchemy_url(self) -> URL:
        if self.db_type == "sqlite":
            return URL.create("sqlite+aiosqlite", database=self.file_path)
        return URL.create(
            "mysql+aiomysql",
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )
