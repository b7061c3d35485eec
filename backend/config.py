"""Application settings loaded from .env file."""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

from models.connection import ConnectionRequest


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # MariaDB / MySQL
    MARIADB_HOST: Optional[str] = None
    MARIADB_PORT: int = 3306
    MARIADB_USER: Optional[str] = None
    MARIADB_PASSWORD: Optional[str] = None
    MARIADB_DATABASE: Optional[str] = None

    # Permission policy
    MARIADB_ALLOW_DML: bool = False
    MARIADB_ALLOW_DDL: bool = False

    # Execution limits
    QUERY_TIMEOUT_SECONDS: float = 10.0
    CONNECT_TIMEOUT_SECONDS: int = 10
    ROW_LIMIT: int = 1000
    POOL_SIZE: int = 2
    EAGER_POOL_INIT: bool = False

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: str = "http://localhost:5173"

    # Logging
    LOG_LEVEL: str = "INFO"

    def connection_request(self) -> ConnectionRequest:
        return ConnectionRequest(
            db_type="mariadb",
            host=self.MARIADB_HOST,
            port=self.MARIADB_PORT,
            username=self.MARIADB_USER,
            password=self.MARIADB_PASSWORD,
            database=self.MARIADB_DATABASE,
            allow_dml=self.MARIADB_ALLOW_DML,
            allow_ddl=self.MARIADB_ALLOW_DDL,
            query_timeout_seconds=self.QUERY_TIMEOUT_SECONDS,
            connect_timeout_seconds=self.CONNECT_TIMEOUT_SECONDS,
            row_limit=self.ROW_LIMIT,
            pool_size=self.POOL_SIZE,
        )


settings = Settings()
